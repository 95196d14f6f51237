"""Organization, membership, invite and subscription endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response

from inventra_service.auth.deps import CurrentUserDep, OrgScopeDep
from inventra_service.db.deps import SessionDep
from inventra_service.rest.schemas import (
    CreateInviteRequest,
    CreateOrgRequest,
    InviteSchema,
    MemberSchema,
    MembershipSchema,
    OrgSchema,
    SubscriptionSchema,
    UpdateOrgRequest,
    UpdateRoleRequest,
    UsageSchema,
)
from inventra_service.services import billing
from inventra_service.services.deps import InvitesServiceDep, MembersServiceDep, OrganizationsServiceDep
from inventra_service.services.invites import invite_state
from inventra_service.services.organizations import create_organization, list_my_organizations

router = APIRouter(prefix="/orgs")


def _org_to_schema(org, role: str | None = None) -> OrgSchema:
    return OrgSchema.model_validate(org).model_copy(update={"role": role})


def _invite_to_schema(invite) -> InviteSchema:
    return InviteSchema(
        id=invite.id,
        email=invite.email,
        role=invite.role,
        state=invite_state(invite).value,
        token=invite.token,
        expires_at=invite.expires_at,
        created_at=invite.created_at,
    )


# -- organizations -----------------------------------------------------------


@router.get("", response_model=list[OrgSchema])
async def list_orgs(current_user: CurrentUserDep, session: SessionDep) -> list[OrgSchema]:
    rows = await list_my_organizations(session, current_user.user_id)
    return [_org_to_schema(org, role) for org, role in rows]


@router.post("", response_model=OrgSchema, status_code=201)
async def create_org(request: CreateOrgRequest, current_user: CurrentUserDep, session: SessionDep) -> OrgSchema:
    org = await create_organization(session, current_user.user_id, request.name, request.slug)
    return _org_to_schema(org, "owner")


@router.get("/{org_id}", response_model=OrgSchema)
async def get_org(scope: OrgScopeDep, service: OrganizationsServiceDep) -> OrgSchema:
    return _org_to_schema(await service.get(), scope.role)


@router.patch("/{org_id}", response_model=OrgSchema)
async def update_org(request: UpdateOrgRequest, scope: OrgScopeDep, service: OrganizationsServiceDep) -> OrgSchema:
    org = await service.update(name=request.name, settings=request.settings)
    return _org_to_schema(org, scope.role)


@router.delete("/{org_id}", status_code=204)
async def delete_org(service: OrganizationsServiceDep) -> Response:
    await service.delete()
    return Response(status_code=204)


@router.get("/{org_id}/usage", response_model=UsageSchema)
async def get_usage(service: OrganizationsServiceDep) -> UsageSchema:
    return UsageSchema.model_validate(await service.usage())


@router.get("/{org_id}/subscription", response_model=SubscriptionSchema)
async def get_subscription(scope: OrgScopeDep, session: SessionDep) -> SubscriptionSchema:
    return SubscriptionSchema.model_validate(await billing.get_subscription(session, scope))


# -- members -----------------------------------------------------------------


@router.get("/{org_id}/members", response_model=list[MemberSchema])
async def list_members(service: MembersServiceDep) -> list[MemberSchema]:
    return [
        MemberSchema(
            user_id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=member.role,
            joined_at=member.created_at,
        )
        for member, user in await service.list()
    ]


@router.patch("/{org_id}/members/{user_id}", response_model=MembershipSchema)
async def change_member_role(
    user_id: UUID, request: UpdateRoleRequest, service: MembersServiceDep
) -> MembershipSchema:
    return MembershipSchema.model_validate(await service.change_role(user_id, request.role))


@router.delete("/{org_id}/members/{user_id}", status_code=204)
async def remove_member(user_id: UUID, service: MembersServiceDep) -> Response:
    await service.remove(user_id)
    return Response(status_code=204)


# -- invites -----------------------------------------------------------------


@router.get("/{org_id}/invites", response_model=list[InviteSchema])
async def list_invites(service: InvitesServiceDep) -> list[InviteSchema]:
    return [_invite_to_schema(invite) for invite in await service.list_pending()]


@router.post("/{org_id}/invites", response_model=InviteSchema, status_code=201)
async def create_invite(request: CreateInviteRequest, service: InvitesServiceDep) -> InviteSchema:
    return _invite_to_schema(await service.create(request.email, request.role))


@router.delete("/{org_id}/invites/{invite_id}", status_code=204)
async def revoke_invite(invite_id: UUID, service: InvitesServiceDep) -> Response:
    await service.revoke(invite_id)
    return Response(status_code=204)
