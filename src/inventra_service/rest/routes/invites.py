"""Public invite endpoints addressed by token."""

from __future__ import annotations

from fastapi import APIRouter

from inventra_service.auth.deps import CurrentUserDep
from inventra_service.db.deps import SessionDep
from inventra_service.rest.schemas import InvitePreviewSchema, MembershipSchema
from inventra_service.services.invites import accept_invite, preview_invite

router = APIRouter(prefix="/invites")


@router.get("/{token}", response_model=InvitePreviewSchema)
async def get_invite(token: str, session: SessionDep) -> InvitePreviewSchema:
    preview = await preview_invite(session, token)
    return InvitePreviewSchema(
        organization_id=preview.organization_id,
        organization_name=preview.organization_name,
        email=preview.email,
        role=preview.role,
        state=preview.state.value,
        expires_at=preview.expires_at,
    )


@router.post("/{token}/accept", response_model=MembershipSchema)
async def accept(token: str, current_user: CurrentUserDep, session: SessionDep) -> MembershipSchema:
    member = await accept_invite(session, current_user.user_id, current_user.email, token)
    return MembershipSchema.model_validate(member)
