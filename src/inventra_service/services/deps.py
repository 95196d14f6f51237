"""FastAPI dependencies that build organization-scoped services."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from inventra_service.auth.deps import OrgScopeDep
from inventra_service.db.deps import SessionDep
from inventra_service.services.assets import AssetsService
from inventra_service.services.audit import AuditService
from inventra_service.services.imports import ImportService
from inventra_service.services.invites import InvitesService
from inventra_service.services.licenses import LicensesService
from inventra_service.services.members import MembersService
from inventra_service.services.organizations import OrganizationsService
from inventra_service.services.requests import RequestsService


def get_organizations_service(session: SessionDep, scope: OrgScopeDep) -> OrganizationsService:
    return OrganizationsService(session, scope)


def get_members_service(session: SessionDep, scope: OrgScopeDep) -> MembersService:
    return MembersService(session, scope)


def get_invites_service(session: SessionDep, scope: OrgScopeDep) -> InvitesService:
    return InvitesService(session, scope)


def get_assets_service(session: SessionDep, scope: OrgScopeDep) -> AssetsService:
    return AssetsService(session, scope)


def get_licenses_service(session: SessionDep, scope: OrgScopeDep) -> LicensesService:
    return LicensesService(session, scope)


def get_audit_service(session: SessionDep, scope: OrgScopeDep) -> AuditService:
    return AuditService(session, scope)


def get_import_service(session: SessionDep, scope: OrgScopeDep) -> ImportService:
    return ImportService(session, scope)


def get_requests_service(session: SessionDep, scope: OrgScopeDep) -> RequestsService:
    return RequestsService(session, scope)


OrganizationsServiceDep = Annotated[OrganizationsService, Depends(get_organizations_service)]
MembersServiceDep = Annotated[MembersService, Depends(get_members_service)]
InvitesServiceDep = Annotated[InvitesService, Depends(get_invites_service)]
AssetsServiceDep = Annotated[AssetsService, Depends(get_assets_service)]
LicensesServiceDep = Annotated[LicensesService, Depends(get_licenses_service)]
AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
ImportServiceDep = Annotated[ImportService, Depends(get_import_service)]
RequestsServiceDep = Annotated[RequestsService, Depends(get_requests_service)]
