"""License endpoints, including the seat-key reveal."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response

from inventra_service.domain import ResourceType
from inventra_service.rest.schemas import (
    AssignRequest,
    AuditEntrySchema,
    CreateLicenseRequest,
    LicenseSchema,
    RevealKeyResponse,
    UpdateLicenseRequest,
)
from inventra_service.services.deps import AuditServiceDep, LicensesServiceDep

router = APIRouter(prefix="/orgs/{org_id}/licenses")


@router.get("", response_model=list[LicenseSchema])
async def list_licenses(
    service: LicensesServiceDep,
    status: str | None = None,
    product: str | None = None,
    search: str | None = None,
    assignee_user_id: UUID | None = None,
) -> list[LicenseSchema]:
    views = await service.list(
        status=status, product=product, search=search, assignee_user_id=assignee_user_id
    )
    return [LicenseSchema.model_validate(v) for v in views]


@router.post("", response_model=LicenseSchema, status_code=201)
async def create_license(request: CreateLicenseRequest, service: LicensesServiceDep) -> LicenseSchema:
    return LicenseSchema.model_validate(await service.create(**request.model_dump()))


@router.get("/{license_id}", response_model=LicenseSchema)
async def get_license(license_id: UUID, service: LicensesServiceDep) -> LicenseSchema:
    return LicenseSchema.model_validate(await service.get(license_id))


@router.patch("/{license_id}", response_model=LicenseSchema)
async def update_license(
    license_id: UUID, request: UpdateLicenseRequest, service: LicensesServiceDep
) -> LicenseSchema:
    view = await service.update(license_id, **request.model_dump(exclude_unset=True))
    return LicenseSchema.model_validate(view)


@router.delete("/{license_id}", status_code=204)
async def delete_license(license_id: UUID, service: LicensesServiceDep) -> Response:
    await service.delete(license_id)
    return Response(status_code=204)


@router.post("/{license_id}/check-out", response_model=LicenseSchema)
async def check_out(license_id: UUID, service: LicensesServiceDep) -> LicenseSchema:
    return LicenseSchema.model_validate(await service.check_out(license_id))


@router.post("/{license_id}/check-in", response_model=LicenseSchema)
async def check_in(license_id: UUID, service: LicensesServiceDep) -> LicenseSchema:
    return LicenseSchema.model_validate(await service.check_in(license_id))


@router.post("/{license_id}/assign", response_model=LicenseSchema)
async def assign(license_id: UUID, request: AssignRequest, service: LicensesServiceDep) -> LicenseSchema:
    return LicenseSchema.model_validate(await service.assign(license_id, request.user_id))


@router.post("/{license_id}/reveal", response_model=RevealKeyResponse)
async def reveal_key(license_id: UUID, service: LicensesServiceDep, response: Response) -> RevealKeyResponse:
    key, seconds = await service.reveal_full_key(license_id)
    response.headers["Cache-Control"] = "no-store"
    return RevealKeyResponse(license_id=license_id, seat_key_full=key, visible_seconds=seconds)


@router.get("/{license_id}/history", response_model=list[AuditEntrySchema])
async def history(
    license_id: UUID, service: LicensesServiceDep, audit: AuditServiceDep
) -> list[AuditEntrySchema]:
    await service.get(license_id)
    entries = await audit.history(ResourceType.LICENSE, license_id)
    return [AuditEntrySchema.model_validate(e) for e in entries]
