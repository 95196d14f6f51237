"""Asset endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response

from inventra_service.domain import ResourceType
from inventra_service.rest.schemas import (
    AssetSchema,
    AssignRequest,
    AuditEntrySchema,
    CreateAssetRequest,
    UpdateAssetRequest,
)
from inventra_service.services.deps import AssetsServiceDep, AuditServiceDep

router = APIRouter(prefix="/orgs/{org_id}/assets")


@router.get("", response_model=list[AssetSchema])
async def list_assets(
    service: AssetsServiceDep,
    status: str | None = None,
    category: str | None = None,
    search: str | None = None,
    assignee_user_id: UUID | None = None,
) -> list[AssetSchema]:
    assets = await service.list(
        status=status, category=category, search=search, assignee_user_id=assignee_user_id
    )
    return [AssetSchema.model_validate(a) for a in assets]


@router.post("", response_model=AssetSchema, status_code=201)
async def create_asset(request: CreateAssetRequest, service: AssetsServiceDep) -> AssetSchema:
    return AssetSchema.model_validate(await service.create(**request.model_dump()))


@router.get("/{asset_id}", response_model=AssetSchema)
async def get_asset(asset_id: UUID, service: AssetsServiceDep) -> AssetSchema:
    return AssetSchema.model_validate(await service.get(asset_id))


@router.patch("/{asset_id}", response_model=AssetSchema)
async def update_asset(asset_id: UUID, request: UpdateAssetRequest, service: AssetsServiceDep) -> AssetSchema:
    asset = await service.update(asset_id, **request.model_dump(exclude_unset=True))
    return AssetSchema.model_validate(asset)


@router.delete("/{asset_id}", status_code=204)
async def delete_asset(asset_id: UUID, service: AssetsServiceDep) -> Response:
    await service.delete(asset_id)
    return Response(status_code=204)


@router.post("/{asset_id}/check-out", response_model=AssetSchema)
async def check_out(asset_id: UUID, service: AssetsServiceDep) -> AssetSchema:
    return AssetSchema.model_validate(await service.check_out(asset_id))


@router.post("/{asset_id}/check-in", response_model=AssetSchema)
async def check_in(asset_id: UUID, service: AssetsServiceDep) -> AssetSchema:
    return AssetSchema.model_validate(await service.check_in(asset_id))


@router.post("/{asset_id}/assign", response_model=AssetSchema)
async def assign(asset_id: UUID, request: AssignRequest, service: AssetsServiceDep) -> AssetSchema:
    return AssetSchema.model_validate(await service.assign(asset_id, request.user_id))


@router.get("/{asset_id}/history", response_model=list[AuditEntrySchema])
async def history(asset_id: UUID, service: AssetsServiceDep, audit: AuditServiceDep) -> list[AuditEntrySchema]:
    await service.get(asset_id)
    entries = await audit.history(ResourceType.ASSET, asset_id)
    return [AuditEntrySchema.model_validate(e) for e in entries]
