"""Bulk CSV import endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from inventra_service.domain import ResourceType
from inventra_service.rest.schemas import ImportReportSchema, ImportRequest, ImportRowError
from inventra_service.services.deps import ImportServiceDep

router = APIRouter(prefix="/orgs/{org_id}/import")


async def _run(kind: ResourceType, request: ImportRequest, service) -> ImportReportSchema:
    report = await service.bulk_import(kind, request.csv)
    return ImportReportSchema(
        created=report.created,
        errors=[ImportRowError(**error) for error in report.errors],
    )


@router.post("/assets", response_model=ImportReportSchema)
async def import_assets(request: ImportRequest, service: ImportServiceDep) -> ImportReportSchema:
    return await _run(ResourceType.ASSET, request, service)


@router.post("/licenses", response_model=ImportReportSchema)
async def import_licenses(request: ImportRequest, service: ImportServiceDep) -> ImportReportSchema:
    return await _run(ResourceType.LICENSE, request, service)
