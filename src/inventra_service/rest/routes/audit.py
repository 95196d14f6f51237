"""Audit log report and CSV export."""

from __future__ import annotations

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from inventra_service.domain import AuditAction, ResourceType
from inventra_service.rest.schemas import AuditEntrySchema, AuditPageSchema
from inventra_service.services.deps import AuditServiceDep

router = APIRouter(prefix="/orgs/{org_id}/audit")


@router.get("", response_model=AuditPageSchema)
async def list_audit(
    service: AuditServiceDep,
    days: int | None = Query(30, ge=1),
    action: AuditAction | None = None,
    resource_type: ResourceType | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=200),
) -> AuditPageSchema:
    result = await service.query(
        days=days,
        action=action,
        resource_type=resource_type,
        search=search,
        page=page,
        page_size=page_size,
    )
    return AuditPageSchema(
        entries=[AuditEntrySchema.model_validate(e) for e in result.entries],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/export", response_class=PlainTextResponse)
async def export_audit(
    service: AuditServiceDep,
    days: int | None = Query(30, ge=1),
    action: AuditAction | None = None,
    resource_type: ResourceType | None = None,
    search: str | None = None,
) -> PlainTextResponse:
    filename, body = await service.export_csv(
        days=days, action=action, resource_type=resource_type, search=search
    )
    return PlainTextResponse(
        body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
