"""Borrow/return/transfer request endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from inventra_service.rest.schemas import CreateRequestRequest, RequestSchema, UpdateRequestRequest
from inventra_service.services.deps import RequestsServiceDep

router = APIRouter(prefix="/orgs/{org_id}/requests")


@router.get("", response_model=list[RequestSchema])
async def list_requests(service: RequestsServiceDep, status: str | None = None) -> list[RequestSchema]:
    return [RequestSchema.model_validate(r) for r in await service.list(status=status)]


@router.post("", response_model=RequestSchema, status_code=201)
async def create_request(request: CreateRequestRequest, service: RequestsServiceDep) -> RequestSchema:
    created = await service.create(
        resource_type=request.resource_type,
        resource_id=request.resource_id,
        type=request.type,
        notes=request.notes,
    )
    return RequestSchema.model_validate(created)


@router.patch("/{request_id}", response_model=RequestSchema)
async def update_request(
    request_id: UUID, request: UpdateRequestRequest, service: RequestsServiceDep
) -> RequestSchema:
    return RequestSchema.model_validate(await service.set_status(request_id, request.status))
