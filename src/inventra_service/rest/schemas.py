"""Pydantic request/response models for REST API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class _FromRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# -- organizations -----------------------------------------------------------


class CreateOrgRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str | None = None


class UpdateOrgRequest(BaseModel):
    name: str | None = None
    settings: dict[str, Any] | None = None


class OrgSchema(_FromRow):
    id: UUID
    name: str
    slug: str
    settings: dict[str, Any] | None = None
    role: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UsageLine(BaseModel):
    count: int
    limit: int | None
    remaining: int | None
    percentage: int
    can_create: bool


class UsageSchema(BaseModel):
    plan: str
    status: str
    features: list[str]
    usage: dict[str, UsageLine]


class SubscriptionSchema(UsageSchema):
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    external_subscription_id: str | None = None


# -- members and invites -----------------------------------------------------


class MemberSchema(BaseModel):
    user_id: UUID
    email: str
    display_name: str | None = None
    role: str
    joined_at: datetime | None = None


class UpdateRoleRequest(BaseModel):
    role: str


class MembershipSchema(_FromRow):
    org_id: UUID
    user_id: UUID
    role: str


class CreateInviteRequest(BaseModel):
    email: str
    role: str = "member"


class InviteSchema(BaseModel):
    id: UUID
    email: str
    role: str
    state: str
    token: str
    expires_at: datetime
    created_at: datetime | None = None


class InvitePreviewSchema(_FromRow):
    organization_id: UUID
    organization_name: str | None = None
    email: str
    role: str
    state: str
    expires_at: datetime


# -- assets and licenses -----------------------------------------------------


class CreateAssetRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: str
    serial_number: str | None = None
    location: str | None = None
    notes: str | None = None


class UpdateAssetRequest(BaseModel):
    name: str | None = None
    category: str | None = None
    serial_number: str | None = None
    location: str | None = None
    notes: str | None = None
    status: str | None = None


class AssetSchema(_FromRow):
    id: UUID
    org_id: UUID
    qr_code: str
    name: str
    category: str
    serial_number: str | None = None
    status: str
    assignee_user_id: UUID | None = None
    location: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CreateLicenseRequest(BaseModel):
    product: str
    seat_key_full: str = Field(min_length=1)
    expires_at: date | None = None
    notes: str | None = None


class UpdateLicenseRequest(BaseModel):
    product: str | None = None
    seat_key_full: str | None = None
    expires_at: date | None = None
    notes: str | None = None
    status: str | None = None


class LicenseSchema(_FromRow):
    id: UUID
    org_id: UUID
    qr_code: str
    product: str
    seat_key_masked: str | None = None
    status: str
    assignee_user_id: UUID | None = None
    expires_at: date | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RevealKeyResponse(BaseModel):
    license_id: UUID
    seat_key_full: str | None
    visible_seconds: int


class AssignRequest(BaseModel):
    user_id: UUID


# -- audit, import, requests -------------------------------------------------


class AuditEntrySchema(_FromRow):
    id: UUID
    resource_type: str
    resource_id: UUID
    action: str
    by_user_id: UUID
    by_user_email: str | None = None
    by_user_name: str | None = None
    to_user_id: UUID | None = None
    metadata: dict[str, Any] | None = None
    timestamp: datetime


class AuditPageSchema(BaseModel):
    entries: list[AuditEntrySchema]
    total: int
    page: int
    page_size: int
    total_pages: int


class ImportRequest(BaseModel):
    csv: str


class ImportRowError(BaseModel):
    line: int
    errors: list[str]


class ImportReportSchema(_FromRow):
    created: int
    errors: list[ImportRowError]


class CreateRequestRequest(BaseModel):
    resource_type: str
    resource_id: UUID
    type: str
    notes: str | None = None


class UpdateRequestRequest(BaseModel):
    status: str


class RequestSchema(_FromRow):
    id: UUID
    org_id: UUID
    resource_type: str
    resource_id: UUID
    requester_user_id: UUID
    type: str
    status: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# -- webhook -----------------------------------------------------------------


class PaymentEvent(BaseModel):
    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class WebhookResponse(_FromRow):
    applied: bool
    reason: str | None = None
    plan: str | None = None
    status: str | None = None
