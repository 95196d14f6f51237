"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


def _now() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that always round-trips as UTC.

    Backends without a timestamptz type (SQLite) hand back naive values;
    those are re-tagged as UTC on load.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


JSONType = JSON().with_variant(JSONB(), "postgresql")

DEFAULT_ORG_SETTINGS: dict = {
    "allowSelfAssignment": True,
    "requireApprovalForCheckout": False,
    "defaultAssetLocation": None,
    "notificationEmail": None,
    "timezone": "America/Costa_Rica",
}


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Identity / tenancy models
# ---------------------------------------------------------------------------


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    display_name = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, default=_now)


class OrganizationModel(Base):
    __tablename__ = "organizations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, unique=True, nullable=False)
    settings = Column(JSONType, nullable=False, default=lambda: dict(DEFAULT_ORG_SETTINGS))
    created_at = Column(UTCDateTime, default=_now)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now)


class MembershipModel(Base):
    """The (organization, user, role) relation. Sole source of a user's role."""

    __tablename__ = "organization_members"
    __table_args__ = (UniqueConstraint("org_id", "user_id", name="uq_member_org_user"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False, default="member")
    created_at = Column(UTCDateTime, default=_now)


class InviteModel(Base):
    __tablename__ = "organization_invites"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email = Column(Text, nullable=False, index=True)
    role = Column(String, nullable=False, default="member")
    invited_by = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = Column(Text, unique=True, nullable=False, index=True)
    expires_at = Column(UTCDateTime, nullable=False)
    accepted_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=_now)


class SubscriptionModel(Base):
    __tablename__ = "organization_subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    plan = Column(String, nullable=False, default="free")
    status = Column(String, nullable=False, default="active")
    external_supporter_email = Column(Text, nullable=True, index=True)
    external_subscription_id = Column(Text, nullable=True)
    activated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    current_period_start = Column(UTCDateTime, nullable=True)
    current_period_end = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=_now)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now)


# ---------------------------------------------------------------------------
# Inventory models
# ---------------------------------------------------------------------------


class AssetModel(Base):
    __tablename__ = "assets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    qr_code = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    category = Column(String, nullable=False)
    serial_number = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="available")
    assignee_user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    location = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, default=_now)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now)


class LicenseModel(Base):
    __tablename__ = "licenses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    qr_code = Column(Text, unique=True, nullable=False)
    product = Column(String, nullable=False)
    seat_key_masked = Column(Text, nullable=True)
    seat_key_full = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="available")
    assignee_user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, default=_now)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now)


class AuditLogModel(Base):
    """Append-only. Rows are removed only together with their organization."""

    __tablename__ = "audit_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_type = Column(String, nullable=False)
    resource_id = Column(Uuid, nullable=False, index=True)
    action = Column(String, nullable=False)
    by_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    to_user_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSONType, nullable=True)
    timestamp = Column(UTCDateTime, default=_now, index=True)


class RequestModel(Base):
    __tablename__ = "requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_type = Column(String, nullable=False)
    resource_id = Column(Uuid, nullable=False)
    requester_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="open")
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, default=_now)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now)
