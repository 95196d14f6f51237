"""Domain enumerations shared by models, policy and the REST layer."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Per-organization membership role."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class Plan(str, Enum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"


class ResourceKind(str, Enum):
    """Resource kinds counted against plan ceilings."""
    ASSET = "asset"
    LICENSE = "license"
    MEMBER = "member"


class Feature(str, Enum):
    BULK_IMPORT = "bulk_import"
    AUDIT_LOG = "audit_log"
    PRIORITY_SUPPORT = "priority_support"


class AssetCategory(str, Enum):
    LAPTOP = "laptop"
    MONITOR = "monitor"
    DOCK = "dock"
    PERIPHERAL = "peripheral"
    OTHER = "other"


class AssetStatus(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class LicenseProduct(str, Enum):
    ADOBE_CC = "adobe_cc"
    JETBRAINS = "jetbrains"
    OFFICE_365 = "office_365"
    GITHUB = "github"
    OTHER = "other"


class LicenseStatus(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    EXPIRED = "expired"


class ResourceType(str, Enum):
    """Resource types that carry an audit trail."""
    ASSET = "asset"
    LICENSE = "license"


class AuditAction(str, Enum):
    CHECK_OUT = "check_out"
    CHECK_IN = "check_in"
    ASSIGN_OVERRIDE = "assign_override"
    EDIT = "edit"
    CREATE = "create"
    RETIRE = "retire"
    DELETE = "delete"
    REVEAL_KEY = "reveal_key"


class RequestType(str, Enum):
    BORROW = "borrow"
    RETURN = "return"
    TRANSFER = "transfer"


class RequestStatus(str, Enum):
    OPEN = "open"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class InviteState(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
