"""
Role gate: pure predicates deciding what a member may do inside an organization.

Every predicate takes the role taken from the caller's membership row (``None``
when there is no membership) so it can be unit-tested without a database.
``TenancyGuard`` feeds these predicates from the ``organization_members``
table, the only place roles are stored.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol
from uuid import UUID

import structlog

from inventra_service.domain import Role
from inventra_service.errors import AuthorizationDenied

log = structlog.get_logger(__name__)

ADMIN_ROLES = frozenset({Role.ADMIN, Role.OWNER})


class Principal(Protocol):
    user_id: UUID
    role: str


class Action(str, Enum):
    MANAGE_RESOURCES = "manage_resources"
    INVITE_MEMBER = "invite_member"
    CHANGE_ROLE = "change_role"
    REMOVE_MEMBER = "remove_member"
    UPDATE_ORG_NAME = "update_org_name"
    UPDATE_ORG_SETTINGS = "update_org_settings"
    DELETE_ORG = "delete_org"
    REVEAL_LICENSE_KEY = "reveal_license_key"
    VIEW_LICENSE_DETAILS = "view_license_details"
    MANAGE_REQUESTS = "manage_requests"


def _as_role(role: str | Role | None) -> Role | None:
    if role is None:
        return None
    try:
        return Role(role)
    except ValueError:
        return None


def is_member(role: str | Role | None) -> bool:
    """True iff a membership row exists (any valid role)."""
    return _as_role(role) is not None


def has_role(role: str | Role | None, required: str | Role) -> bool:
    """Exact-role match."""
    actual = _as_role(role)
    return actual is not None and actual == Role(required)


def is_admin(role: str | Role | None) -> bool:
    """Role is admin or owner."""
    return _as_role(role) in ADMIN_ROLES


def _can_change_role(actor: Principal, target: Principal | None) -> bool:
    if target is None or not has_role(actor.role, Role.OWNER):
        return False
    # Owners are a floor: not demotable through this path, and never on self
    return target.user_id != actor.user_id and not has_role(target.role, Role.OWNER)


def _can_remove_member(actor: Principal, target: Principal | None) -> bool:
    if target is None or not is_member(actor.role):
        return False
    if target.user_id == actor.user_id:
        return not has_role(actor.role, Role.OWNER)
    return is_admin(actor.role) and not has_role(target.role, Role.OWNER)


def can(action: Action, actor: Principal, target: Principal | None = None) -> bool:
    """Decide whether ``actor`` may perform ``action`` (optionally on ``target``)."""
    if action is Action.CHANGE_ROLE:
        return _can_change_role(actor, target)
    if action is Action.REMOVE_MEMBER:
        return _can_remove_member(actor, target)
    if action in (Action.UPDATE_ORG_NAME, Action.DELETE_ORG):
        return has_role(actor.role, Role.OWNER)
    if action is Action.VIEW_LICENSE_DETAILS:
        return is_member(actor.role)
    # Everything else is an admin-level mutation
    return is_admin(actor.role)


def require(action: Action, actor: Principal, target: Principal | None = None) -> None:
    """Raise ``AuthorizationDenied`` unless ``can(action, actor, target)``."""
    if not can(action, actor, target):
        log.info("authorization_denied", action=action.value, user_id=str(actor.user_id))
        raise AuthorizationDenied()
