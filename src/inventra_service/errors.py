"""
Error taxonomy for the inventory service.

Every failure a caller can act on is one of these. The REST layer maps each
class to an HTTP status in ``rest.errors``; services and repositories raise
them and never build HTTP responses themselves.

Usage:
    from inventra_service.errors import AuthorizationDenied

    if not is_admin(scope.role):
        raise AuthorizationDenied()
"""

from __future__ import annotations

from typing import Any


class InventraError(Exception):
    """Base exception for all service errors."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthenticationRequired(InventraError):
    """No valid session accompanies the request."""

    status_code = 401
    code = "authentication_required"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationDenied(InventraError):
    """
    Valid session, but insufficient role or not a member of the organization.

    The message is fixed on purpose: it must read the same whether the target
    organization exists or not.
    """

    status_code = 403
    code = "authorization_denied"

    def __init__(self) -> None:
        super().__init__("Access denied")


class LimitExceeded(InventraError):
    """The organization's plan ceiling for a resource kind has been reached."""

    status_code = 402
    code = "limit_exceeded"

    def __init__(
        self,
        resource: str,
        *,
        plan: str,
        limit: int | None,
        reason: str = "limit_reached",
    ):
        if reason == "subscription_inactive":
            message = f"Subscription is not active; cannot create {resource}"
        else:
            message = f"Plan '{plan}' allows at most {limit} {resource}s"
        super().__init__(
            message,
            details={
                "resource": resource,
                "plan": plan,
                "limit": limit,
                "reason": reason,
                "upgrade": True,
            },
        )
        self.resource = resource
        self.plan = plan
        self.limit = limit
        self.reason = reason


class FeatureNotAvailable(InventraError):
    """The organization's plan (or subscription status) lacks a gated feature."""

    status_code = 402
    code = "feature_not_available"

    def __init__(self, feature: str, *, plan: str):
        super().__init__(
            f"Feature '{feature}' is not available on the current plan",
            details={"feature": feature, "plan": plan, "upgrade": True},
        )
        self.feature = feature
        self.plan = plan


class ValidationError(InventraError):
    """Malformed input: bad enum value, bad CSV, expired invite and the like."""

    status_code = 422
    code = "validation_error"


class NotFound(InventraError):
    """Resource absent from the caller's organization."""

    status_code = 404
    code = "not_found"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class Conflict(InventraError):
    """Duplicate invite, unique-constraint violation, already-used token."""

    status_code = 409
    code = "conflict"
