"""License lifecycle and the seat-key reveal accessor."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.repositories.licenses import LicensesRepo, LicenseView
from inventra_service.domain import AuditAction, LicenseProduct, LicenseStatus, ResourceKind, ResourceType
from inventra_service.errors import AuthorizationDenied, Conflict, NotFound, ValidationError
from inventra_service.masking import mask_key
from inventra_service.policy.roles import Action, require
from inventra_service.policy.tenancy import OrgScope
from inventra_service.services.audit import AuditService
from inventra_service.services.gate import PlanGate
from inventra_service.services.inventory import CheckoutRules
from inventra_service.settings import settings

log = structlog.get_logger(__name__)

_EDITABLE = ("product", "expires_at", "notes", "status")


def _product(value: str) -> str:
    try:
        return LicenseProduct(value).value
    except ValueError as exc:
        raise ValidationError(f"Invalid product: {value}") from exc


def _status(value: str) -> str:
    try:
        return LicenseStatus(value).value
    except ValueError as exc:
        raise ValidationError(f"Invalid status: {value}") from exc


def is_expired(view: LicenseView, today: date | None = None) -> bool:
    if view.status == LicenseStatus.EXPIRED.value:
        return True
    today = today or datetime.now(UTC).date()
    return view.expires_at is not None and view.expires_at < today


class LicensesService:
    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._session = session
        self._scope = scope
        self._repo = LicensesRepo(session, scope)
        self._gate = PlanGate(session, scope)
        self._audit = AuditService(session, scope)
        self._rules = CheckoutRules(session, scope)

    async def _load(self, license_id: UUID) -> LicenseView:
        view = await self._repo.get(license_id)
        if view is None:
            raise NotFound("License")
        return view

    async def get(self, license_id: UUID) -> LicenseView:
        require(Action.VIEW_LICENSE_DETAILS, self._scope)
        return await self._load(license_id)

    async def list(self, **filters: Any) -> list[LicenseView]:
        require(Action.VIEW_LICENSE_DETAILS, self._scope)
        return await self._repo.list(**filters)

    async def create(
        self,
        product: str,
        seat_key_full: str,
        expires_at: date | None = None,
        notes: str | None = None,
    ) -> LicenseView:
        require(Action.MANAGE_RESOURCES, self._scope)
        product = _product(product)
        if not seat_key_full:
            raise ValidationError("License key is required")
        await self._gate.reserve(ResourceKind.LICENSE)
        view = await self._repo.create(
            seat_key_full=seat_key_full,
            product=product,
            seat_key_masked=mask_key(seat_key_full),
            expires_at=expires_at,
            notes=notes,
        )
        await self._audit.record(
            ResourceType.LICENSE, view.id, AuditAction.CREATE, metadata={"product": product}
        )
        await self._session.commit()
        log.info("license_created", org_id=str(self._scope.org_id), license_id=str(view.id))
        return view

    async def update(self, license_id: UUID, seat_key_full: str | None = None, **fields: Any) -> LicenseView:
        """Edit a license. A new ``seat_key_full`` replaces the key and its mask."""
        require(Action.MANAGE_RESOURCES, self._scope)
        current = await self._load(license_id)
        changes = {k: v for k, v in fields.items() if k in _EDITABLE and getattr(current, k) != v}
        if "product" in changes:
            changes["product"] = _product(changes["product"])
        if "status" in changes:
            changes["status"] = _status(changes["status"])
            if changes["status"] == LicenseStatus.ASSIGNED.value:
                raise ValidationError("Use check-out or assign to give a license an assignee")
            changes["assignee_user_id"] = None
        audit_changes = {
            k: {"old": _plain(getattr(current, k)), "new": _plain(v)} for k, v in changes.items()
        }
        if seat_key_full:
            changes["seat_key_full"] = seat_key_full
            changes["seat_key_masked"] = mask_key(seat_key_full)
            audit_changes["seat_key"] = {"old": current.seat_key_masked, "new": changes["seat_key_masked"]}
        if not changes:
            return current
        view = await self._repo.update(license_id, **changes)
        await self._audit.record(
            ResourceType.LICENSE, license_id, AuditAction.EDIT, metadata={"changes": audit_changes}
        )
        await self._session.commit()
        return view

    async def delete(self, license_id: UUID) -> None:
        require(Action.MANAGE_RESOURCES, self._scope)
        view = await self._load(license_id)
        await self._audit.record(
            ResourceType.LICENSE, view.id, AuditAction.DELETE, metadata={"product": view.product}
        )
        await self._repo.delete(license_id)
        await self._session.commit()
        log.info("license_deleted", org_id=str(self._scope.org_id), license_id=str(license_id))

    async def check_out(self, license_id: UUID) -> LicenseView:
        view = await self._load(license_id)
        if is_expired(view):
            raise ValidationError("License has expired")
        if view.status != LicenseStatus.AVAILABLE.value or view.assignee_user_id is not None:
            raise Conflict("License is not available")
        await self._rules.ensure_can_check_out(ResourceType.LICENSE, view.id)
        updated = await self._repo.update(
            license_id, status=LicenseStatus.ASSIGNED.value, assignee_user_id=self._scope.user_id
        )
        await self._audit.record(
            ResourceType.LICENSE,
            license_id,
            AuditAction.CHECK_OUT,
            to_user_id=self._scope.user_id,
            metadata={"old_status": view.status, "new_status": updated.status},
        )
        await self._session.commit()
        return updated

    async def check_in(self, license_id: UUID) -> LicenseView:
        view = await self._load(license_id)
        if view.assignee_user_id is None:
            raise Conflict("License is not checked out")
        if view.assignee_user_id != self._scope.user_id and not self._scope.is_admin:
            raise AuthorizationDenied()
        new_status = LicenseStatus.EXPIRED.value if is_expired(view) else LicenseStatus.AVAILABLE.value
        updated = await self._repo.update(license_id, status=new_status, assignee_user_id=None)
        await self._audit.record(
            ResourceType.LICENSE,
            license_id,
            AuditAction.CHECK_IN,
            metadata={"old_status": view.status, "new_status": updated.status},
        )
        await self._session.commit()
        return updated

    async def assign(self, license_id: UUID, user_id: UUID) -> LicenseView:
        require(Action.MANAGE_RESOURCES, self._scope)
        view = await self._load(license_id)
        if is_expired(view):
            raise Conflict("License has expired")
        await self._rules.ensure_member(user_id)
        updated = await self._repo.update(
            license_id, status=LicenseStatus.ASSIGNED.value, assignee_user_id=user_id
        )
        await self._audit.record(
            ResourceType.LICENSE,
            license_id,
            AuditAction.ASSIGN_OVERRIDE,
            to_user_id=user_id,
            metadata={"old_status": view.status, "new_status": updated.status},
        )
        await self._session.commit()
        return updated

    async def reveal_full_key(self, license_id: UUID) -> tuple[str | None, int]:
        """
        Return the full seat key and how many seconds a client may display it.

        Restricted to owners and admins. Every successful reveal is written to
        the audit trail. The key itself is never logged.
        """
        require(Action.REVEAL_LICENSE_KEY, self._scope)
        found, key = await self._repo.read_full_key(license_id)
        if not found:
            raise NotFound("License")
        await self._audit.record(ResourceType.LICENSE, license_id, AuditAction.REVEAL_KEY)
        await self._session.commit()
        log.info("license_key_revealed", org_id=str(self._scope.org_id), license_id=str(license_id))
        return key, settings.key_reveal_seconds


def _plain(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value
