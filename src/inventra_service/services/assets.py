"""Asset lifecycle: create, edit, delete, check-out, check-in, assign."""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import AssetModel
from inventra_service.db.repositories.assets import AssetsRepo
from inventra_service.domain import AssetCategory, AssetStatus, AuditAction, ResourceKind, ResourceType
from inventra_service.errors import AuthorizationDenied, Conflict, NotFound, ValidationError
from inventra_service.policy.roles import Action, require
from inventra_service.policy.tenancy import OrgScope
from inventra_service.services.audit import AuditService
from inventra_service.services.gate import PlanGate
from inventra_service.services.inventory import CheckoutRules

log = structlog.get_logger(__name__)

_EDITABLE = ("name", "category", "serial_number", "location", "notes", "status")


def _check_enum(enum_cls, value: str, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}: {value}") from exc


class AssetsService:
    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._session = session
        self._scope = scope
        self._repo = AssetsRepo(session, scope)
        self._gate = PlanGate(session, scope)
        self._audit = AuditService(session, scope)
        self._rules = CheckoutRules(session, scope)

    async def _load(self, asset_id: UUID) -> AssetModel:
        asset = await self._repo.get(asset_id)
        if asset is None:
            raise NotFound("Asset")
        return asset

    async def get(self, asset_id: UUID) -> AssetModel:
        return await self._load(asset_id)

    async def list(self, **filters: Any) -> list[AssetModel]:
        return await self._repo.list(**filters)

    async def create(
        self,
        name: str,
        category: str,
        serial_number: str | None = None,
        location: str | None = None,
        notes: str | None = None,
    ) -> AssetModel:
        require(Action.MANAGE_RESOURCES, self._scope)
        category = _check_enum(AssetCategory, category, "category")
        if not name or not name.strip():
            raise ValidationError("Asset name is required")
        await self._gate.reserve(ResourceKind.ASSET)
        if location is None:
            location = (await self._rules.org_settings()).get("defaultAssetLocation")
        asset = await self._repo.create(
            name=name.strip(),
            category=category,
            serial_number=serial_number,
            location=location,
            notes=notes,
        )
        await self._audit.record(
            ResourceType.ASSET,
            asset.id,
            AuditAction.CREATE,
            metadata={"name": asset.name, "category": asset.category},
        )
        await self._session.commit()
        log.info("asset_created", org_id=str(self._scope.org_id), asset_id=str(asset.id))
        return asset

    async def update(self, asset_id: UUID, **fields: Any) -> AssetModel:
        require(Action.MANAGE_RESOURCES, self._scope)
        asset = await self._load(asset_id)
        changes = {k: v for k, v in fields.items() if k in _EDITABLE and getattr(asset, k) != v}
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationError("Asset name is required")
        if "category" in changes:
            changes["category"] = _check_enum(AssetCategory, changes["category"], "category")
        if "status" in changes:
            changes["status"] = _check_enum(AssetStatus, changes["status"], "status")
            if changes["status"] == AssetStatus.ASSIGNED.value:
                raise ValidationError("Use check-out or assign to give an asset an assignee")
            changes["assignee_user_id"] = None
        if not changes:
            return asset
        old = {k: getattr(asset, k) for k in changes}
        asset = await self._repo.update(asset, **changes)
        action = (
            AuditAction.RETIRE
            if changes.get("status") == AssetStatus.RETIRED.value
            else AuditAction.EDIT
        )
        await self._audit.record(
            ResourceType.ASSET,
            asset.id,
            action,
            metadata={
                "changes": {
                    k: {"old": _plain(old[k]), "new": _plain(changes[k])} for k in changes
                }
            },
        )
        await self._session.commit()
        return asset

    async def delete(self, asset_id: UUID) -> None:
        require(Action.MANAGE_RESOURCES, self._scope)
        asset = await self._load(asset_id)
        await self._audit.record(
            ResourceType.ASSET, asset.id, AuditAction.DELETE, metadata={"name": asset.name}
        )
        await self._repo.delete(asset)
        await self._session.commit()
        log.info("asset_deleted", org_id=str(self._scope.org_id), asset_id=str(asset_id))

    async def check_out(self, asset_id: UUID) -> AssetModel:
        asset = await self._load(asset_id)
        if asset.status != AssetStatus.AVAILABLE.value or asset.assignee_user_id is not None:
            raise Conflict("Asset is not available")
        await self._rules.ensure_can_check_out(ResourceType.ASSET, asset.id)
        old_status = asset.status
        asset = await self._repo.update(
            asset, status=AssetStatus.ASSIGNED.value, assignee_user_id=self._scope.user_id
        )
        await self._audit.record(
            ResourceType.ASSET,
            asset.id,
            AuditAction.CHECK_OUT,
            to_user_id=self._scope.user_id,
            metadata={"old_status": old_status, "new_status": asset.status},
        )
        await self._session.commit()
        return asset

    async def check_in(self, asset_id: UUID) -> AssetModel:
        asset = await self._load(asset_id)
        if asset.assignee_user_id is None:
            raise Conflict("Asset is not checked out")
        if asset.assignee_user_id != self._scope.user_id and not self._scope.is_admin:
            raise AuthorizationDenied()
        old_status = asset.status
        asset = await self._repo.update(
            asset, status=AssetStatus.AVAILABLE.value, assignee_user_id=None
        )
        await self._audit.record(
            ResourceType.ASSET,
            asset.id,
            AuditAction.CHECK_IN,
            metadata={"old_status": old_status, "new_status": asset.status},
        )
        await self._session.commit()
        return asset

    async def assign(self, asset_id: UUID, user_id: UUID) -> AssetModel:
        require(Action.MANAGE_RESOURCES, self._scope)
        asset = await self._load(asset_id)
        if asset.status == AssetStatus.RETIRED.value:
            raise Conflict("Retired assets cannot be assigned")
        await self._rules.ensure_member(user_id)
        old_status = asset.status
        asset = await self._repo.update(
            asset, status=AssetStatus.ASSIGNED.value, assignee_user_id=user_id
        )
        await self._audit.record(
            ResourceType.ASSET,
            asset.id,
            AuditAction.ASSIGN_OVERRIDE,
            to_user_id=user_id,
            metadata={"old_status": old_status, "new_status": asset.status},
        )
        await self._session.commit()
        return asset


def _plain(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value
