"""Audit trail recording, reporting and CSV export."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.csvio import to_csv
from inventra_service.db.models import AuditLogModel, UserModel
from inventra_service.db.repositories.audit import AuditRepo
from inventra_service.domain import AuditAction, Feature, ResourceType
from inventra_service.policy.tenancy import OrgScope
from inventra_service.services.gate import PlanGate
from inventra_service.settings import settings

EXPORT_COLUMNS = (
    ("date", "date"),
    ("time", "time"),
    ("action", "action"),
    ("resource_type", "resource_type"),
    ("resource_id", "resource_id"),
    ("user", "user"),
    ("details", "details"),
)


@dataclass
class AuditEntry:
    id: UUID
    resource_type: str
    resource_id: UUID
    action: str
    by_user_id: UUID
    by_user_email: str | None
    by_user_name: str | None
    to_user_id: UUID | None
    metadata: dict[str, Any] | None
    timestamp: datetime

    @classmethod
    def from_row(cls, entry: AuditLogModel, actor: UserModel | None) -> AuditEntry:
        return cls(
            id=entry.id,
            resource_type=entry.resource_type,
            resource_id=entry.resource_id,
            action=entry.action,
            by_user_id=entry.by_user_id,
            by_user_email=actor.email if actor else None,
            by_user_name=actor.display_name if actor else None,
            to_user_id=entry.to_user_id,
            metadata=entry.details,
            timestamp=entry.timestamp,
        )

    def matches(self, needle: str) -> bool:
        needle = needle.lower()
        haystack = (self.by_user_name or "", self.by_user_email or "", str(self.resource_id))
        return any(needle in value.lower() for value in haystack)


@dataclass
class AuditPage:
    entries: list[AuditEntry]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.page_size) if self.page_size else 0


class AuditService:
    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._repo = AuditRepo(session, scope)
        self._gate = PlanGate(session, scope)

    async def record(
        self,
        resource_type: ResourceType,
        resource_id: UUID,
        action: AuditAction,
        to_user_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogModel:
        return await self._repo.append(
            resource_type=resource_type.value,
            resource_id=resource_id,
            action=action.value,
            to_user_id=to_user_id,
            details=metadata,
        )

    async def history(self, resource_type: ResourceType, resource_id: UUID) -> list[AuditEntry]:
        rows = await self._repo.query(resource_type=resource_type.value, resource_id=resource_id)
        return [AuditEntry.from_row(entry, actor) for entry, actor in rows]

    async def _filtered(
        self,
        days: int | None,
        action: AuditAction | None,
        resource_type: ResourceType | None,
        search: str | None,
    ) -> list[AuditEntry]:
        await self._gate.require_feature(Feature.AUDIT_LOG)
        since = datetime.now(UTC) - timedelta(days=days) if days else None
        rows = await self._repo.query(
            since=since,
            action=action.value if action else None,
            resource_type=resource_type.value if resource_type else None,
            limit=settings.audit_query_limit,
        )
        entries = [AuditEntry.from_row(entry, actor) for entry, actor in rows]
        if search:
            entries = [e for e in entries if e.matches(search)]
        return entries

    async def query(
        self,
        days: int | None = 30,
        action: AuditAction | None = None,
        resource_type: ResourceType | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> AuditPage:
        size = page_size or settings.audit_page_size
        entries = await self._filtered(days, action, resource_type, search)
        start = (max(page, 1) - 1) * size
        return AuditPage(entries=entries[start : start + size], total=len(entries), page=page, page_size=size)

    async def export_csv(
        self,
        days: int | None = 30,
        action: AuditAction | None = None,
        resource_type: ResourceType | None = None,
        search: str | None = None,
    ) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` for the filtered audit log."""
        entries = await self._filtered(days, action, resource_type, search)
        rows = [
            {
                "date": e.timestamp.strftime("%Y-%m-%d"),
                "time": e.timestamp.strftime("%H:%M:%S"),
                "action": e.action,
                "resource_type": e.resource_type,
                "resource_id": str(e.resource_id),
                "user": e.by_user_name or e.by_user_email or str(e.by_user_id),
                "details": e.metadata or None,
            }
            for e in entries
        ]
        filename = f"audit_log_{datetime.now(UTC).date().isoformat()}.csv"
        return filename, to_csv(rows, EXPORT_COLUMNS)
