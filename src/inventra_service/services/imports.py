"""Bulk CSV import of assets and licenses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service import csvio
from inventra_service.domain import Feature, ResourceType
from inventra_service.errors import InventraError, ValidationError
from inventra_service.policy.roles import Action, require
from inventra_service.policy.tenancy import OrgScope
from inventra_service.services.assets import AssetsService
from inventra_service.services.gate import PlanGate
from inventra_service.services.licenses import LicensesService

log = structlog.get_logger(__name__)

HEADERS = {
    ResourceType.ASSET: csvio.ASSET_HEADER,
    ResourceType.LICENSE: csvio.LICENSE_HEADER,
}


@dataclass
class ImportReport:
    created: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)


class ImportService:
    """
    Validates every row independently and commits each valid row through the
    regular create path, so plan limits and auditing apply per row. A failing
    row is reported with its line number and never aborts the batch.
    """

    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._session = session
        self._scope = scope
        self._gate = PlanGate(session, scope)
        self._assets = AssetsService(session, scope)
        self._licenses = LicensesService(session, scope)

    async def bulk_import(self, kind: ResourceType, text: str) -> ImportReport:
        require(Action.MANAGE_RESOURCES, self._scope)
        await self._gate.require_feature(Feature.BULK_IMPORT)
        kind = ResourceType(kind)
        rows = csvio.parse_csv(text or "")
        if not rows:
            raise ValidationError("CSV is empty")
        header = tuple(cell.lower() for cell in rows[0])
        expected = HEADERS[kind]
        # Trailing optional columns may be omitted; short rows are padded
        if header[:1] != expected[:1] or expected[: len(header)] != header[: len(expected)]:
            raise ValidationError(f"CSV header must be: {','.join(expected)}")

        if kind is ResourceType.ASSET:
            results = csvio.validate_asset_rows(rows[1:])
            create = self._assets.create
        else:
            results = csvio.validate_license_rows(rows[1:])
            create = self._licenses.create

        report = ImportReport()
        for result in results:
            if not result.valid:
                report.errors.append({"line": result.line, "errors": result.errors})
                continue
            try:
                await create(**result.data)
            except InventraError as exc:
                await self._session.rollback()
                report.errors.append({"line": result.line, "errors": [exc.message]})
                continue
            report.created += 1

        log.info(
            "bulk_import_finished",
            org_id=str(self._scope.org_id),
            kind=kind.value,
            created=report.created,
            rejected=len(report.errors),
        )
        return report
