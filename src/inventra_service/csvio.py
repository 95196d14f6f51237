"""CSV import validation and export serialization."""

from __future__ import annotations

import csv
import io
import json
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from inventra_service.domain import AssetCategory, LicenseProduct

ASSET_HEADER = ("name", "category", "serial_number", "location", "notes")
LICENSE_HEADER = ("product", "seat_key_full", "expires_at", "notes")

MAX_NAME_LENGTH = 255
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_VALID_CATEGORIES = {c.value for c in AssetCategory}
_VALID_PRODUCTS = {p.value for p in LicenseProduct}


@dataclass
class RowResult:
    line: int  # 1-based line number in the source text, header is line 1
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def parse_csv(text: str) -> list[list[str]]:
    """Split CSV text into trimmed cells, skipping blank lines."""
    rows = []
    for row in csv.reader(io.StringIO(text.strip())):
        cells = [cell.strip() for cell in row]
        if any(cells):
            rows.append(cells)
    return rows


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def validate_asset_rows(rows: Sequence[Sequence[str]]) -> list[RowResult]:
    """Validate data rows (header excluded) against ``ASSET_HEADER``."""
    results = []
    for offset, row in enumerate(rows):
        name, category, serial, location, notes = (_cell(row, i) for i in range(len(ASSET_HEADER)))
        result = RowResult(line=offset + 2)
        if not name:
            result.errors.append("name is required")
        elif len(name) > MAX_NAME_LENGTH:
            result.errors.append("name is too long")
        if category.lower() not in _VALID_CATEGORIES:
            result.errors.append(f"invalid category: {category}")
        result.data = {
            "name": name,
            "category": category.lower(),
            "serial_number": serial or None,
            "location": location or None,
            "notes": notes or None,
        }
        results.append(result)
    return results


def validate_license_rows(rows: Sequence[Sequence[str]]) -> list[RowResult]:
    """Validate data rows (header excluded) against ``LICENSE_HEADER``."""
    results = []
    for offset, row in enumerate(rows):
        product, key, expires, notes = (_cell(row, i) for i in range(len(LICENSE_HEADER)))
        result = RowResult(line=offset + 2)
        if product.lower() not in _VALID_PRODUCTS:
            result.errors.append(f"invalid product: {product}")
        if not key:
            result.errors.append("license key is required")
        expires_at = None
        if expires:
            if not _DATE_RE.match(expires):
                result.errors.append("invalid date format (use YYYY-MM-DD)")
            else:
                try:
                    expires_at = date.fromisoformat(expires)
                except ValueError:
                    result.errors.append(f"invalid date: {expires}")
        result.data = {
            "product": product.lower(),
            "seat_key_full": key,
            "expires_at": expires_at,
            "notes": notes or None,
        }
        results.append(result)
    return results


def escape_value(value: Any) -> str:
    if value is None:
        return ""
    text = json.dumps(value, default=str) if isinstance(value, (dict, list)) else str(value)
    if any(ch in text for ch in (",", '"', "\n")):
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[tuple[str, str]]) -> str:
    """Serialize ``rows`` as CSV; ``columns`` are ``(key, label)`` pairs."""
    lines = [",".join(escape_value(label) for _, label in columns)]
    for row in rows:
        lines.append(",".join(escape_value(row.get(key)) for key, _ in columns))
    return "\n".join(lines)
