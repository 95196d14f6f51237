"""License key masking."""

from __future__ import annotations

MASK = "****"


def mask_key(full_key: str | None) -> str:
    """Hide all but the last four characters behind fixed placeholder groups.

    >>> mask_key("ABCD-1234-WXYZ-9999")
    '****-****-****-9999'
    >>> mask_key("abc")
    '****'
    """
    if not full_key or len(full_key) <= 4:
        return MASK
    return f"{MASK}-{MASK}-{MASK}-{full_key[-4:]}"
