from __future__ import annotations

from collections.abc import Iterable

from ..models.row_data import RowData

"""Row selection.

A row is "tracked" once its key column holds a non-blank value; tracked rows
are never reprocessed, whatever else changes in them. Everything else (key
column absent, empty or whitespace-only) needs processing. Repeated runs are
idempotent because this is the only selection criterion.
"""

__all__ = [
    "is_tracked",
    "select_unprocessed_rows",
]


def is_tracked(row: RowData, key_column: str) -> bool:
    return row.text(key_column) != ""


def select_unprocessed_rows(rows: Iterable[RowData], key_column: str) -> list[RowData]:
    """Return rows without an issue key, in original top-to-bottom order."""
    return [row for row in rows if not is_tracked(row, key_column)]
