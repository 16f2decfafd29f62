from __future__ import annotations

from dataclasses import dataclass, field

from ..models.config_models import FieldMapping
from ..models.row_data import RowData, cell_text

"""Row validation against the field mappings.

Every required mapping is checked (no short-circuit) so a failing row gets a
single message listing all of its missing fields. Resolution order for each
mapping: non-blank cell under the mapped column, then the configured default.
Validation is all-or-nothing per row.
"""

__all__ = [
    "RowValidationError",
    "ValidatedRow",
    "resolve_fields",
    "validate_row",
]

REASON_NO_COLUMN = "column not found"
REASON_EMPTY = "empty cell"


class RowValidationError(Exception):
    """Raised when one or more required fields cannot be resolved."""

    def __init__(self, missing: list[tuple[str, str]]) -> None:
        self.missing = missing  # [(column, reason), ...]
        super().__init__(
            "; ".join(f"Missing required field: {col} ({reason})" for col, reason in missing)
        )


@dataclass(frozen=True)
class ValidatedRow:
    """A row that passed validation, with its resolved ticket field values."""
    row: RowData
    values: dict[str, str]  # field name -> resolved text
    defaults_used: dict[str, str] = field(default_factory=dict)  # column -> default applied


def resolve_fields(
    row: RowData, mappings: tuple[FieldMapping, ...]
) -> tuple[dict[str, str], dict[str, str], list[tuple[str, str]]]:
    """Resolve every mapping for ``row``.

    Returns (values, defaults_used, missing) where ``missing`` only lists
    required mappings that resolved to nothing.
    """
    values: dict[str, str] = {}
    defaults_used: dict[str, str] = {}
    missing: list[tuple[str, str]] = []
    for m in mappings:
        has_column = row.has_column(m.column)
        text = row.text(m.column) if has_column else ""
        if text:
            values[m.field] = text
            continue
        default = cell_text(m.default)
        if default:
            values[m.field] = default
            defaults_used[m.column] = default
            continue
        if m.required:
            missing.append((m.column, REASON_EMPTY if has_column else REASON_NO_COLUMN))
    return values, defaults_used, missing


def validate_row(row: RowData, mappings: tuple[FieldMapping, ...]) -> ValidatedRow:
    """Validate ``row`` and return its resolved values.

    Raises:
        RowValidationError: one or more required fields are missing
    """
    values, defaults_used, missing = resolve_fields(row, mappings)
    if missing:
        raise RowValidationError(missing)
    return ValidatedRow(row=row, values=values, defaults_used=defaults_used)
