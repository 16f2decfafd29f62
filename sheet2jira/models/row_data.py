from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Union

"""RowData model for the spreadsheet -> Jira synchronizer.

A RowData is one data row of the request table together with its absolute
(1-based) worksheet row number, which is needed to write results back.
Cells keep their variant value (text / number / date / empty) as returned by
openpyxl; lookups go through the header names instead of positions.
"""

__all__ = [
    "CellValue",
    "RowData",
    "cell_text",
]

CellValue = Union[str, int, float, bool, datetime, date, time, None]


def cell_text(value: Any) -> str:
    """Render a cell value as trimmed display text ("" for empty)."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


@dataclass(frozen=True)
class RowData:
    """Logical representation of a single data row."""
    row_number: int  # Absolute worksheet row (header row + 1 = first data row)
    headers: tuple[str, ...]
    cells: tuple[CellValue, ...]

    def index_of(self, column: str) -> int | None:
        try:
            return self.headers.index(column)
        except ValueError:
            return None

    def has_column(self, column: str) -> bool:
        return self.index_of(column) is not None

    def get(self, column: str) -> CellValue:
        """Cell value under the first header named ``column`` (None if absent)."""
        idx = self.index_of(column)
        if idx is None or idx >= len(self.cells):
            return None
        return self.cells[idx]

    def text(self, column: str) -> str:
        return cell_text(self.get(column))

    def items(self) -> Iterator[tuple[str, CellValue]]:
        # 行の長さがヘッダより短い場合は None で埋める
        for i, header in enumerate(self.headers):
            yield header, self.cells[i] if i < len(self.cells) else None
