from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from ..models.row_data import CellValue, RowData, cell_text

"""Workbook table accessor.

The request table is a rectangular region of one worksheet whose top-left
header cell is the configured origin (start_row, start_column). The region
extends to the last row and column holding content; cells that only carry
formatting do not count. The origin row is the header; every following row
is a data row.

Coordinates passed to the write helpers are absolute worksheet coordinates
(1-based), the same ones RowData.row_number carries.
"""

MAX_CELL_LENGTH = 32767

__all__ = [
    "MAX_CELL_LENGTH",
    "TableError",
    "WorkbookOpenError",
    "SheetNotFoundError",
    "EmptyTableError",
    "TableSchema",
    "ExcelTable",
    "open_table",
]


class TableError(Exception):
    """Base class for table setup errors that abort the whole run."""

class WorkbookOpenError(TableError):
    """Raised when the workbook file is missing or unreadable."""

class SheetNotFoundError(TableError):
    """Raised when the configured sheet does not exist in the workbook."""

class EmptyTableError(TableError):
    """Raised when the configured origin lies outside the populated area."""


@dataclass(frozen=True)
class TableSchema:
    """Immutable header row of the request table.

    Adding a column never mutates a schema; with_column returns a new one
    so the append-only evolution of the header list stays explicit.
    """
    headers: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.headers)

    def __contains__(self, name: object) -> bool:
        return name in self.headers

    def index_of(self, name: str) -> int | None:
        try:
            return self.headers.index(name)
        except ValueError:
            return None

    def with_column(self, name: str) -> TableSchema:
        return TableSchema(self.headers + (name,))


@dataclass
class ExcelTable:
    """Open request table bound to its worksheet."""
    path: Path
    sheet_name: str
    start_row: int
    start_column: int
    schema: TableSchema
    rows: list[RowData]
    workbook: Workbook = field(repr=False)
    worksheet: Worksheet = field(repr=False)

    @property
    def header_row(self) -> int:
        return self.start_row

    def column_number(self, index: int) -> int:
        """Absolute worksheet column for a 0-based logical column index."""
        return self.start_column + index

    def write_value(self, row: int, column: int, value: Any) -> None:
        # xlsx cells reject control characters and hold at most 32767 chars
        if isinstance(value, str):
            value = ILLEGAL_CHARACTERS_RE.sub("", value)[:MAX_CELL_LENGTH]
        cell = self.worksheet.cell(row=row, column=column)
        cell.hyperlink = None
        cell.value = value

    def write_link(self, row: int, column: int, text: str, url: str) -> None:
        cell = self.worksheet.cell(row=row, column=column)
        cell.value = text
        cell.hyperlink = url
        cell.style = "Hyperlink"

    def clear(self, row: int, column: int) -> None:
        self.write_value(row, column, None)

    def save(self) -> None:
        self.workbook.save(self.path)


def _load_workbook(path: Path, data_only: bool = False) -> Workbook:
    if not path.exists():
        raise WorkbookOpenError(f"workbook not found: {path}")
    try:
        return load_workbook(path, data_only=data_only)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError) as e:
        raise WorkbookOpenError(f"cannot open workbook {path}: {e}") from e


def _is_blank(values: tuple[CellValue, ...]) -> bool:
    return all(cell_text(v) == "" for v in values)


def _trim_grid(grid: list[tuple[CellValue, ...]]) -> list[tuple[CellValue, ...]]:
    """Drop trailing blank rows and columns.

    max_row / max_column also count cells that only carry formatting; the
    populated area ends at the last cell with content. Blank rows between
    populated rows are kept.
    """
    while len(grid) > 1 and _is_blank(grid[-1]):
        grid.pop()
    width = max((len(r) for r in grid), default=0)
    while width > 1 and _is_blank(tuple(r[width - 1] for r in grid if len(r) >= width)):
        width -= 1
    return [r[:width] for r in grid]


def open_table(path: Path | str, sheet_name: str, start_row: int = 1, start_column: int = 1) -> ExcelTable:
    """Open the workbook and read the request table region.

    Values are read from a data_only handle (cached formula results); writes
    go through the formula-preserving handle that save() persists.

    Raises:
        WorkbookOpenError: workbook missing or not a valid .xlsx
        SheetNotFoundError: sheet_name not present
        EmptyTableError: nothing populated at or beyond the origin
    """
    path = Path(path)
    wb = _load_workbook(path)
    if sheet_name not in wb.sheetnames:
        raise SheetNotFoundError(f"sheet '{sheet_name}' not found in {path.name}")
    ws = wb[sheet_name]
    values_ws = _load_workbook(path, data_only=True)[sheet_name]

    last_row = values_ws.max_row
    last_col = values_ws.max_column
    if last_row < start_row or last_col < start_column:
        raise EmptyTableError(
            f"no data found in table range (origin row={start_row} col={start_column}, "
            f"sheet bounds rows={last_row} cols={last_col})"
        )

    grid: list[tuple[CellValue, ...]] = _trim_grid([
        tuple(r)
        for r in values_ws.iter_rows(
            min_row=start_row,
            max_row=last_row,
            min_col=start_column,
            max_col=last_col,
            values_only=True,
        )
    ])
    headers = tuple(cell_text(v) for v in grid[0])
    if not any(headers):
        raise EmptyTableError(f"header row {start_row} of sheet '{sheet_name}' is empty")

    rows = [
        RowData(row_number=start_row + 1 + i, headers=headers, cells=cells)
        for i, cells in enumerate(grid[1:])
    ]
    return ExcelTable(
        path=path,
        sheet_name=sheet_name,
        start_row=start_row,
        start_column=start_column,
        schema=TableSchema(headers),
        rows=rows,
        workbook=wb,
        worksheet=ws,
    )
