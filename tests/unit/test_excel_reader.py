from __future__ import annotations

import re
import zipfile
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook
from openpyxl.styles import PatternFill

from sheet2jira.excel.reader import (
    EmptyTableError,
    SheetNotFoundError,
    TableSchema,
    WorkbookOpenError,
    open_table,
)

from conftest import HEADERS, SHEET, request_row


def test_open_table_uses_origin_and_absolute_row_numbers(make_workbook):
    path = make_workbook([request_row("first"), request_row("second")])
    table = open_table(path, SHEET, start_row=2, start_column=1)

    assert table.schema.headers == tuple(HEADERS)
    assert [r.row_number for r in table.rows] == [3, 4]
    assert table.rows[0].get("Title") == "first"
    assert table.rows[0].get("Timestamp") == datetime(2024, 3, 1, 9, 30, 0)


def test_open_table_with_column_offset(temp_workdir: Path):
    path = temp_workdir / "data" / "offset.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    ws["A1"] = "notes outside the table"
    ws["C4"] = "Title"
    ws["D4"] = "Email Address"
    ws["C5"] = "Offset request"
    ws["D5"] = "bob@example.com"
    wb.save(path)

    table = open_table(path, "Sheet1", start_row=4, start_column=3)
    assert table.schema.headers == ("Title", "Email Address")
    assert table.rows[0].row_number == 5
    assert table.rows[0].text("Email Address") == "bob@example.com"
    assert table.column_number(1) == 4


def test_header_only_table_has_no_rows(make_workbook):
    path = make_workbook([])
    table = open_table(path, SHEET, start_row=2)
    assert table.rows == []


def test_formatted_empty_tail_is_not_part_of_table(make_workbook):
    path = make_workbook([request_row("only request")])
    wb = load_workbook(path)
    ws = wb[SHEET]
    fill = PatternFill(fill_type="solid", fgColor="FFFF00")
    for r in range(4, 9):
        ws.cell(row=r, column=2).fill = fill
    ws.cell(row=2, column=len(HEADERS) + 3).fill = fill
    wb.save(path)

    table = open_table(path, SHEET, start_row=2)
    assert [r.row_number for r in table.rows] == [3]
    assert table.schema.headers == tuple(HEADERS)


def test_blank_rows_between_requests_are_kept(make_workbook):
    path = make_workbook([request_row("first"), [None] * len(HEADERS), request_row("third"), [], []])
    table = open_table(path, SHEET, start_row=2)
    assert [r.row_number for r in table.rows] == [3, 4, 5]
    assert table.rows[1].text("Title") == ""
    assert table.rows[2].text("Title") == "third"


def _cache_formula_result(path: Path, coordinate: str, value: str) -> None:
    """Store a computed result for a formula cell, as Excel does on save."""
    tmp = path.with_suffix(".tmp")
    with zipfile.ZipFile(path) as src, zipfile.ZipFile(tmp, "w", zipfile.ZIP_DEFLATED) as dst:
        for item in src.infolist():
            data = src.read(item.filename)
            if item.filename == "xl/worksheets/sheet1.xml":
                xml = data.decode("utf-8")
                xml, n = re.subn(
                    rf'(<c r="{coordinate}"[^>]*?)>(<f>.*?</f>)(?:<v\s*/>|<v>\s*</v>)?</c>',
                    rf'\1 t="str">\2<v>{value}</v></c>',
                    xml,
                )
                assert n == 1
                data = xml.encode("utf-8")
            dst.writestr(item, data)
    tmp.replace(path)


def test_formula_cells_read_as_cached_values(make_workbook):
    path = make_workbook([request_row('=CONCATENATE("Broken ","login")')])
    _cache_formula_result(path, "B3", "Broken login")

    table = open_table(path, SHEET, start_row=2)
    assert table.rows[0].text("Title") == "Broken login"

    # 書き戻しは数式を保持したブック経由
    table.write_value(3, len(HEADERS) + 1, "OPS-1")
    table.save()
    assert load_workbook(path)[SHEET]["B3"].value == '=CONCATENATE("Broken ","login")'


def test_missing_workbook(temp_workdir: Path):
    with pytest.raises(WorkbookOpenError, match="workbook not found"):
        open_table(temp_workdir / "data" / "nope.xlsx", SHEET)


def test_invalid_workbook(temp_workdir: Path):
    bad = temp_workdir / "data" / "bad.xlsx"
    bad.write_bytes(b"not a zip")
    with pytest.raises(WorkbookOpenError):
        open_table(bad, SHEET)


def test_missing_sheet(make_workbook):
    path = make_workbook([request_row()])
    with pytest.raises(SheetNotFoundError, match="Other"):
        open_table(path, "Other", start_row=2)


def test_origin_outside_populated_area(make_workbook):
    path = make_workbook([request_row()])
    with pytest.raises(EmptyTableError):
        open_table(path, SHEET, start_row=50)
    with pytest.raises(EmptyTableError):
        open_table(path, SHEET, start_row=2, start_column=40)


def test_schema_with_column_returns_new_schema():
    schema = TableSchema(("A", "B"))
    extended = schema.with_column("Jira Key")
    assert schema.headers == ("A", "B")
    assert extended.headers == ("A", "B", "Jira Key")
    assert extended.index_of("Jira Key") == 2
    assert schema.index_of("Jira Key") is None
