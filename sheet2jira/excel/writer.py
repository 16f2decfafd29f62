from __future__ import annotations

import logging

from .reader import ExcelTable, TableSchema

"""Result write-back into the request table.

Success writes a hyperlink (text = issue key, target = browse URL) into the
key column and blanks the error column; failure writes the message into the
error column. Both columns are created on first use by appending a header
after the current last column. The writer owns the run's current schema:
each creation replaces it with the augmented schema so later rows see the
new column.
"""

logger = logging.getLogger(__name__)


class ResultWriter:
    def __init__(self, table: ExcelTable, key_column: str, error_column: str) -> None:
        self.table = table
        self.key_column = key_column
        self.error_column = error_column
        self.schema: TableSchema = table.schema

    def ensure_column(self, name: str) -> int:
        """Return the absolute column for ``name``, appending it if absent."""
        idx = self.schema.index_of(name)
        if idx is None:
            idx = len(self.schema)
            column = self.table.column_number(idx)
            self.table.write_value(self.table.header_row, column, name)
            self.schema = self.schema.with_column(name)
            logger.info("created column '%s' at column %d", name, column)
        return self.table.column_number(idx)

    def write_success(self, row: int, key: str, url: str) -> None:
        column = self.ensure_column(self.key_column)
        self.table.write_link(row, column, key, url)
        self.clear_error(row)

    def write_error(self, row: int, message: str) -> None:
        column = self.ensure_column(self.error_column)
        self.table.write_value(row, column, message)

    def clear_error(self, row: int) -> None:
        # エラー列が存在しない場合は何もしない (列を作らない)
        idx = self.schema.index_of(self.error_column)
        if idx is not None:
            self.table.clear(row, self.table.column_number(idx))
