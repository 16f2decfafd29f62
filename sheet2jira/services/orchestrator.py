from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..excel.reader import ExcelTable, TableError, open_table
from ..excel.writer import ResultWriter
from ..jira.client import IssueCreator, JiraSubmissionError
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import SyncConfig
from ..models.error_record import (
    SUBMISSION_ERROR,
    UNEXPECTED_ERROR,
    VALIDATION_ERROR,
    ErrorRecord,
)
from ..models.processing_result import STATUS_FAILED, STATUS_SUCCESS, RowStat, SyncResult
from ..models.row_data import RowData
from .payload import build_payload
from .progress import ProgressTracker
from .selector import select_unprocessed_rows
from .validator import RowValidationError, validate_row

"""Synchronization run.

Fetch table -> select rows without a key -> for each row: validate, build
payload, create issue, write back link or error. Rows are processed one at
a time and each row finishes (success or failure) before the next begins.
Only table setup errors abort the run; every per-row failure is written to
the error column and the error log, and the row stays eligible for the next
run because it never received a key.

Unless dry_run is set the workbook is saved after every row, so a crash
mid-run never loses a key for an issue that was already created.
"""

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal error that prevents the run (table setup, unwritable workbook)."""


def _save(table: ExcelTable) -> None:
    try:
        table.save()
    except OSError as e:
        raise ProcessingError(f"cannot save workbook {table.path}: {e}") from e


def run_sync(
    config: SyncConfig,
    client: IssueCreator,
    *,
    dry_run: bool = False,
    error_log: ErrorLogBuffer | None = None,
) -> SyncResult:
    """Create issues for every untracked row of the configured table.

    Args:
        config: Immutable run configuration
        client: Issue creator (JiraClient, or a simulated one for dry runs)
        dry_run: Never save the workbook
        error_log: Buffer for row failures (defaults to one under config.log_dir)

    Returns:
        SyncResult with per-row outcomes

    Raises:
        ProcessingError: the table cannot be opened/saved
    """
    start_time = datetime.now(UTC)
    if error_log is None:
        error_log = ErrorLogBuffer(config.log_dir)

    tcfg = config.table
    try:
        table = open_table(tcfg.workbook, tcfg.sheet, tcfg.start_row, tcfg.start_column)
    except TableError as e:
        raise ProcessingError(str(e)) from e

    pending = select_unprocessed_rows(table.rows, tcfg.key_column)
    total = len(table.rows)
    tracked = total - len(pending)
    logger.info(
        "sheet '%s': %d data rows, %d already tracked, %d to process",
        tcfg.sheet, total, tracked, len(pending),
    )

    row_stats: list[RowStat] = []
    try:
        if not pending:
            logger.info("No new rows to process.")
        else:
            if not dry_run:
                # 書き込み不可 (Excel で開いている等) なら Issue 作成前に中断
                _save(table)
            writer = ResultWriter(table, tcfg.key_column, tcfg.error_column)
            with ProgressTracker(len(pending)) as progress:
                for row in pending:
                    progress.start_row(row.row_number)
                    stat = _process_row(row, config, client, writer, error_log)
                    if not dry_run:
                        _save(table)
                    row_stats.append(stat)
                    progress.finish_row(success=stat.status == STATUS_SUCCESS)
    finally:
        _flush_error_log(error_log)

    success_rows = sum(1 for s in row_stats if s.status == STATUS_SUCCESS)
    failed_rows = len(row_stats) - success_rows
    if row_stats:
        logger.info("Process completed. Success: %d, Errors: %d", success_rows, failed_rows)

    end_time = datetime.now(UTC)
    return SyncResult(
        total_rows=total,
        tracked_rows=tracked,
        success_rows=success_rows,
        failed_rows=failed_rows,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        row_stats=row_stats,
    )


def _process_row(
    row: RowData,
    config: SyncConfig,
    client: IssueCreator,
    writer: ResultWriter,
    error_log: ErrorLogBuffer,
) -> RowStat:
    n = row.row_number
    try:
        validated = validate_row(row, config.field_mappings)
    except RowValidationError as e:
        return _fail(row, str(e), VALIDATION_ERROR, config, writer, error_log)

    if validated.defaults_used:
        logger.debug("row %d: defaults used for %s", n, sorted(validated.defaults_used))

    try:
        payload = build_payload(validated, config)
        issue = client.create_issue(payload)
        writer.write_success(n, issue.key, config.jira.browse_url(issue.key))
    except JiraSubmissionError as e:
        return _fail(row, str(e), SUBMISSION_ERROR, config, writer, error_log)
    except Exception as e:
        logger.debug("row %d: unexpected failure", n, exc_info=True)
        return _fail(row, f"Error processing row {n}: {e}", UNEXPECTED_ERROR, config, writer, error_log)

    logger.info("Successfully created Jira ticket %s for row %d", issue.key, n)
    return RowStat(row_number=n, status=STATUS_SUCCESS, key=issue.key)


def _fail(
    row: RowData,
    message: str,
    error_type: str,
    config: SyncConfig,
    writer: ResultWriter,
    error_log: ErrorLogBuffer,
) -> RowStat:
    logger.error("row %d: %s", row.row_number, message)
    writer.write_error(row.row_number, message)
    error_log.append(
        ErrorRecord.create(
            workbook=Path(config.table.workbook).name,
            sheet=config.table.sheet,
            row=row.row_number,
            error_type=error_type,
            message=message,
        )
    )
    return RowStat(row_number=row.row_number, status=STATUS_FAILED, error=message)


def _flush_error_log(error_log: ErrorLogBuffer) -> None:
    try:
        path = error_log.flush()
    except OSError as e:
        # Don't fail the run if the error log cannot be written
        logger.warning("could not write error log: %s", e)
        return
    if path is not None:
        logger.info("error log written: %s", path)
