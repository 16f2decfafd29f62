from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from sheet2jira.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from sheet2jira.excel.reader import TableError, open_table
from sheet2jira.jira.client import IssueCreator, JiraClient, SimulatedIssueClient
from sheet2jira.logging.init import log_summary, setup_logging
from sheet2jira.models.config_models import SyncConfig
from sheet2jira.models.row_data import cell_text
from sheet2jira.services.orchestrator import ProcessingError, run_sync
from sheet2jira.services.selector import select_unprocessed_rows
from sheet2jira.services.summary import render_summary_line

"""CLI entrypoint.

- Load .env (JIRA_DOMAIN / JIRA_EMAIL / JIRA_API_TOKEN)
- Load and validate the sync config
- Create issues for untracked rows and log the SUMMARY line

Exit codes: 0 all selected rows succeeded (or nothing to do),
2 at least one row failed, 1 fatal (config / table / credentials).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env via python-dotenv; values there win over the process env."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create Jira issues from spreadsheet rows")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the YAML sync config")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Build payloads and simulate issue keys without calling Jira or saving the workbook",
    )
    p.add_argument("--inspect-data", action="store_true", help="Print headers & first untracked rows then exit")
    return p.parse_args(argv)


def _inspect_data(cfg: SyncConfig) -> int:
    t = cfg.table
    try:
        table = open_table(t.workbook, t.sheet, t.start_row, t.start_column)
    except TableError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    pending = select_unprocessed_rows(table.rows, t.key_column)
    print(f"SHEET: {t.sheet} cols={list(table.schema.headers)}")
    print(f"  rows={len(table.rows)} untracked={len(pending)}")
    for row in pending[:3]:
        print(f"  row {row.row_number}:", {h: cell_text(v) for h, v in row.items() if h})
    return EXIT_SUCCESS_ALL


def _build_client(cfg: SyncConfig, dry_run: bool) -> IssueCreator:
    if dry_run:
        return SimulatedIssueClient()
    return JiraClient(cfg.jira)


def main(argv: list[str] | None = None) -> int:
    # NOTE: [] が渡された場合に sys.argv[1:] を読まないよう None のときだけ参照する
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    logger.info(f"Syncing sheet '{cfg.table.sheet}' from: {cfg.table.workbook}")

    if args.inspect_data:
        return _inspect_data(cfg)

    try:
        client = _build_client(cfg, args.dry_run)
    except ValueError as e:
        logger.error(f"jira: {e}")
        return EXIT_FATAL
    if args.dry_run:
        logger.info("dry-run: no issues will be created and the workbook will not be saved")

    try:
        result = run_sync(cfg, client, dry_run=args.dry_run)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_rows > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
