from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from openpyxl import load_workbook

from sheet2jira.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main as cli_main
from sheet2jira.jira.client import CreatedIssue

from conftest import SHEET, RecordingIssueCreator, request_row


@pytest.fixture(autouse=True)
def _no_jira_env(monkeypatch):
    for name in ("JIRA_DOMAIN", "JIRA_EMAIL", "JIRA_API_TOKEN"):
        monkeypatch.delenv(name, raising=False)


def test_missing_config_is_fatal(temp_workdir: Path, capsys):
    assert cli_main(["--config", "config/missing.yml"]) == EXIT_FATAL
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_missing_workbook_is_fatal(write_config: Path, capsys):
    assert cli_main(["--config", str(write_config)]) == EXIT_FATAL
    assert "ERROR processing: workbook not found" in capsys.readouterr().out


def test_missing_credentials_is_fatal(write_config: Path, make_workbook, capsys):
    make_workbook([request_row()])
    text = write_config.read_text(encoding="utf-8").replace("  api_token: secret-token\n", "")
    write_config.write_text(text, encoding="utf-8")
    assert cli_main(["--config", str(write_config)]) == EXIT_FATAL
    assert "ERROR jira:" in capsys.readouterr().out


def test_dry_run_does_not_save_workbook(write_config: Path, make_workbook, capsys):
    path = make_workbook([request_row("a"), request_row("b")])
    before = path.read_bytes()

    assert cli_main(["--config", str(write_config), "--dry-run"]) == EXIT_SUCCESS_ALL

    assert path.read_bytes() == before
    out = capsys.readouterr().out
    assert "simulated-OPS-1" in out
    assert "SUMMARY rows=2 tracked=0 success=2 failed=0" in out


def test_live_run_with_failed_row_returns_partial_failure(write_config: Path, make_workbook, capsys):
    path = make_workbook([request_row("good"), request_row(None)])
    fake = RecordingIssueCreator()
    with patch("sheet2jira.cli.__main__.JiraClient", return_value=fake):
        code = cli_main(["--config", str(write_config)])

    assert code == EXIT_PARTIAL_FAILURE
    assert len(fake.payloads) == 1
    ws = load_workbook(path)[SHEET]
    header = [c.value for c in ws[2]]
    assert ws.cell(row=3, column=header.index("Jira Key") + 1).value == "OPS-1"
    assert "SUMMARY rows=2 tracked=0 success=1 failed=1" in capsys.readouterr().out


def test_live_run_all_success(write_config: Path, make_workbook):
    make_workbook([request_row("only")])
    with patch("sheet2jira.cli.__main__.JiraClient") as client_cls:
        client_cls.return_value.create_issue.return_value = CreatedIssue(key="OPS-9")
        assert cli_main(["--config", str(write_config)]) == EXIT_SUCCESS_ALL


def test_inspect_data(write_config: Path, make_workbook, capsys):
    make_workbook([request_row("first"), request_row("second")])
    with patch("sheet2jira.cli.__main__.JiraClient") as client_cls:
        assert cli_main(["--config", str(write_config), "--inspect-data"]) == EXIT_SUCCESS_ALL
        client_cls.assert_not_called()
    out = capsys.readouterr().out
    assert "SHEET: Form Responses" in out
    assert "untracked=2" in out
    assert "'Title': 'first'" in out
