# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from sheet2jira.config.loader import load_config
from sheet2jira.jira.client import CreatedIssue, JiraSubmissionError
from sheet2jira.logging.init import reset_logging
from sheet2jira.models.config_models import SyncConfig

SHEET = "Form Responses"
HEADERS = ["Timestamp", "Title", "Description", "Labels", "Priority", "Due Date", "Email Address", "Team"]


@pytest.fixture(autouse=True)
def _reset_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """jira:
  domain: https://example.atlassian.net/
  email: bot@example.com
  api_token: secret-token
  project_key: OPS
  issue_type: Task
  reporter_id: "acc-reporter"
  assignee_id: "acc-assignee"
  default_label: sheet-automation
table:
  workbook: ./data/requests.xlsx
  sheet: Form Responses
  start_row: 2
  start_column: 1
field_mappings:
  - {column: Timestamp, field: timestamp, required: true}
  - {column: Title, field: summary, required: true}
  - {column: Description, field: description}
  - {column: Labels, field: labels}
  - {column: Priority, field: priority}
  - {column: Due Date, field: duedate}
  - {column: Email Address, field: reporter, required: true}
ignored_columns: [Internal Notes]
log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sync.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sync_config(write_config: Path) -> SyncConfig:
    return load_config(write_config, env={})


def request_row(title: Any = "Broken login", **overrides: Any) -> list[Any]:
    """Data row aligned to HEADERS."""
    values = {
        "Timestamp": datetime(2024, 3, 1, 9, 30, 0),
        "Title": title,
        "Description": "Users cannot log in",
        "Labels": None,
        "Priority": None,
        "Due Date": None,
        "Email Address": "alice@example.com",
        "Team": "Platform",
    }
    values.update({k.replace("_", " "): v for k, v in overrides.items()})
    return [values[h] for h in HEADERS]


@pytest.fixture()
def make_workbook(temp_workdir: Path) -> Callable[..., Path]:
    """Write data/requests.xlsx: title row, header row (row 2), data rows."""
    def _make(
        rows: list[list[Any]],
        headers: list[str] | None = None,
        sheet: str = SHEET,
        path: Path | None = None,
    ) -> Path:
        path = path or temp_workdir / "data" / "requests.xlsx"
        wb = Workbook()
        ws = wb.active
        ws.title = sheet
        ws.append(["Request intake"])
        ws.append(headers or HEADERS)
        for r in rows:
            ws.append(r)
        wb.save(path)
        return path
    return _make


class RecordingIssueCreator:
    """In-memory IssueCreator that records payloads and hands out OPS-n keys."""

    def __init__(self, fail_summaries: set[str] | None = None) -> None:
        self.payloads: list[dict[str, Any]] = []
        self.fail_summaries = fail_summaries or set()

    def create_issue(self, payload: dict[str, Any]) -> CreatedIssue:
        self.payloads.append(payload)
        if payload["fields"]["summary"] in self.fail_summaries:
            body = '{"errorMessages":[],"errors":{"priority":"invalid"}}'
            raise JiraSubmissionError(
                f"Failed to create Jira issue (Status 400). Response: {body}",
                status_code=400,
                body=body,
            )
        return CreatedIssue(key=f"OPS-{len(self.payloads)}")


@pytest.fixture()
def issue_creator() -> RecordingIssueCreator:
    return RecordingIssueCreator()
