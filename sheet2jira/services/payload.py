from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import quote

import pandas as pd

from ..models.config_models import SyncConfig
from ..models.row_data import RowData, cell_text
from .validator import ValidatedRow

"""Issue payload construction.

build_payload turns one validated row into the body of
``POST /rest/api/3/issue``. It is a pure function of the row, its resolved
values and the static configuration; neither the row nor the config is
touched.

Field rules:
- summary / priority / labels fall back to configured defaults
- duedate is only emitted when the value parses as a calendar date
- description is an Atlassian Document Format (ADF) doc: mapped description,
  timestamp, submitter and every unmapped, non-ignored, non-empty column as
  "Header: value", followed by a rule and a link back to the source row
- project / issuetype / reporter / assignee come from the config only
"""

__all__ = [
    "build_payload",
    "build_description",
    "parse_due_date",
    "row_link",
    "split_labels",
]


def split_labels(value: str | None, default_label: str) -> list[str]:
    labels = [part.strip() for part in (value or "").split(",")]
    labels = [label for label in labels if label]
    return labels or [default_label]


def parse_due_date(value: str | None) -> str | None:
    """Return ``value`` as YYYY-MM-DD, or None when absent/unparseable."""
    if not value:
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.strftime("%Y-%m-%d")


def row_link(config: SyncConfig, row_number: int) -> str:
    workbook = Path(config.table.workbook)
    return config.table.row_link_template.format(
        workbook_uri=workbook.resolve().as_uri(),
        workbook=quote(workbook.name, safe=""),
        sheet=quote(config.table.sheet, safe=""),
        row=row_number,
    )


def _unmapped_lines(row: RowData, config: SyncConfig) -> list[str]:
    skip = config.mapped_columns | config.ignored_columns
    lines = []
    for header, value in row.items():
        if header in skip:
            continue
        text = cell_text(value)
        if text:
            lines.append(f"{header}: {text}")
    return lines


def build_description(validated: ValidatedRow, config: SyncConfig) -> dict[str, Any]:
    values = validated.values
    parts = [
        values.get("description", ""),
        f"Timestamp: {values['timestamp']}" if values.get("timestamp") else "",
        f"Submitted by: {values['reporter']}" if values.get("reporter") else "",
        "\n".join(_unmapped_lines(validated.row, config)),
    ]
    text = "\n\n".join(p for p in parts if p)

    return {
        "type": "doc",
        "version": 1,
        "content": [
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": text or config.jira.fallback_description}],
            },
            {"type": "rule"},
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "Source spreadsheet row: "},
                    {
                        "type": "text",
                        "text": "Link",
                        "marks": [
                            {"type": "link", "attrs": {"href": row_link(config, validated.row.row_number)}}
                        ],
                    },
                ],
            },
        ],
    }


def build_payload(validated: ValidatedRow, config: SyncConfig) -> dict[str, Any]:
    jira = config.jira
    values = validated.values

    fields: dict[str, Any] = {
        "project": {"key": jira.project_key},
        "summary": values.get("summary") or jira.default_summary,
        "issuetype": {"name": jira.issue_type},
        "assignee": {"id": jira.assignee_id},
        "reporter": {"id": jira.reporter_id},
        "priority": {"name": values.get("priority") or jira.default_priority},
        "labels": split_labels(values.get("labels"), jira.default_label),
        "description": build_description(validated, config),
    }
    due = parse_due_date(values.get("duedate"))
    if due:
        fields["duedate"] = due
    return {"fields": fields}
