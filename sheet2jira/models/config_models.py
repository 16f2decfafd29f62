from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Config dataclasses for the spreadsheet -> Jira synchronizer.

These are the immutable domain models produced by sheet2jira.config.loader.
A single SyncConfig is built once at process start and passed explicitly
into every component; nothing reads configuration from module globals.
"""

__all__ = [
    "FieldMapping",
    "JiraConfig",
    "TableConfig",
    "SyncConfig",
]


@dataclass(frozen=True)
class FieldMapping:
    """One sheet column -> ticket field correspondence."""
    column: str  # Header name in the sheet
    field: str  # Target field name (summary, priority, ...)
    required: bool = False
    default: Any = None  # Used when the column is missing or the cell is empty


@dataclass(frozen=True)
class JiraConfig:
    """Connection and static issue settings for the ticket API.

    reporter_id / assignee_id are Jira account ids, not emails: the create
    endpoint only accepts internal identifiers for user fields.
    """
    domain: str
    email: str
    api_token: str
    project_key: str
    issue_type: str
    reporter_id: str
    assignee_id: str
    default_label: str
    default_summary: str
    default_priority: str
    fallback_description: str

    def browse_url(self, key: str) -> str:
        return f"{self.domain}/browse/{key}"


@dataclass(frozen=True)
class TableConfig:
    """Location of the request table inside the workbook."""
    workbook: str
    sheet: str
    start_row: int  # 1-based row of the header
    start_column: int  # 1-based column of the first header cell
    key_column: str
    error_column: str
    row_link_template: str


@dataclass(frozen=True)
class SyncConfig:
    """Root configuration object for one synchronization run."""
    jira: JiraConfig
    table: TableConfig
    field_mappings: tuple[FieldMapping, ...]
    ignored_columns: frozenset[str] = field(default_factory=frozenset)
    log_dir: str = "./logs"

    @property
    def mapped_columns(self) -> frozenset[str]:
        return frozenset(m.column for m in self.field_mappings)

    @property
    def required_mappings(self) -> tuple[FieldMapping, ...]:
        return tuple(m for m in self.field_mappings if m.required)
