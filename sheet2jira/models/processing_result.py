from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for the spreadsheet -> Jira synchronizer.

SyncResult aggregates the outcome of one run; it is what the SUMMARY line
and the CLI exit code are derived from.
"""

__all__ = [
    "RowStat",
    "SyncResult",
]

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class RowStat:
    """Per-row outcome (internal helper for SyncResult)."""
    row_number: int  # 絶対行番号
    status: str  # success/failed
    key: str | None = None  # Created issue key on success
    error: str | None = None  # Message written to the error column on failure


@dataclass(frozen=True)
class SyncResult:
    """Aggregated results of one synchronization run."""
    total_rows: int  # Data rows read from the table
    tracked_rows: int  # Rows skipped because they already carry a key
    success_rows: int
    failed_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    row_stats: list[RowStat] | None = None

    @property
    def processed_rows(self) -> int:
        return self.success_rows + self.failed_rows

    @property
    def created_keys(self) -> list[str]:
        return [s.key for s in self.row_stats or [] if s.key]
