from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the per-run error log.

Every row that fails (validation, submission or an unexpected exception) is
recorded once as an ErrorRecord in addition to the in-sheet error column, so
operators have a durable JSON Lines trail outside the workbook too.
"""

__all__ = [
    "ErrorRecord",
    "VALIDATION_ERROR",
    "SUBMISSION_ERROR",
    "UNEXPECTED_ERROR",
]

VALIDATION_ERROR = "VALIDATION_ERROR"
SUBMISSION_ERROR = "SUBMISSION_ERROR"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        workbook: Workbook filename being synchronized
        sheet: Sheet name within the workbook
        row: Absolute worksheet row number (1-based)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Message also written to the error column
    """
    timestamp: str
    workbook: str
    sheet: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(workbook: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            workbook=workbook,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
