from __future__ import annotations

from ..models.processing_result import SyncResult

"""SUMMARY line rendering."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}"


def render_summary_line(result: SyncResult) -> str:
    """Render the SUMMARY line for a run.

    Format:
    SUMMARY rows={total} tracked={tracked} success={success} failed={failed} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = SyncResult(
        ...     total_rows=5, tracked_rows=2, success_rows=2, failed_rows=1,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY rows=5 tracked=2 success=2 failed=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={result.total_rows} "
        f"tracked={result.tracked_rows} "
        f"success={result.success_rows} "
        f"failed={result.failed_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
