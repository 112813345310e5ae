from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from ..models.normalized_row import NormalizedClientRow
from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering and field error aggregation."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(total_files: int, result: ProcessingResult) -> str:
    """Render the SUMMARY line for a batch run.

    Format:
    SUMMARY files={total}/{total} success={success} failed={failed} rows={rows}
    row_errors={rows_with_errors} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2023, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_files=1, failed_files=0, total_rows=120, rows_with_errors=3,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(1, result)
        'SUMMARY files=1/1 success=1 failed=0 rows=120 row_errors=3 elapsed_sec=2'
    """
    return (
        f"SUMMARY files={total_files}/{total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"rows={result.total_rows} "
        f"row_errors={result.rows_with_errors} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )


def rank_error_counts(counts: Counter[str]) -> dict[str, int]:
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def summarize_field_errors(rows: Iterable[NormalizedClientRow]) -> dict[str, int]:
    """Count field errors per "field:code", most frequent first."""
    return rank_error_counts(Counter(f"{e.field}:{e.code}" for row in rows for e in row.errors))
