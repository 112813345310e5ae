from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for batch imports.

These aggregate what process_all() did over a source directory and feed the
SUMMARY output line.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics."""
    file_name: str
    status: str  # success/failed
    sheet_name: str  # selected sheet ("" when the file failed before selection)
    normalized_rows: int
    rows_with_errors: int
    elapsed_seconds: float
    output_path: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results over every scanned file."""
    success_files: int
    failed_files: int
    total_rows: int  # normalized rows over successful files
    rows_with_errors: int  # rows carrying at least one field error
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None
    top_errors: dict[str, int] | None = None  # "field:code" -> count
