from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import FILE_LEVEL_SHEET, ErrorRecord
from ..models.normalized_row import FieldError

"""Per-run JSON Lines error log.

A run owns one ErrorLogBuffer. Records accumulate in memory and flush()
appends them to `<logs_dir>/errors-YYYYMMDD-HHMMSS.log` (UTC stamp taken on
the first write). A run without errors leaves no file behind.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords for one run; single-threaded."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = LOGS_DIR if logs_dir is None else logs_dir
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    @property
    def file_path(self) -> Path:
        """Target file; the name is fixed (and the directory created) on first access."""
        if self._path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            self._path = self.logs_dir / f"errors-{datetime.now(UTC).strftime(TIMESTAMP_FMT)}.log"
        return self._path

    def __len__(self) -> int:
        return len(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def append_file_error(self, file: str, error_type: str, message: str) -> None:
        """Record a failure of the whole file (row -1, no sheet, no field)."""
        self.append(ErrorRecord.create(file, FILE_LEVEL_SHEET, -1, error_type, message))

    def extend_field_errors(self, file: str, sheet: str, errors: Iterable[FieldError]) -> None:
        """Record row diagnostics; error_type is the issue code upper-cased (cdi_invalid -> CDI_INVALID)."""
        self._pending.extend(
            ErrorRecord.create(file, sheet, e.row_index, e.code.upper(), e.message, field=e.field)
            for e in errors
        )

    def flush(self) -> Path | None:
        if not self._pending:
            return None
        path = self.file_path
        with path.open("a", encoding="utf-8") as f:
            f.writelines(f"{record.to_json_line()}\n" for record in self._pending)
        self._pending = []
        return path
