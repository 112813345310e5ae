from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm

from ..models.processing_result import FileStat

"""File-level tqdm progress for batch imports.

The bar is only drawn on an interactive terminal; otherwise tqdm runs
disabled so CI logs stay free of control sequences. The tracker also keeps the
running success/failed/rows tallies shown as the bar postfix.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Context manager around one tqdm bar with a unit of one file."""

    def __init__(self, total_files: int, *, description: str = "Importing files") -> None:
        self.description = description
        self.enabled = is_tty_enabled()
        self.succeeded = 0
        self.failed = 0
        self.rows = 0
        self._bar: Any = tqdm(
            total=total_files,
            desc=description,
            unit="file",
            disable=not self.enabled,
            leave=True,
            ncols=80,
            ascii=True,
        )

    def begin(self, file_path: Path) -> None:
        self._bar.set_description(f"{self.description} ({file_path.name})")

    def advance(self, stat: FileStat) -> None:
        if stat.status == "success":
            self.succeeded += 1
            self.rows += stat.normalized_rows
        else:
            self.failed += 1
        self._bar.set_postfix(success=self.succeeded, failed=self.failed, rows=self.rows)
        self._bar.set_description(self.description)
        self._bar.update(1)

    def close(self) -> None:
        self._bar.close()

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
