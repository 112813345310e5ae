from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .import_file import RawImportRow

"""Row normalization result models.

A NormalizedClientRow always carries a best-effort payload together with the
field-level diagnostics collected while building it. Rows with errors are
still returned so callers can show partial results next to the problems.
"""

__all__ = [
    "Severity",
    "FieldError",
    "NormalizedClientRow",
]


class Severity(Enum):
    """Severity of a field diagnostic.

    - WARNING: value ignored, row still importable
    - ERROR: row cannot be imported until fixed (e.g. missing name)
    """
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class FieldError:
    """Diagnostic scoped to one field of one row."""
    field: str  # canonical field key (e.g. "metrics.cdi_year_pct")
    row_index: int  # 1-based spreadsheet line of the owning row
    message: str
    code: str  # snake_case issue code (e.g. "cdi_invalid")
    severity: Severity = Severity.WARNING

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "row_index": self.row_index,
            "message": self.message,
            "code": self.code,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class NormalizedClientRow:
    """Result of normalizing one RawImportRow."""
    row_index: int  # 1-based, header row is line 1
    payload: dict[str, Any]
    errors: list[FieldError] = field(default_factory=list)
    raw: RawImportRow | None = None
    account_number: str = ""

    @property
    def row_id(self) -> str:
        return f"import-row-{self.row_index}"

    @property
    def has_blocking_error(self) -> bool:
        return any(e.severity is Severity.ERROR for e in self.errors)
