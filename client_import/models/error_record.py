from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""One line of the JSON Lines error log.

Row diagnostics carry the spreadsheet row and the field key; failures of a
whole file (unsupported format, undecodable content, missing sheet) use
row=-1, sheet FILE_LEVEL_SHEET and an empty field.
"""

__all__ = [
    "ErrorRecord",
    "FILE_LEVEL_SHEET",
]

FILE_LEVEL_SHEET = "<FILE_LEVEL>"


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str  # ISO8601 UTC, "Z" suffix
    file: str
    sheet: str
    row: int  # -1 for file-level errors
    field: str  # canonical field key ("" for file-level errors)
    error_type: str  # UPPER_SNAKE (CDI_INVALID, DECODE_ERROR, ...)
    message: str

    @classmethod
    def create(
        cls, file: str, sheet: str, row: int, error_type: str, message: str, field: str = ""
    ) -> ErrorRecord:
        return cls(utc_timestamp(), file, sheet, row, field, error_type, message)

    def to_json_line(self) -> str:
        # asdict keeps the key set fixed to the dataclass fields
        return json.dumps(asdict(self), ensure_ascii=False)
