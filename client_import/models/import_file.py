from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Protocol, Union

"""Parsed import file models (file -> sheets -> raw rows).

A ParsedImportFile is produced once per parse invocation and is never mutated
afterwards. Rows are plain dicts keyed by the (deduplicated) header text so the
row normalizer can look values up by the literal spreadsheet header.
"""

__all__ = [
    "CellValue",
    "RawImportRow",
    "FileType",
    "ParsedImportSheet",
    "ParsedImportFile",
    "ImportSource",
    "LocalImportFile",
    "InMemoryImportFile",
]

CellValue = Union[str, int, float, bool, datetime, date, None]
RawImportRow = dict[str, CellValue]


class FileType(Enum):
    """Supported source formats, decided solely by file extension."""
    CSV = "csv"
    XLSX = "xlsx"


@dataclass(frozen=True)
class ParsedImportSheet:
    """One tabular page (a workbook sheet or the single implicit CSV page)."""
    name: str
    headers: list[str]  # unique within the sheet, source column order
    rows: list[RawImportRow]  # blank rows already removed


@dataclass(frozen=True)
class ParsedImportFile:
    """Decoded source file."""
    file_name: str
    file_size: int
    file_type: FileType
    sheets: list[ParsedImportSheet]

    def get_sheet(self, name: str) -> ParsedImportSheet | None:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None


class ImportSource(Protocol):
    """File-like input handed over by the host (CLI, web upload, tests)."""

    @property
    def name(self) -> str: ...

    @property
    def size(self) -> int: ...

    def read_text(self) -> str: ...

    def read_bytes(self) -> bytes: ...


class LocalImportFile:
    """ImportSource backed by a file on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def read_text(self) -> str:
        # utf-8-sig: BOM written by spreadsheet exports must not leak into the first header
        return self.read_bytes().decode("utf-8-sig")

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


class InMemoryImportFile:
    """ImportSource over an in-memory payload (uploads, tests)."""

    def __init__(self, name: str, data: bytes | str) -> None:
        self._name = name
        self._data = data.encode("utf-8") if isinstance(data, str) else bytes(data)

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return len(self._data)

    def read_text(self) -> str:
        return self._data.decode("utf-8-sig")

    def read_bytes(self) -> bytes:
        return self._data
