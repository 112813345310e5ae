from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

import numpy as np
import pandas as pd

from ..models.import_file import CellValue, FileType, ImportSource

"""Tabular decoders: file bytes/text -> matrices of raw cell values.

Both formats converge on the same DecodedWorkbook shape (ordered list of
named matrices) so header dedup and row materialization never branch on the
source format.

- CSV: stdlib csv with delimiter sniffing, strict quoting, greedy blank-line skip.
- XLSX: pandas.read_excel (openpyxl), every sheet, header=None, literal "NA"
  strings preserved, empty cells defaulted to "".
"""

__all__ = [
    "ImportFileError",
    "UnsupportedFormatError",
    "DecodeError",
    "DecodedMatrix",
    "DecodedWorkbook",
    "CSV_SHEET_NAME",
    "detect_file_type",
    "decode_csv",
    "decode_xlsx",
    "decode_source",
]

CSV_SHEET_NAME = "CSV"
CSV_DELIMITERS = ",;\t|"
CSV_SNIFF_CHARS = 64 * 1024


class ImportFileError(Exception):
    """Fatal error for a whole file. No partial output is produced."""

    def __init__(self, message: str, file_name: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.file_name = file_name

    def __str__(self) -> str:
        if self.file_name:
            return f"{self.file_name}: {self.message}"
        return self.message


class UnsupportedFormatError(ImportFileError):
    """Raised when the file extension is neither .csv nor .xlsx."""


class DecodeError(ImportFileError):
    """Raised when bytes do not conform to the expected container/text format."""


@dataclass(frozen=True)
class DecodedMatrix:
    name: str
    cells: list[list[CellValue]]


@dataclass(frozen=True)
class DecodedWorkbook:
    file_type: FileType
    matrices: list[DecodedMatrix]


def detect_file_type(file_name: str) -> FileType:
    """Classify a file by its (case-insensitive) extension."""
    normalized = file_name.lower()
    if normalized.endswith(".xlsx"):
        return FileType.XLSX
    if normalized.endswith(".csv"):
        return FileType.CSV
    raise UnsupportedFormatError("Invalid format. Use .xlsx or .csv.", file_name=file_name)


def _sniff_delimiter(text: str) -> str:
    try:
        return csv.Sniffer().sniff(text[:CSV_SNIFF_CHARS], delimiters=CSV_DELIMITERS).delimiter
    except csv.Error:
        # single column or not enough signal
        return ","


def decode_csv(text: str, file_name: str | None = None) -> DecodedWorkbook:
    """Decode CSV text into a single matrix of strings.

    Lines whose fields are all whitespace are skipped here (greedy skip); the
    semantic blank-row filter runs later in matrix_to_sheet.
    """
    delimiter = _sniff_delimiter(text)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    cells: list[list[CellValue]] = []
    try:
        for row in reader:
            if all(not field.strip() for field in row):
                continue
            cells.append(list(row))
    except csv.Error as e:
        raise DecodeError(f"CSV line {reader.line_num}: {e}", file_name=file_name) from e
    return DecodedWorkbook(
        file_type=FileType.CSV,
        matrices=[DecodedMatrix(name=CSV_SHEET_NAME, cells=cells)],
    )


def _coerce_cell(value: Any) -> CellValue:
    """Convert a pandas/numpy cell to a plain Python value ("" for empty)."""
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return ""
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, (str, bool, int, float, datetime, date)):
        return value
    if isinstance(value, time):
        return value.isoformat()
    return str(value)


def decode_xlsx(data: bytes, file_name: str | None = None) -> DecodedWorkbook:
    """Decode an XLSX workbook into one matrix per sheet (workbook order)."""
    try:
        frames: dict[str, pd.DataFrame] = pd.read_excel(
            io.BytesIO(data),
            sheet_name=None,
            header=None,
            dtype=object,
            keep_default_na=False,  # "NA" cells stay strings, empty cells become ""
            engine="openpyxl",
        )
    except Exception as e:
        raise DecodeError(f"invalid workbook: {e}", file_name=file_name) from e

    matrices: list[DecodedMatrix] = []
    for sheet_name, df in frames.items():
        cells = [
            [_coerce_cell(v) for v in row]
            for row in df.itertuples(index=False, name=None)
        ]
        matrices.append(DecodedMatrix(name=str(sheet_name), cells=cells))
    return DecodedWorkbook(file_type=FileType.XLSX, matrices=matrices)


def decode_source(source: ImportSource, file_type: FileType) -> DecodedWorkbook:
    """Read the source with the accessor its format needs and decode it."""
    if file_type is FileType.CSV:
        try:
            text = source.read_text()
        except UnicodeDecodeError as e:
            raise DecodeError(f"CSV is not valid UTF-8: {e}", file_name=source.name) from e
        return decode_csv(text, file_name=source.name)
    return decode_xlsx(source.read_bytes(), file_name=source.name)
