from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime

from ..models.import_file import CellValue, ParsedImportSheet, RawImportRow

"""Header dedup and row materialization over decoded matrices.

Pure functions: no I/O and no state kept between calls.
"""

__all__ = [
    "build_headers",
    "cell_to_text",
    "is_blank_cell",
    "is_blank_row",
    "matrix_to_sheet",
]

PLACEHOLDER_HEADER = "Column {index}"


def cell_to_text(value: CellValue) -> str:
    """String form of a cell: trimmed, integral floats without ".0", dates in ISO."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def build_headers(raw_headers: Sequence[CellValue]) -> list[str]:
    """Return unique header strings, one per input column, same order.

    Blank cells become "Column N" (1-based); the Kth repeat of a label becomes
    "<label> (K)". A generated label that collides with a literal header
    (e.g. "A", "A", "A (2)") keeps counting until it is unique.
    """
    seen: dict[str, int] = {}
    emitted: set[str] = set()
    headers: list[str] = []
    for index, value in enumerate(raw_headers, start=1):
        base = cell_to_text(value) or PLACEHOLDER_HEADER.format(index=index)
        counter = seen.get(base, 0)
        label = base if counter == 0 else f"{base} ({counter + 1})"
        while label in emitted:
            counter += 1
            label = f"{base} ({counter + 1})"
        seen[base] = counter + 1
        emitted.add(label)
        headers.append(label)
    return headers


def is_blank_cell(value: CellValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def is_blank_row(values: Iterable[CellValue]) -> bool:
    return all(is_blank_cell(v) for v in values)


def matrix_to_sheet(name: str, matrix: Sequence[Sequence[CellValue]]) -> ParsedImportSheet:
    """Materialize a decoded matrix into keyed rows, dropping blank rows.

    Columns past the header width are ignored; short rows are padded with None.
    """
    if not matrix:
        return ParsedImportSheet(name=name, headers=[], rows=[])

    header_row, *body_rows = matrix
    headers = build_headers(header_row)
    rows: list[RawImportRow] = []
    for raw in body_rows:
        row: RawImportRow = {
            header: (raw[index] if index < len(raw) else None)
            for index, header in enumerate(headers)
        }
        if is_blank_row(row.values()):
            continue
        rows.append(row)
    return ParsedImportSheet(name=name, headers=headers, rows=rows)
