from __future__ import annotations

import json
import logging
from collections import Counter
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import DEFAULT_PREFERRED_SHEET, ImportConfig
from ..models.import_file import ImportSource, LocalImportFile, ParsedImportFile, ParsedImportSheet
from ..models.normalized_row import NormalizedClientRow
from ..models.processing_result import FileStat, ProcessingResult
from ..normalize.fields import IGNORE_IMPORT_COLUMN
from ..normalize.row import normalize_client_row
from ..tabular.reader import (
    DecodeError,
    ImportFileError,
    UnsupportedFormatError,
    decode_source,
    detect_file_type,
)
from ..tabular.sheet import matrix_to_sheet
from .progress import ProgressTracker
from .summary import rank_error_counts, summarize_field_errors

logger = logging.getLogger(__name__)

"""Service orchestration for client roster imports.

parse_import_file() is the single "parse file" operation: detect type, decode
into matrices, materialize each sheet. process_all() drives it over a source
directory, normalizes the selected sheet of every file and writes the results
as JSON Lines, isolating failures per file.
"""

SUPPORTED_SUFFIXES = (".csv", ".xlsx")
FIRST_DATA_ROW = 2  # header occupies spreadsheet line 1


class ProcessingError(Exception):
    """Fatal error that prevents a batch run from starting."""


def parse_import_file(source: ImportSource) -> ParsedImportFile:
    """Parse a CSV/XLSX source into sheets of raw rows.

    Raises:
        UnsupportedFormatError: extension is not .csv/.xlsx (nothing is read)
        DecodeError: content cannot be decoded as the detected format
    """
    file_type = detect_file_type(source.name)
    workbook = decode_source(source, file_type)
    sheets = [matrix_to_sheet(m.name, m.cells) for m in workbook.matrices]
    return ParsedImportFile(
        file_name=source.name,
        file_size=source.size,
        file_type=file_type,
        sheets=sheets,
    )


def get_default_sheet_name(
    parsed_file: ParsedImportFile, preferred: str = DEFAULT_PREFERRED_SHEET
) -> str:
    """Preferred sheet (case-insensitive), else the first sheet, else ""."""
    wanted = preferred.lower()
    for sheet in parsed_file.sheets:
        if sheet.name.lower() == wanted:
            return sheet.name
    return parsed_file.sheets[0].name if parsed_file.sheets else ""


def normalize_sheet_rows(
    sheet: ParsedImportSheet, mapping: dict[str, str]
) -> list[NormalizedClientRow]:
    """Normalize every row of a sheet; row_index is the spreadsheet line."""
    return [
        normalize_client_row(row, index + FIRST_DATA_ROW, mapping)
        for index, row in enumerate(sheet.rows)
    ]


def scan_import_files(directory: Path) -> list[Path]:
    """Scan directory for .csv/.xlsx files (non-recursive, sorted by name).

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def _row_to_json(row: NormalizedClientRow) -> str:
    record: dict[str, Any] = {
        "row_index": row.row_index,
        "row_id": row.row_id,
        "account_number": row.account_number,
        "payload": row.payload,
        "errors": [e.to_dict() for e in row.errors],
    }
    return json.dumps(record, ensure_ascii=False)


def write_normalized_rows(rows: list[NormalizedClientRow], output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(_row_to_json(row) + "\n")
    return output_path


def _select_sheet(parsed: ParsedImportFile, config: ImportConfig) -> ParsedImportSheet:
    if config.sheet_name:
        sheet = parsed.get_sheet(config.sheet_name)
        if sheet is None:
            raise ImportFileError(
                f"sheet '{config.sheet_name}' not found (available: {[s.name for s in parsed.sheets]})",
                file_name=parsed.file_name,
            )
        return sheet
    name = get_default_sheet_name(parsed, config.preferred_sheet)
    sheet = parsed.get_sheet(name)
    if sheet is None:
        raise ImportFileError("file has no sheets", file_name=parsed.file_name)
    return sheet


def _process_single_file(
    file_path: Path,
    config: ImportConfig,
    error_log: ErrorLogBuffer,
    error_counts: Counter[str],
) -> FileStat:
    start = datetime.now(UTC)

    def _elapsed() -> float:
        return (datetime.now(UTC) - start).total_seconds()

    try:
        parsed = parse_import_file(LocalImportFile(file_path))
        sheet = _select_sheet(parsed, config)
    except ImportFileError as e:
        if isinstance(e, UnsupportedFormatError):
            error_type = "UNSUPPORTED_FORMAT"
        elif isinstance(e, DecodeError):
            error_type = "DECODE_ERROR"
        else:
            error_type = "SHEET_SELECTION_ERROR"
        logger.error("file=%s %s", file_path.name, e.message)
        error_log.append_file_error(file_path.name, error_type, e.message)
        return FileStat(
            file_name=file_path.name,
            status="failed",
            sheet_name="",
            normalized_rows=0,
            rows_with_errors=0,
            elapsed_seconds=_elapsed(),
            error=str(e),
        )

    logger.debug(
        "file=%s type=%s sheets=%s selected=%s headers=%s rows=%d",
        parsed.file_name,
        parsed.file_type.value,
        [s.name for s in parsed.sheets],
        sheet.name,
        sheet.headers,
        len(sheet.rows),
    )
    missing = [
        header for header, key in config.column_mapping.items()
        if key != IGNORE_IMPORT_COLUMN and header not in sheet.headers
    ]
    if missing:
        logger.warning("file=%s sheet=%s mapped headers not found: %s", parsed.file_name, sheet.name, missing)

    rows = normalize_sheet_rows(sheet, config.column_mapping)
    rows_with_errors = 0
    for row in rows:
        if row.errors:
            rows_with_errors += 1
            error_log.extend_field_errors(parsed.file_name, sheet.name, row.errors)
    error_counts.update(summarize_field_errors(rows))

    # full name keeps roster.csv and roster.xlsx apart
    output_path = Path(config.output_directory) / f"{file_path.name}.normalized.jsonl"
    write_normalized_rows(rows, output_path)
    logger.info(
        "file=%s sheet=%s rows=%d rows_with_errors=%d -> %s",
        parsed.file_name,
        sheet.name,
        len(rows),
        rows_with_errors,
        output_path,
    )
    return FileStat(
        file_name=file_path.name,
        status="success",
        sheet_name=sheet.name,
        normalized_rows=len(rows),
        rows_with_errors=rows_with_errors,
        elapsed_seconds=_elapsed(),
        output_path=str(output_path),
    )


def process_all(config: ImportConfig, error_log: ErrorLogBuffer | None = None) -> ProcessingResult:
    """Import every .csv/.xlsx file of the configured source directory.

    A file that cannot be parsed is marked failed (and logged with row=-1);
    the remaining files are still processed.

    Raises:
        ProcessingError: source directory missing/unreadable
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    file_paths = scan_import_files(Path(config.source_directory))

    file_stats: list[FileStat] = []
    error_counts: Counter[str] = Counter()

    with ProgressTracker(len(file_paths)) as progress:
        for file_path in file_paths:
            progress.begin(file_path)
            stat = _process_single_file(file_path, config, error_log, error_counts)
            file_stats.append(stat)
            progress.advance(stat)

    log_path = error_log.flush()
    if log_path is not None:
        logger.info("error log written: %s", log_path)

    end_time = datetime.now(UTC)
    return ProcessingResult(
        success_files=progress.succeeded,
        failed_files=progress.failed,
        total_rows=progress.rows,
        rows_with_errors=sum(s.rows_with_errors for s in file_stats),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
        top_errors=rank_error_counts(error_counts),
    )
