from __future__ import annotations

import argparse
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config, resolve_config_path
from ..logging.init import get_logger, log_summary, setup_logging
from ..models.config_models import ImportConfig
from ..models.import_file import LocalImportFile
from ..services.orchestrator import (
    ProcessingError,
    get_default_sheet_name,
    parse_import_file,
    process_all,
    scan_import_files,
)
from ..services.summary import render_summary_line
from ..tabular.reader import ImportFileError

"""CLI entrypoint.

Flow:
- Load .env (CLIENT_IMPORT_CONFIG may point at the config file)
- Load and validate the YAML config
- Import every .csv/.xlsx file of source_directory, write normalized JSON Lines
- Print one SUMMARY line and exit with the contract exit code
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; a broken file only produces a warning."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        get_logger().warning(f"failed to load .env: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Client roster CSV/XLSX import normalizer")
    p.add_argument("--config", help="Path to the YAML config (default: config/import.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print sheet headers & first rows then exit")
    return p.parse_args(argv)


def _jsonable(value: Any) -> Any:
    return value.isoformat() if isinstance(value, (datetime, date)) else value


def _inspect_data(cfg: ImportConfig) -> int:
    try:
        files = scan_import_files(Path(cfg.source_directory))
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not files:
        print("inspect: no .csv/.xlsx files")
        return EXIT_SUCCESS_ALL
    for f in files:
        print(f"FILE: {f.name}")
        try:
            parsed = parse_import_file(LocalImportFile(f))
        except ImportFileError as e:
            print(f"  read_error: {e.message}")
            continue
        default_sheet = get_default_sheet_name(parsed, cfg.preferred_sheet)
        for sheet in parsed.sheets:
            marker = " (default)" if sheet.name == default_sheet else ""
            print(f"  SHEET: {sheet.name}{marker} rows={len(sheet.rows)} cols={sheet.headers}")
            sample = [
                {k: _jsonable(v) for k, v in row.items()}
                for row in sheet.rows[:INSPECT_SAMPLE_ROWS]
            ]
            print("    sample_rows=", sample)
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # [] from tests must not fall back to sys.argv (pytest flags would leak in)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    logger.info(f"Processing files from: {directory}")
    try:
        result = process_all(cfg)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    total_files = result.success_files + result.failed_files
    if result.top_errors:
        top = ", ".join(f"{key}={count}" for key, count in list(result.top_errors.items())[:5])
        logger.info(f"top field errors: {top}")

    summary_line = render_summary_line(total_files, result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
