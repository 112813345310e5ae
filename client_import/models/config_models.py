from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the client import tool.

Kept separate from the loader in client_import/config/loader.py so the
services can depend on the typed model without pulling YAML/jsonschema.
"""

DEFAULT_PREFERRED_SHEET = "Clientes"
DEFAULT_OUTPUT_DIRECTORY = "./output"


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for a batch import run."""
    source_directory: str  # Directory scanned for .csv/.xlsx files
    column_mapping: dict[str, str]  # Spreadsheet header -> field key (or "__ignore__")
    output_directory: str = DEFAULT_OUTPUT_DIRECTORY  # Where <file name>.normalized.jsonl files go
    preferred_sheet: str = DEFAULT_PREFERRED_SHEET  # Sheet picked by get_default_sheet_name
    sheet_name: str | None = None  # Explicit sheet; overrides preferred_sheet when present
