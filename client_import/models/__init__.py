"""Domain models for the client roster import tool.

This package contains the model classes shared by the tabular decoders, the
row normalizer, the preview/decision helpers and the batch services.
"""

from .config_models import ImportConfig
from .error_record import ErrorRecord
from .import_file import (
    CellValue,
    FileType,
    ImportSource,
    InMemoryImportFile,
    LocalImportFile,
    ParsedImportFile,
    ParsedImportSheet,
    RawImportRow,
)
from .normalized_row import FieldError, NormalizedClientRow, Severity
from .preview import ConflictResolution, DecisionSnapshot, LookupMatch, PreviewRow
from .processing_result import FileStat, ProcessingResult

__all__ = [
    # Configuration models
    "ImportConfig",
    # Parsed file models
    "CellValue",
    "FileType",
    "ImportSource",
    "InMemoryImportFile",
    "LocalImportFile",
    "ParsedImportFile",
    "ParsedImportSheet",
    "RawImportRow",
    # Normalization models
    "FieldError",
    "NormalizedClientRow",
    "Severity",
    # Preview models
    "ConflictResolution",
    "DecisionSnapshot",
    "LookupMatch",
    "PreviewRow",
    # Processing models
    "ErrorRecord",
    "FileStat",
    "ProcessingResult",
]
