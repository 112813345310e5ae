from __future__ import annotations

import math
import re
import unicodedata
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation

from ..models.import_file import CellValue
from ..models.normalized_row import Severity
from ..tabular.sheet import cell_to_text, is_blank_cell

"""Locale-aware value parsers for client import cells.

Every parser is a pure function of its input. Parsers that can fail raise a
FieldValueError subclass; the row normalizer downgrades those to field
diagnostics instead of aborting the row.
"""

__all__ = [
    "FieldValueError",
    "NumberFormatError",
    "BooleanFormatError",
    "DateFormatError",
    "ChoiceFormatError",
    "MissingValueError",
    "strip_accents",
    "normalize_account_number",
    "parse_br_number",
    "parse_percent_cdi",
    "parse_boolean_sim_nao",
    "is_not_applicable",
    "parse_spreadsheet_date",
    "to_iso_date",
    "to_iso_datetime",
    "normalize_investor_profile",
    "normalize_status",
]

EXCEL_EPOCH = datetime(1899, 12, 30)

_DECIMAL_LITERAL = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
_CURRENCY = re.compile(r"(?:R\$|US\$|\$|€|£)", re.IGNORECASE)
_DMY = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{2,4})(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?)?$"
)

TRUE_TOKENS = frozenset({"sim", "s", "yes", "y", "true", "1"})
FALSE_TOKENS = frozenset({"nao", "nao.", "n", "no", "false", "0"})
NOT_APPLICABLE_TOKENS = frozenset({"", "na", "n/a"})


class FieldValueError(ValueError):
    """A single cell could not be converted. Never fatal to the row."""
    severity = Severity.WARNING


class NumberFormatError(FieldValueError):
    pass


class BooleanFormatError(FieldValueError):
    pass


class DateFormatError(FieldValueError):
    pass


class ChoiceFormatError(FieldValueError):
    """Value is not one of the accepted choices (profile, status)."""


class MissingValueError(FieldValueError):
    """A required value is blank. Blocks the row."""
    severity = Severity.ERROR


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _fold(value: CellValue) -> str:
    return strip_accents(cell_to_text(value).lower())


def normalize_account_number(raw: CellValue) -> str:
    """Keep ASCII digits only. " 12.34-5/6 " -> "123456"."""
    return "".join(ch for ch in cell_to_text(raw) if "0" <= ch <= "9")


def _to_decimal(raw: CellValue) -> Decimal:
    if raw is None or isinstance(raw, bool):
        raise NumberFormatError(f"not a number: {raw!r}")
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            raise NumberFormatError(f"not a finite number: {raw!r}")
        return Decimal(str(raw))
    if not isinstance(raw, str):
        raise NumberFormatError(f"not a number: {raw!r}")

    # letters mixed with digits ("1e5", "12abc34") stay and fail the literal check
    cleaned = _CURRENCY.sub("", "".join(raw.split()))
    if "," in cleaned:
        # Brazilian notation: "." groups thousands, "," is the decimal separator
        cleaned = cleaned.replace(".", "").replace(",", ".")
    if not _DECIMAL_LITERAL.match(cleaned):
        raise NumberFormatError(f"not a number: {raw!r}")
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:  # pragma: no cover (regex already guards)
        raise NumberFormatError(f"not a number: {raw!r}") from e


def parse_br_number(raw: CellValue) -> float:
    """Parse "1.234.567,89" or "1234567.89" style numbers.

    A comma anywhere switches to Brazilian notation (strip every ".", then
    "," -> "."); otherwise the literal is parsed as-is. Currency symbols
    (R$, US$, $, €, £) and spaces are dropped first; any other text is an
    error.

    Raises:
        NumberFormatError: cleaned text is not a valid decimal literal
    """
    return float(_to_decimal(raw))


def parse_percent_cdi(raw: CellValue) -> float:
    """Fraction of CDI -> percentage: "1,674" -> 167.4, "0.8083" -> 80.83.

    Scaled in Decimal so the result is exact to well beyond 4 decimal places.
    """
    return float(_to_decimal(raw) * 100)


def is_not_applicable(raw: CellValue) -> bool:
    if raw is None:
        return True
    if not isinstance(raw, str):
        return False
    return strip_accents(raw.strip().lower()) in NOT_APPLICABLE_TOKENS


def parse_boolean_sim_nao(raw: CellValue) -> bool | None:
    """Tri-state Sim/Nao parse; None means unknown/not applicable."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        if raw == 1:
            return True
        if raw == 0:
            return False
        return None
    if not isinstance(raw, str):
        return None

    normalized = strip_accents(raw.strip().lower())
    if normalized in NOT_APPLICABLE_TOKENS:
        return None
    if normalized in TRUE_TOKENS:
        return True
    if normalized in FALSE_TOKENS:
        return False
    return None


def _parse_date_text(text: str) -> datetime:
    trimmed = text.strip()
    if not trimmed:
        raise DateFormatError("empty date")

    match = _DMY.match(trimmed)
    if match:
        day, month, year_raw = (int(g) for g in match.group(1, 2, 3))
        year = 2000 + year_raw if year_raw < 100 else year_raw
        hour, minute, second = (int(g or 0) for g in match.group(4, 5, 6))
        try:
            return datetime(year, month, day, hour, minute, second)
        except ValueError as e:
            raise DateFormatError(f"invalid date {text!r}: {e}") from e

    try:
        return datetime.fromisoformat(trimmed)
    except ValueError as e:
        raise DateFormatError(f"unrecognized date {text!r}") from e


def parse_spreadsheet_date(raw: CellValue) -> datetime:
    """Parse a date cell.

    Accepts datetime/date values (XLSX date cells), Excel serial day numbers,
    "d/m/yyyy[ HH:MM[:SS]]" strings (2-digit years map to 20yy) and ISO 8601.
    """
    if raw is None or isinstance(raw, bool):
        raise DateFormatError(f"not a date: {raw!r}")
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime.combine(raw, time())
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            raise DateFormatError(f"not a date: {raw!r}")
        try:
            return EXCEL_EPOCH + timedelta(days=raw)
        except OverflowError as e:
            raise DateFormatError(f"serial date out of range: {raw!r}") from e
    return _parse_date_text(str(raw))


def to_iso_date(value: datetime | date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def to_iso_datetime(value: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision and a Z suffix.

    Naive values are taken as UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def normalize_investor_profile(raw: CellValue) -> str | None:
    if is_blank_cell(raw):
        return None
    normalized = _fold(raw)
    if "profissional" in normalized:
        return "Profissional"
    if "qualificado" in normalized:
        return "Qualificado"
    if "regular" in normalized:
        return "Regular"
    return None


def normalize_status(raw: CellValue) -> str | None:
    if is_blank_cell(raw):
        return None
    normalized = _fold(raw)
    if normalized == "ativo":
        return "ativo"
    if normalized == "inativo":
        return "inativo"
    if normalized in ("prospecto", "prospect"):
        return "prospecto"
    return None
