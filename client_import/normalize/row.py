from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from ..models.import_file import CellValue, RawImportRow
from ..models.normalized_row import FieldError, NormalizedClientRow, Severity
from ..models.preview import LookupMatch, PreviewRow
from ..tabular.sheet import cell_to_text, is_blank_cell
from .fields import FIELDS_BY_KEY, IGNORE_IMPORT_COLUMN, REVIEW_PENDING_TAG, MappingError
from .values import (
    BooleanFormatError,
    ChoiceFormatError,
    FieldValueError,
    MissingValueError,
    is_not_applicable,
    normalize_account_number,
    normalize_investor_profile,
    normalize_status,
    parse_boolean_sim_nao,
    parse_br_number,
    parse_percent_cdi,
    parse_spreadsheet_date,
    to_iso_date,
    to_iso_datetime,
)

"""Raw row -> normalized client payload.

Each mapped field is dispatched to a handler that writes into the payload or
raises FieldValueError. Failures are collected as FieldError entries and the
remaining fields are still processed; only programmer errors (bad row type,
unknown field key) propagate.
"""

__all__ = [
    "BIRTH_YEAR_PLACEHOLDER_FROM",
    "apply_birthday_rule",
    "normalize_client_row",
    "merge_preview_rows",
]

# Years from 2000 on are placeholders: the roster only records the recurring
# day/month anniversary. Business policy, inclusive at 2000.
BIRTH_YEAR_PLACEHOLDER_FROM = 2000

Handler = Callable[[dict[str, Any], CellValue], None]


def _assign(payload: dict[str, Any], key: str, value: Any) -> None:
    """Write a possibly dotted key ("metrics.total_brl") into the payload."""
    *parents, leaf = key.split(".")
    target = payload
    for part in parents:
        target = target.setdefault(part, {})
    target[leaf] = value


def apply_birthday_rule(payload: dict[str, Any], birthday: datetime) -> None:
    if birthday.year >= BIRTH_YEAR_PLACEHOLDER_FROM:
        payload["birth_day"] = birthday.day
        payload["birth_month"] = birthday.month
    else:
        payload["birth_date"] = to_iso_date(birthday)


def _text(key: str) -> Handler:
    def handle(payload: dict[str, Any], raw: CellValue) -> None:
        value = cell_to_text(raw)
        if value:
            payload[key] = value
    return handle


def _number(key: str, parse: Callable[[CellValue], float] = parse_br_number) -> Handler:
    def handle(payload: dict[str, Any], raw: CellValue) -> None:
        if is_blank_cell(raw):
            return
        _assign(payload, key, parse(raw))
    return handle


def _choice(key: str, normalize: Callable[[CellValue], str | None]) -> Handler:
    def handle(payload: dict[str, Any], raw: CellValue) -> None:
        if is_blank_cell(raw):
            return
        parsed = normalize(raw)
        if parsed is None:
            raise ChoiceFormatError(f"unexpected value {cell_to_text(raw)!r}")
        payload[key] = parsed
    return handle


def _handle_name(payload: dict[str, Any], raw: CellValue) -> None:
    value = cell_to_text(raw)
    if not value:
        raise MissingValueError("name is blank")
    payload["name"] = value


def _handle_account(payload: dict[str, Any], raw: CellValue) -> None:
    payload["account_number"] = normalize_account_number(raw)


def _handle_fixed_fee(payload: dict[str, Any], raw: CellValue) -> None:
    if is_blank_cell(raw):
        return
    parsed = parse_boolean_sim_nao(raw)
    if parsed is None:
        if is_not_applicable(raw):
            return
        raise BooleanFormatError(f"expected Sim/Nao, got {cell_to_text(raw)!r}")
    payload["has_fixed_fee"] = parsed


def _handle_next_meeting(payload: dict[str, Any], raw: CellValue) -> None:
    if is_blank_cell(raw):
        return
    payload["next_meeting_at"] = to_iso_datetime(parse_spreadsheet_date(raw))


def _handle_birthday(payload: dict[str, Any], raw: CellValue) -> None:
    if is_blank_cell(raw):
        return
    apply_birthday_rule(payload, parse_spreadsheet_date(raw))


_HANDLERS: dict[str, Handler] = {
    "name": _handle_name,
    "account_number": _handle_account,
    "investor_profile": _choice("investor_profile", normalize_investor_profile),
    "email": _text("email"),
    "phone": _text("phone"),
    "tax_id": _text("tax_id"),
    "status": _choice("status", normalize_status),
    "origin": _text("origin"),
    "notes": _text("notes"),
    "current_custody": _number("current_custody"),
    "metrics.total_brl": _number("metrics.total_brl"),
    "metrics.onshore_brl": _number("metrics.onshore_brl"),
    "metrics.offshore_brl": _number("metrics.offshore_brl"),
    "metrics.cdi_year_pct": _number("metrics.cdi_year_pct", parse_percent_cdi),
    "has_fixed_fee": _handle_fixed_fee,
    "next_meeting_at": _handle_next_meeting,
    "birthday": _handle_birthday,
}


def _field_error(field_key: str, row_index: int, exc: FieldValueError) -> FieldError:
    definition = FIELDS_BY_KEY[field_key]
    return FieldError(
        field=field_key,
        row_index=row_index,
        message=f"{definition.issue_message} ({exc})",
        code=definition.issue_code,
        severity=exc.severity,
    )


def normalize_client_row(
    row: RawImportRow, row_index: int, mapping: Mapping[str, str]
) -> NormalizedClientRow:
    """Normalize one raw row according to a header -> field mapping.

    Args:
        row: header -> raw cell value, as produced by matrix_to_sheet
        row_index: 1-based spreadsheet line, copied onto every FieldError
        mapping: header -> field key (or IGNORE_IMPORT_COLUMN)

    Returns:
        NormalizedClientRow with the best-effort payload and collected errors.
        Rows without an account number get custom_fields.review_pending and
        the review tag; rows without a name get one blocking name_missing error.

    Raises:
        TypeError: row is not a mapping
        MappingError: mapping targets an unknown field key
    """
    if not isinstance(row, Mapping):
        raise TypeError(f"row must be a mapping, got {type(row).__name__}")

    payload: dict[str, Any] = {}
    errors: list[FieldError] = []

    for header, field_key in mapping.items():
        if field_key == IGNORE_IMPORT_COLUMN or header not in row:
            continue
        handler = _HANDLERS.get(field_key)
        if handler is None:
            raise MappingError(f"unknown field key {field_key!r} for header {header!r}")
        try:
            handler(payload, row[header])
        except FieldValueError as e:
            errors.append(_field_error(field_key, row_index, e))

    account_number = normalize_account_number(payload.get("account_number"))
    payload["account_number"] = account_number
    if not account_number:
        payload.setdefault("custom_fields", {})["review_pending"] = True
        tags = payload.setdefault("tags", [])
        if REVIEW_PENDING_TAG not in tags:
            tags.append(REVIEW_PENDING_TAG)

    if not payload.get("name") and not any(e.code == "name_missing" for e in errors):
        errors.append(
            FieldError(
                field="name",
                row_index=row_index,
                message=FIELDS_BY_KEY["name"].issue_message,
                code="name_missing",
                severity=Severity.ERROR,
            )
        )

    return NormalizedClientRow(
        row_index=row_index,
        payload=payload,
        errors=errors,
        raw=dict(row),
        account_number=account_number,
    )


def merge_preview_rows(
    rows: Iterable[NormalizedClientRow],
    lookup_by_account: Mapping[str, LookupMatch],
) -> list[PreviewRow]:
    """Attach create/update actions and flag rows that share an account number."""
    rows = list(rows)
    account_counts = Counter(r.account_number for r in rows if r.account_number)

    preview: list[PreviewRow] = []
    for row in rows:
        existing = lookup_by_account.get(row.account_number) if row.account_number else None
        conflict = row.account_number and account_counts[row.account_number] > 1
        preview.append(
            PreviewRow(
                row=row,
                base_action="update" if existing else "create",
                existing_match=existing,
                conflict_group_id=f"account:{row.account_number}" if conflict else None,
            )
        )
    return preview
