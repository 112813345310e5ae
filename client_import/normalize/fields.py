from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

"""Canonical client fields and column mapping helpers.

A column mapping binds literal spreadsheet header text to one of the field
keys below, or to IGNORE_IMPORT_COLUMN. Mappings are always supplied by the
caller (config file, mapping UI); nothing here guesses them.
"""

__all__ = [
    "IGNORE_IMPORT_COLUMN",
    "REVIEW_PENDING_TAG",
    "FieldDefinition",
    "CLIENT_IMPORT_FIELDS",
    "FIELDS_BY_KEY",
    "MappingError",
    "field_options",
    "create_default_mapping",
    "apply_mapping_model",
    "validate_mapping",
]

IGNORE_IMPORT_COLUMN = "__ignore__"
REVIEW_PENDING_TAG = "Revisão pendente"


class MappingError(ValueError):
    """Raised when a mapping targets an unknown field key."""


@dataclass(frozen=True)
class FieldDefinition:
    key: str
    label: str
    help: str
    issue_code: str  # code used for field diagnostics on this field
    issue_message: str


CLIENT_IMPORT_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition("name", "Nome", "Required to create/update a client.",
                    "name_missing", "Name is required."),
    FieldDefinition("account_number", "Conta", "Normalized to digits only.",
                    "account_invalid", "Invalid account number."),
    FieldDefinition("investor_profile", "Perfil", "Regular, Qualificado or Profissional.",
                    "profile_invalid", "Invalid investor profile. Value ignored."),
    FieldDefinition("email", "Email", "Client email.",
                    "email_invalid", "Invalid email."),
    FieldDefinition("phone", "Telefone", "Client phone.",
                    "phone_invalid", "Invalid phone."),
    FieldDefinition("tax_id", "CPF/CNPJ", "Client tax document.",
                    "tax_id_invalid", "Invalid CPF/CNPJ."),
    FieldDefinition("status", "Status", "Ativo, Inativo or Prospecto.",
                    "status_invalid", "Invalid status. Value ignored."),
    FieldDefinition("origin", "Origem", "Funnel origin of the client.",
                    "origin_invalid", "Invalid origin."),
    FieldDefinition("notes", "Observacoes", "Free-form notes.",
                    "notes_invalid", "Invalid notes."),
    FieldDefinition("current_custody", "Custodia Atual", "Numeric BRL value.",
                    "custody_invalid", "Invalid current custody. Field ignored."),
    FieldDefinition("metrics.total_brl", "Total BRL", "Total assets in BRL.",
                    "total_invalid", "Invalid total BRL. Field ignored."),
    FieldDefinition("metrics.onshore_brl", "Onshore BRL", "Onshore assets in BRL.",
                    "onshore_invalid", "Invalid onshore BRL. Field ignored."),
    FieldDefinition("metrics.offshore_brl", "Offshore BRL", "Offshore assets in BRL.",
                    "offshore_invalid", "Invalid offshore BRL. Field ignored."),
    FieldDefinition("metrics.cdi_year_pct", "% CDI no ano", "Fraction of CDI, stored x100 (1.674 => 167.4).",
                    "cdi_invalid", "Invalid % CDI. Field ignored."),
    FieldDefinition("has_fixed_fee", "Fee Fixo", "Sim/Nao flag.",
                    "fixed_fee_invalid", "Invalid fixed fee flag. Field ignored."),
    FieldDefinition("next_meeting_at", "Proxima Reuniao", "Date/time of the next meeting.",
                    "next_meeting_invalid", "Invalid next meeting date. Field ignored."),
    FieldDefinition("birthday", "Aniversario", "Day/month or full date depending on the year.",
                    "birthday_invalid", "Invalid birthday. Field ignored."),
)

FIELDS_BY_KEY: dict[str, FieldDefinition] = {f.key: f for f in CLIENT_IMPORT_FIELDS}


def field_options() -> list[tuple[str, str]]:
    """(value, label) pairs for a mapping picker, ignore option first."""
    return [(IGNORE_IMPORT_COLUMN, "Ignorar coluna")] + [(f.key, f.label) for f in CLIENT_IMPORT_FIELDS]


def create_default_mapping(headers: Iterable[str]) -> dict[str, str]:
    return {header: IGNORE_IMPORT_COLUMN for header in headers}


def apply_mapping_model(headers: Iterable[str], model_mapping: Mapping[str, str]) -> dict[str, str]:
    """Project a saved mapping onto the headers of a new sheet.

    Headers unknown to the saved mapping stay ignored; saved entries for
    headers the sheet does not have are dropped.
    """
    headers = list(headers)
    mapping = create_default_mapping(headers)
    for header in headers:
        value = model_mapping.get(header)
        if value:
            mapping[header] = value
    return mapping


def validate_mapping(mapping: Mapping[str, str]) -> None:
    unknown = sorted(
        {v for v in mapping.values() if v != IGNORE_IMPORT_COLUMN and v not in FIELDS_BY_KEY}
    )
    if unknown:
        raise MappingError(f"unknown field keys in column mapping: {unknown}")
