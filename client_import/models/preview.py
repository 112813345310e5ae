from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .normalized_row import FieldError, NormalizedClientRow

"""Preview and decision models used before handing rows to persistence."""

__all__ = [
    "BASE_ACTIONS",
    "OVERRIDE_ACTIONS",
    "LookupMatch",
    "PreviewRow",
    "ConflictResolution",
    "DecisionSnapshot",
]

BASE_ACTIONS = ("create", "update")
OVERRIDE_ACTIONS = ("create", "update", "ignore")


@dataclass(frozen=True)
class LookupMatch:
    """Existing client found for an account number by the persistence layer."""
    account_number: str
    client_id: str
    name: str | None = None


@dataclass(frozen=True)
class PreviewRow:
    row: NormalizedClientRow
    base_action: str  # create | update
    existing_match: LookupMatch | None = None
    conflict_group_id: str | None = None  # "account:<n>" when the account repeats

    @property
    def row_id(self) -> str:
        return self.row.row_id

    @property
    def row_index(self) -> int:
        return self.row.row_index

    @property
    def account_number(self) -> str:
        return self.row.account_number

    @property
    def has_blocking_error(self) -> bool:
        return self.row.has_blocking_error


@dataclass(frozen=True)
class ConflictResolution:
    winner_row_id: str | None = None
    ignore_all: bool = False


@dataclass(frozen=True)
class DecisionSnapshot:
    row_id: str
    row_index: int
    account_number: str
    effective_action: str  # create | update | ignore | error | conflict
    backend_action: str | None = None
    client_id: str | None = None
    payload: dict[str, Any] | None = None
    errors: list[FieldError] = field(default_factory=list)
    conflict_group_id: str | None = None
