from __future__ import annotations

from collections.abc import Iterable, Mapping

from ..models.preview import ConflictResolution, DecisionSnapshot, PreviewRow

"""Effective action resolution for previewed rows.

Precedence: blocking errors, then account conflicts, then per-row overrides.
"""

__all__ = [
    "resolve_effective_action",
    "build_decision_snapshots",
    "has_unresolved_conflicts",
]

RowOverrides = Mapping[str, str]  # row_id -> create | update | ignore
ConflictResolutions = Mapping[str, ConflictResolution]  # conflict_group_id -> resolution


def _resolve_conflict_action(row: PreviewRow, resolution: ConflictResolution | None) -> str:
    if not row.conflict_group_id:
        return row.base_action
    if resolution is None:
        return "conflict"
    if resolution.ignore_all:
        return "ignore"
    if not resolution.winner_row_id:
        return "conflict"
    return row.base_action if resolution.winner_row_id == row.row_id else "ignore"


def resolve_effective_action(
    row: PreviewRow, overrides: RowOverrides, conflict_resolutions: ConflictResolutions
) -> str:
    if row.has_blocking_error:
        return "ignore" if overrides.get(row.row_id) == "ignore" else "error"

    resolution = conflict_resolutions.get(row.conflict_group_id) if row.conflict_group_id else None
    base = _resolve_conflict_action(row, resolution)
    if base in ("ignore", "conflict"):
        return base
    return overrides.get(row.row_id) or base


def build_decision_snapshots(
    rows: Iterable[PreviewRow], overrides: RowOverrides, conflict_resolutions: ConflictResolutions
) -> list[DecisionSnapshot]:
    snapshots: list[DecisionSnapshot] = []
    for row in rows:
        effective = resolve_effective_action(row, overrides, conflict_resolutions)
        backend_action = effective if effective in ("create", "update") else None
        client_id = None
        if backend_action == "update" and row.existing_match is not None:
            client_id = row.existing_match.client_id
        snapshots.append(
            DecisionSnapshot(
                row_id=row.row_id,
                row_index=row.row_index,
                account_number=row.account_number,
                effective_action=effective,
                backend_action=backend_action,
                client_id=client_id,
                payload=row.row.payload if backend_action else None,
                errors=list(row.row.errors),
                conflict_group_id=row.conflict_group_id,
            )
        )
    return snapshots


def has_unresolved_conflicts(
    rows: Iterable[PreviewRow], overrides: RowOverrides, conflict_resolutions: ConflictResolutions
) -> bool:
    return any(
        resolve_effective_action(row, overrides, conflict_resolutions) == "conflict" for row in rows
    )
