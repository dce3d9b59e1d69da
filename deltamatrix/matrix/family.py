"""Motion-path ownership within a motion family.

A family is a base motion plus its direct variants. Each motion-path row
should belong to one family member; reassigning moves the rule rather than
copying it.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from deltamatrix.models.records import DeltaRow, Motion


@dataclass(frozen=True)
class PlaneAssignment:
    """A motion-path row and the family member using it, if any."""

    row_id: str
    row_label: str
    motion_id: str | None = None
    motion_label: str | None = None

    def to_dict(self) -> dict:
        return {
            "row_id": self.row_id,
            "row_label": self.row_label,
            "motion_id": self.motion_id,
            "motion_label": self.motion_label,
        }


def family_motions(motion_id: str, motions: Iterable[Motion]) -> list[Motion]:
    """Base motion of ``motion_id``'s family followed by its direct variants, in input order."""
    motions = list(motions)
    selected = next((m for m in motions if m.id == motion_id), None)
    if selected is None:
        return []
    base_id = selected.parent_id or selected.id
    return [m for m in motions if m.id == base_id or m.parent_id == base_id]


def family_plane_assignments(
    motion_id: str,
    motions: Iterable[Motion],
    path_rows: Iterable[DeltaRow],
) -> list[PlaneAssignment]:
    """Motion-path rows used by other family members, plus rows nobody in the family uses.

    Rows already used by ``motion_id`` itself are left out. Sorted by row label.
    """
    motions = list(motions)
    labels = {m.id: m.label for m in motions}
    others = [m.id for m in family_motions(motion_id, motions) if m.id != motion_id]

    result = []
    for row in path_rows:
        owner = next((mid for mid in row.delta_rules if mid in others), None)
        if owner is not None:
            result.append(PlaneAssignment(row.id, row.label, owner, labels.get(owner, owner)))
        elif not row.references(motion_id):
            result.append(PlaneAssignment(row.id, row.label))
    return sorted(result, key=lambda a: (a.row_label.casefold(), a.row_label))


def reassign_plane(row: DeltaRow, from_motion_id: str | None, to_motion_id: str) -> dict[str, Any]:
    """New ``delta_rules`` for ``row`` with the rule moved from one motion to another.

    The destination keeps its existing rule if it has one, otherwise gets an
    empty modifier.
    """
    rules = dict(row.delta_rules)
    if from_motion_id and from_motion_id != to_motion_id:
        rules.pop(from_motion_id, None)
    rules.setdefault(to_motion_id, {})
    return rules


def motions_by_id(motions: Iterable[Motion]) -> Mapping[str, Motion]:
    return {m.id: m for m in motions}
