"""Cross-referencing a motion against every delta table.

``tables`` throughout this module is a mapping of table key to the ordered
list of :class:`~deltamatrix.models.records.DeltaRow` in that table.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from deltamatrix.config.settings import get_settings
from deltamatrix.models.delta_value import Absent, DeltaValue, Inherit, ScoreMap
from deltamatrix.models.records import DeltaRow, Motion

DeltaTables = Mapping[str, Iterable[DeltaRow]]


@dataclass(frozen=True)
class DeltaRelationship:
    """One row of one table that references a motion."""

    table_key: str
    row_id: str
    row_label: str
    value: Inherit | ScoreMap

    def to_dict(self) -> dict:
        return {
            "table_key": self.table_key,
            "row_id": self.row_id,
            "row_label": self.row_label,
            "value": self.value.to_raw(),
        }


@dataclass(frozen=True)
class RelationshipCounts:
    total: int = 0
    inherit: int = 0
    empty: int = 0
    configured: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "inherit": self.inherit,
            "empty": self.empty,
            "configured": self.configured,
        }


def _label_key(relationship: DeltaRelationship) -> tuple[str, str]:
    return (relationship.row_label.casefold(), relationship.row_label)


def relationships_in_table(motion_id: str, table_key: str, rows: Iterable[DeltaRow]) -> list[DeltaRelationship]:
    found = []
    for row in rows:
        value = row.rule_for(motion_id)
        if isinstance(value, Absent):
            continue
        found.append(DeltaRelationship(table_key, row.id, row.label, value))
    return sorted(found, key=_label_key)


def relationships_for(motion_id: str, tables: DeltaTables) -> dict[str, list[DeltaRelationship]]:
    """Every row referencing ``motion_id``, per table, sorted by row label.

    Tables without a reference are omitted.
    """
    result: dict[str, list[DeltaRelationship]] = {}
    for table_key, rows in tables.items():
        found = relationships_in_table(motion_id, table_key, rows)
        if found:
            result[table_key] = found
    return result


def count_values(values: Iterable[DeltaValue]) -> RelationshipCounts:
    total = inherit = empty = configured = 0
    for value in values:
        if isinstance(value, Absent):
            continue
        total += 1
        if isinstance(value, Inherit):
            inherit += 1
        elif value.is_empty:
            empty += 1
        else:
            configured += 1
    return RelationshipCounts(total=total, inherit=inherit, empty=empty, configured=configured)


def counts_for(motion_id: str, table_key: str, tables: DeltaTables) -> RelationshipCounts:
    """Tally of one table's rows referencing ``motion_id`` by value state."""
    return count_values(row.rule_for(motion_id) for row in tables.get(table_key, ()))


@dataclass(frozen=True)
class ResolvedDelta:
    """A row's effective modifier for a motion after following inherit links."""

    table_key: str
    row_id: str
    motion_id: str
    scores: dict[str, float] = field(default_factory=dict)
    inherited: bool = False
    inherit_chain: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "table_key": self.table_key,
            "row_id": self.row_id,
            "motion_id": self.motion_id,
            "scores": dict(self.scores),
            "inherited": self.inherited,
            "inherit_chain": list(self.inherit_chain),
        }


def resolve_delta(
    motion_id: str,
    row: DeltaRow,
    motions: Mapping[str, Motion],
    table_key: str = "",
    max_depth: int | None = None,
) -> ResolvedDelta | None:
    """Effective modifier of ``row`` for ``motion_id``.

    An inherit marker or a missing key defers to the parent motion. Returns
    ``None`` when the chain runs out of parents, revisits a motion, or exceeds
    ``max_depth`` steps.
    """
    if max_depth is None:
        max_depth = get_settings().max_inherit_depth
    visited: set[str] = set()
    chain: list[str] = []
    current = motion_id
    for _ in range(max_depth):
        if current in visited:
            return None
        visited.add(current)
        value = row.rule_for(current)
        if isinstance(value, ScoreMap):
            return ResolvedDelta(
                table_key=table_key,
                row_id=row.id,
                motion_id=motion_id,
                scores=dict(value.scores),
                inherited=bool(chain),
                inherit_chain=tuple(chain),
            )
        motion = motions.get(current)
        if motion is None or motion.parent_id is None:
            return None
        chain.append(current)
        current = motion.parent_id
    return None


def resolve_all_deltas(
    motion_id: str,
    selections: Iterable[tuple[str, str]],
    motions: Mapping[str, Motion],
    tables: DeltaTables,
) -> list[ResolvedDelta]:
    """Resolve each selected ``(table_key, row_id)`` in order, keeping non-empty modifiers only."""
    indexed = {key: {row.id: row for row in rows} for key, rows in tables.items()}
    results = []
    for table_key, row_id in selections:
        row = indexed.get(table_key, {}).get(row_id)
        if row is None:
            continue
        resolved = resolve_delta(motion_id, row, motions, table_key)
        if resolved is not None and resolved.scores:
            results.append(resolved)
    return results
