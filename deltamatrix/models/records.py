"""Plain records consumed by the engine.

Raw table rows arrive as dictionaries from the table collaborator; these
dataclasses normalise ids to strings and tolerate missing or malformed fields.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from deltamatrix.models.delta_value import DeltaValue, as_flat_muscle_targets, rule_for


def parse_parent_ids(raw: Any) -> tuple[str, ...]:
    """Parent ids as a tuple; JSON-encoded lists are decoded, anything else is empty."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return ()
    if isinstance(raw, (list, tuple)):
        return tuple(str(p) for p in raw if p is not None and p != "")
    return ()


def _optional_id(raw: Any) -> str | None:
    if raw is None or raw == "":
        return None
    return str(raw)


@dataclass(frozen=True)
class Muscle:
    """A muscle in the hierarchy. ``parent_ids[0]`` is the primary parent."""

    id: str
    label: str
    parent_ids: tuple[str, ...] = ()

    @property
    def primary_parent_id(self) -> str | None:
        return self.parent_ids[0] if self.parent_ids else None

    @property
    def is_root(self) -> bool:
        return not self.parent_ids

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Muscle:
        muscle_id = str(record.get("id", ""))
        return cls(
            id=muscle_id,
            label=str(record.get("label") or muscle_id),
            parent_ids=parse_parent_ids(record.get("parent_ids")),
        )


@dataclass(frozen=True)
class Motion:
    """An exercise movement and its own flat muscle-score map."""

    id: str
    label: str
    parent_id: str | None = None
    muscle_targets: dict[str, float] = field(default_factory=dict)
    muscle_grouping_id: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Motion:
        motion_id = str(record.get("id", ""))
        return cls(
            id=motion_id,
            label=str(record.get("label") or motion_id),
            parent_id=_optional_id(record.get("parent_id")),
            muscle_targets=as_flat_muscle_targets(record.get("muscle_targets")),
            muscle_grouping_id=_optional_id(record.get("muscle_grouping_id")),
        )


@dataclass(frozen=True)
class DeltaRow:
    """One row of a delta table. ``delta_rules`` is kept raw so writes touch a single key."""

    id: str
    label: str
    delta_rules: dict[str, Any] = field(default_factory=dict)

    def rule_for(self, motion_id: str) -> DeltaValue:
        return rule_for(self.delta_rules, motion_id)

    def references(self, motion_id: str) -> bool:
        return motion_id in self.delta_rules

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> DeltaRow:
        row_id = str(record.get("id", ""))
        rules = record.get("delta_rules")
        return cls(
            id=row_id,
            label=str(record.get("label") or row_id),
            delta_rules=dict(rules) if isinstance(rules, Mapping) else {},
        )
