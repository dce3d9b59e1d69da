"""Delta-rule cell values and flat muscle-score map parsing.

A row's ``delta_rules`` maps motion ids to one of three states:

- ``Inherit``: the motion uses its parent motion's rule for this row
  (stored as the literal string ``"inherit"``)
- ``ScoreMap``: an explicit, possibly empty, muscle-score modifier
- ``Absent``: the key is missing; no relationship exists
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

INHERIT_MARKER = "inherit"


def is_number(value: Any) -> bool:
    """True for ints and floats; booleans are not scores."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_flat_muscle_targets(raw: Any) -> dict[str, float]:
    """Parse a flat ``{muscle_id: score}`` map, dropping every non-numeric value.

    ``None``, lists and any other non-mapping input give an empty map.
    """
    if not isinstance(raw, Mapping):
        return {}
    return {str(k): v for k, v in raw.items() if is_number(v)}


@dataclass(frozen=True)
class Inherit:
    """Use the parent motion's rule for this row."""

    def to_raw(self) -> str:
        return INHERIT_MARKER


@dataclass(frozen=True)
class ScoreMap:
    """Explicit muscle-score modifier for one motion on one row."""

    scores: dict[str, float] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.scores

    def to_raw(self) -> dict[str, float]:
        return dict(self.scores)


@dataclass(frozen=True)
class Absent:
    """No relationship between the motion and the row."""

    def to_raw(self) -> None:
        return None


INHERIT = Inherit()
ABSENT = Absent()

DeltaValue = Union[Inherit, ScoreMap, Absent]


def parse_delta_value(raw: Any) -> Inherit | ScoreMap:
    """Parse the value stored under a present motion key.

    Anything that is neither the inherit marker nor a mapping is treated as an
    explicitly configured but empty modifier.
    """
    if raw == INHERIT_MARKER:
        return INHERIT
    return ScoreMap(as_flat_muscle_targets(raw))


def rule_for(delta_rules: Any, motion_id: str) -> DeltaValue:
    """Look up one motion's value in a raw ``delta_rules`` dictionary."""
    if not isinstance(delta_rules, Mapping) or motion_id not in delta_rules:
        return ABSENT
    return parse_delta_value(delta_rules[motion_id])


def merge_rule(delta_rules: Any, motion_id: str, value: DeltaValue) -> dict[str, Any]:
    """Copy of ``delta_rules`` with only ``motion_id``'s key replaced (or dropped for Absent)."""
    merged: dict[str, Any] = dict(delta_rules) if isinstance(delta_rules, Mapping) else {}
    if isinstance(value, Absent):
        merged.pop(motion_id, None)
    else:
        merged[motion_id] = value.to_raw()
    return merged
