"""Records and value types."""
from deltamatrix.models.delta_value import (
    ABSENT,
    INHERIT,
    INHERIT_MARKER,
    Absent,
    DeltaValue,
    Inherit,
    ScoreMap,
    as_flat_muscle_targets,
    is_number,
    merge_rule,
    parse_delta_value,
    rule_for,
)
from deltamatrix.models.records import DeltaRow, Motion, Muscle, parse_parent_ids

__all__ = [
    "ABSENT",
    "INHERIT",
    "INHERIT_MARKER",
    "Absent",
    "DeltaRow",
    "DeltaValue",
    "Inherit",
    "Motion",
    "Muscle",
    "ScoreMap",
    "as_flat_muscle_targets",
    "is_number",
    "merge_rule",
    "parse_delta_value",
    "parse_parent_ids",
    "rule_for",
]
