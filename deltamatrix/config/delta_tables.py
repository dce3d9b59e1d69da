"""Catalog of attribute tables whose rows carry ``delta_rules``.

Order matters: it is the column order of the exchange format (after the
motion-path table, which always comes first) and the order tables are
loaded and reported in.
"""
from __future__ import annotations

from dataclasses import dataclass

MOTION_PATHS_TABLE = "motionPaths"


@dataclass(frozen=True)
class DeltaTable:
    """One attribute dimension (grip, stance, equipment, ...)."""

    key: str
    label: str
    group: str


DELTA_TABLES: tuple[DeltaTable, ...] = (
    DeltaTable("motionPaths", "Motion Paths", "Trajectory & Posture"),
    DeltaTable("torsoAngles", "Torso Angles", "Trajectory & Posture"),
    DeltaTable("torsoOrientations", "Torso Orientations", "Trajectory & Posture"),
    DeltaTable("resistanceOrigin", "Resistance Origin", "Trajectory & Posture"),
    DeltaTable("grips", "Grips", "Upper Body Mechanics"),
    DeltaTable("gripWidths", "Grip Widths", "Upper Body Mechanics"),
    DeltaTable("elbowRelationship", "Elbow Relationship", "Upper Body Mechanics"),
    DeltaTable("executionStyles", "Execution Styles", "Upper Body Mechanics"),
    DeltaTable("footPositions", "Foot Positions", "Lower Body Mechanics"),
    DeltaTable("stanceWidths", "Stance Widths", "Lower Body Mechanics"),
    DeltaTable("stanceTypes", "Stance Types", "Lower Body Mechanics"),
    DeltaTable("loadPlacement", "Load Placement", "Lower Body Mechanics"),
    DeltaTable("supportStructures", "Support Structures", "Execution Variables"),
    DeltaTable("loadingAids", "Loading Aids", "Execution Variables"),
    DeltaTable("rangeOfMotion", "Range of Motion", "Execution Variables"),
    DeltaTable("equipmentCategories", "Equipment Categories", "Equipment"),
    DeltaTable("equipment", "Equipment", "Equipment"),
)

DELTA_TABLE_KEYS: tuple[str, ...] = tuple(t.key for t in DELTA_TABLES)


def get_table_label(key: str) -> str:
    """Human label for a table key; the key itself when unknown."""
    for table in DELTA_TABLES:
        if table.key == key:
            return table.label
    return key


def grouped_table_headers(
    tables: tuple[DeltaTable, ...] = DELTA_TABLES,
) -> list[tuple[str, int, int]]:
    """Collapse consecutive tables sharing a group into ``(group, start, count)`` spans."""
    spans: list[tuple[str, int, int]] = []
    for idx, table in enumerate(tables):
        if spans and spans[-1][0] == table.group:
            group, start, count = spans[-1]
            spans[-1] = (group, start, count + 1)
        else:
            spans.append((table.group, idx, 1))
    return spans
