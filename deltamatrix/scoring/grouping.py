"""Motion grouping by effective primary muscle.

``group_motions`` produces the flat, ordered listing shown in the matrix:
a header per root muscle, optional secondary headers, then motion rows with
variants nested beneath their base motion.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from deltamatrix.config.settings import get_settings
from deltamatrix.models.records import Motion
from deltamatrix.scoring.aggregation import ScoreCache, calculated_score
from deltamatrix.scoring.hierarchy import MuscleCatalog, find_root
from deltamatrix.scoring.selection import best_default, selectable_ids

# Bucket key for motions whose grouping cannot be resolved.
UNGROUPED = "__none__"


@dataclass(frozen=True)
class SectionHeader:
    label: str
    level: int
    muscle_id: str | None = None

    def to_dict(self) -> dict:
        return {"type": "header", "label": self.label, "level": self.level, "muscle_id": self.muscle_id}


@dataclass(frozen=True)
class MotionRow:
    motion: Motion
    level: int

    def to_dict(self) -> dict:
        return {
            "type": "motion",
            "id": self.motion.id,
            "label": self.motion.label,
            "parent_id": self.motion.parent_id,
            "level": self.level,
        }


GroupedItem = Union[SectionHeader, MotionRow]


def effective_grouping_id(
    motion: Motion,
    catalog: MuscleCatalog,
    min_score: float | None = None,
) -> str | None:
    """Stored grouping if set, otherwise the best default from the motion's own targets.

    Only candidates whose root carries a positive calculated score are considered.
    """
    if motion.muscle_grouping_id:
        return motion.muscle_grouping_id
    flat = motion.muscle_targets
    if not flat:
        return None
    cache: ScoreCache = {}
    candidates = [
        mid
        for mid in selectable_ids(flat, catalog, min_score)
        if calculated_score(find_root(mid, catalog), flat, catalog, cache) > 0
    ]
    return best_default(flat, catalog, candidates)


def _sort_key(label: str) -> tuple[str, str]:
    return (label.casefold(), label)


def _motion_rows(motions: list[Motion], base_level: int) -> list[MotionRow]:
    """Base motions alphabetically, each followed by its variants; orphans flattened last."""
    bases: list[Motion] = []
    children: dict[str, list[Motion]] = {}
    for motion in motions:
        if motion.parent_id is None:
            bases.append(motion)
        else:
            children.setdefault(motion.parent_id, []).append(motion)

    rows: list[MotionRow] = []
    for base in sorted(bases, key=lambda m: _sort_key(m.label)):
        rows.append(MotionRow(base, base_level))
        for child in sorted(children.pop(base.id, []), key=lambda m: _sort_key(m.label)):
            rows.append(MotionRow(child, base_level + 1))
    for orphans in children.values():
        for orphan in sorted(orphans, key=lambda m: _sort_key(m.label)):
            rows.append(MotionRow(orphan, base_level))
    return rows


def group_motions(motions: Iterable[Motion], catalog: MuscleCatalog) -> list[GroupedItem]:
    """Ordered headers and motion rows for the matrix listing.

    Motions bucket by the root of their effective grouping, then by the effective
    grouping itself. A root holding more than one distinct grouping gets a
    secondary header per non-root grouping, with those rows indented two levels.
    """
    no_grouping_label = get_settings().no_grouping_label
    buckets: dict[str, dict[str, list[Motion]]] = {}
    for motion in motions:
        effective = effective_grouping_id(motion, catalog)
        root = find_root(effective, catalog) if effective else UNGROUPED
        buckets.setdefault(root, {}).setdefault(effective or UNGROUPED, []).append(motion)

    def label_of(key: str) -> str:
        return no_grouping_label if key == UNGROUPED else catalog.label(key)

    items: list[GroupedItem] = []
    for root in sorted(buckets, key=lambda k: _sort_key(label_of(k))):
        items.append(SectionHeader(label_of(root), 0, None if root == UNGROUPED else root))
        secondaries = buckets[root]
        nested = len(secondaries) > 1
        for key in sorted(secondaries, key=lambda k: _sort_key(label_of(k))):
            if nested and key != root:
                items.append(SectionHeader(label_of(key), 1, key))
                items.extend(_motion_rows(secondaries[key], 2))
            else:
                items.extend(_motion_rows(secondaries[key], 0))
    return items
