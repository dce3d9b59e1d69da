"""Selectable muscle groupings for one motion's score map.

A muscle qualifies when its own explicit score is strictly above the
threshold. The selectable set is every qualifying muscle plus all of its
primary-chain ancestors, so a well-scored leaf always brings its branch along.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from deltamatrix.config.settings import get_settings
from deltamatrix.models.records import Muscle
from deltamatrix.scoring.aggregation import ScoreCache, calculated_score
from deltamatrix.scoring.hierarchy import MuscleCatalog, depth_under_root, primary_ancestors


@dataclass(frozen=True)
class MuscleOption:
    """One dropdown entry with its breadcrumb."""

    id: str
    label: str
    path: str

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "path": self.path}


@dataclass(frozen=True)
class OptionGroup:
    """Selectable muscles under a single root."""

    primary: Muscle
    options: list[MuscleOption] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "primary": {"id": self.primary.id, "label": self.primary.label},
            "options": [o.to_dict() for o in self.options],
        }


def selectable_ids(
    flat: Mapping[str, float],
    catalog: MuscleCatalog,
    min_score: float | None = None,
) -> set[str]:
    """Muscles offered as grouping choices for ``flat``.

    Only catalog members are returned; scored ids unknown to the catalog are ignored.
    """
    if min_score is None:
        min_score = get_settings().min_grouping_score
    selected: set[str] = set()
    for muscle_id, score in flat.items():
        if score <= min_score or muscle_id not in catalog:
            continue
        selected.add(muscle_id)
        selected.update(a for a in primary_ancestors(muscle_id, catalog) if a in catalog)
    return selected


def best_default(
    flat: Mapping[str, float],
    catalog: MuscleCatalog,
    selectable: Iterable[str],
) -> str | None:
    """Selectable muscle with the highest calculated score.

    Ties go to the shallower muscle, then to the one listed first in the catalog.
    """
    cache: ScoreCache = {}
    ranked = sorted(
        selectable,
        key=lambda mid: (
            -calculated_score(mid, flat, catalog, cache),
            depth_under_root(mid, catalog),
            catalog.index(mid),
        ),
    )
    return ranked[0] if ranked else None


def option_groups(
    selectable: Iterable[str],
    catalog: MuscleCatalog,
    all_muscles: Iterable[Muscle] | None = None,
) -> list[OptionGroup]:
    """Dropdown groups, one per root holding at least one selectable muscle.

    Roots follow ``all_muscles`` order (the catalog when omitted); options are
    listed depth first along primary children.
    """
    chosen = set(selectable)
    separator = get_settings().path_separator
    muscles = list(all_muscles) if all_muscles is not None else list(catalog)

    def collect(muscle: Muscle, prefix: str, seen: set[str]) -> list[MuscleOption]:
        path = f"{prefix}{separator}{muscle.label}" if prefix else muscle.label
        options = [MuscleOption(muscle.id, muscle.label, path)] if muscle.id in chosen else []
        for child in catalog.primary_children(muscle.id):
            if child.id in seen:
                continue
            seen.add(child.id)
            options.extend(collect(child, path, seen))
        return options

    groups = []
    for root in muscles:
        if not root.is_root:
            continue
        options = collect(root, "", {root.id})
        if options:
            groups.append(OptionGroup(primary=root, options=options))
    return groups
