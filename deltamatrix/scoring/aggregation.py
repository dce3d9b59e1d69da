"""Bottom-up aggregation of flat muscle-score maps.

A muscle with no scored muscle anywhere below it (primary-parent tree) is a
leaf for that map and keeps its own explicit score. Any other muscle is an
internal node whose calculated score is the sum of its children's calculated
scores; an explicit value stored at that level is ignored.
"""
from __future__ import annotations

from collections.abc import Mapping

from deltamatrix.scoring.hierarchy import MuscleCatalog

ScoreCache = dict[str, tuple[float, bool]]


def _rollup(
    muscle_id: str,
    flat: Mapping[str, float],
    catalog: MuscleCatalog,
    cache: ScoreCache,
    path: frozenset[str],
) -> tuple[float, bool]:
    """Return ``(score, carries_score)`` for one muscle."""
    if muscle_id in cache:
        return cache[muscle_id]
    below = path | {muscle_id}
    total = 0
    has_scored_child = False
    for child in catalog.primary_children(muscle_id):
        if child.id in below:
            continue
        score, carries = _rollup(child.id, flat, catalog, cache, below)
        if carries:
            has_scored_child = True
            total += score
    if has_scored_child:
        result = (total, True)
    else:
        result = (flat.get(muscle_id, 0), muscle_id in flat)
    cache[muscle_id] = result
    return result


def calculated_score(
    muscle_id: str,
    flat: Mapping[str, float],
    catalog: MuscleCatalog,
    cache: ScoreCache | None = None,
) -> float:
    """Calculated (rolled-up) score of one muscle for a flat score map.

    Pass the same ``cache`` across calls over one map to avoid re-walking subtrees.
    """
    if cache is None:
        cache = {}
    return _rollup(muscle_id, flat, catalog, cache, frozenset())[0]


def is_derived(muscle_id: str, flat: Mapping[str, float], catalog: MuscleCatalog) -> bool:
    """True when the muscle's score is rolled up from scored muscles beneath it."""
    cache: ScoreCache = {}
    for child in catalog.primary_children(muscle_id):
        if child.id != muscle_id and _rollup(child.id, flat, catalog, cache, frozenset({muscle_id}))[1]:
            return True
    return False


def argmax(flat: Mapping[str, float]) -> str | None:
    """Key with the highest score; the first one encountered wins a tie."""
    best_id: str | None = None
    best_score = float("-inf")
    for muscle_id, score in flat.items():
        if score > best_score:
            best_id = muscle_id
            best_score = score
    return best_id
