"""Nested views over a flat muscle-score map.

The display tree places every scored muscle under each of its declared
parents and is read-only. The edit tree follows the primary parent only:
leaves carry editable scores, internal nodes carry a score rolled up from
their children.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Union

from deltamatrix.core.exceptions import DerivedScoreError
from deltamatrix.scoring.aggregation import is_derived
from deltamatrix.scoring.hierarchy import (
    MuscleCatalog,
    paths_from_roots,
    primary_descendants,
    primary_path,
)

# Nested insertion-ordered placement: muscle id -> children placement.
_Placement = dict[str, "_Placement"]


def _place(tree: _Placement, path: list[str]) -> None:
    node = tree
    for muscle_id in path:
        node = node.setdefault(muscle_id, {})


def _ordered(ids, catalog: MuscleCatalog) -> list[str]:
    return sorted(ids, key=catalog.index)


@dataclass(frozen=True)
class DisplayNode:
    id: str
    label: str
    score: float | None = None
    children: tuple[DisplayNode, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "score": self.score,
            "children": [c.to_dict() for c in self.children],
        }


def build_display_tree(flat: Mapping[str, float], catalog: MuscleCatalog) -> list[DisplayNode]:
    """Read-only grouping of a score map by every declared ancestor chain.

    A muscle with several declared parents appears once under each of them.
    Only muscles present in ``flat`` carry a score; ids unknown to the catalog
    are listed at the top level.
    """
    placement: _Placement = {}
    for muscle_id in flat:
        if muscle_id not in catalog:
            _place(placement, [muscle_id])
            continue
        for path in paths_from_roots(muscle_id, catalog):
            _place(placement, path)

    def freeze(nodes: _Placement) -> tuple[DisplayNode, ...]:
        return tuple(
            DisplayNode(
                id=muscle_id,
                label=catalog.label(muscle_id),
                score=flat.get(muscle_id),
                children=freeze(nodes[muscle_id]),
            )
            for muscle_id in _ordered(nodes, catalog)
        )

    return list(freeze(placement))


@dataclass(frozen=True)
class LeafScore:
    """Directly editable score."""

    muscle_id: str
    label: str
    value: float

    def to_dict(self) -> dict:
        return {"id": self.muscle_id, "label": self.label, "score": self.value, "derived": False}


@dataclass(frozen=True)
class InternalNode:
    """Read-only node whose score is the sum of its children.

    ``derived_score`` is rounded to two decimals for display, so it can differ
    from the unrounded :func:`~deltamatrix.scoring.aggregation.calculated_score`
    of the same muscle by float noise.
    """

    muscle_id: str
    label: str
    children: tuple[EditNode, ...]
    derived_score: float

    def to_dict(self) -> dict:
        return {
            "id": self.muscle_id,
            "label": self.label,
            "score": self.derived_score,
            "derived": True,
            "children": [c.to_dict() for c in self.children],
        }


EditNode = Union[LeafScore, InternalNode]


@dataclass(frozen=True)
class EditTree:
    roots: tuple[EditNode, ...] = field(default_factory=tuple)

    def find(self, muscle_id: str) -> EditNode | None:
        stack = list(self.roots)
        while stack:
            node = stack.pop()
            if node.muscle_id == muscle_id:
                return node
            if isinstance(node, InternalNode):
                stack.extend(node.children)
        return None

    def to_dict(self) -> dict:
        return {"roots": [r.to_dict() for r in self.roots]}


def build_edit_tree(flat: Mapping[str, float], catalog: MuscleCatalog) -> EditTree:
    """Editable primary-parent tree for a score map, computed bottom-up once."""
    placement: _Placement = {}
    for muscle_id in flat:
        path = primary_path(muscle_id, catalog) if muscle_id in catalog else [muscle_id]
        _place(placement, path)

    def build(muscle_id: str, children: _Placement) -> EditNode:
        label = catalog.label(muscle_id)
        if not children:
            return LeafScore(muscle_id, label, flat.get(muscle_id, 0))
        nodes = tuple(build(cid, children[cid]) for cid in _ordered(children, catalog))
        total = sum(n.value if isinstance(n, LeafScore) else n.derived_score for n in nodes)
        return InternalNode(muscle_id, label, nodes, round(total, 2))

    return EditTree(tuple(build(mid, placement[mid]) for mid in _ordered(placement, catalog)))


def flatten_edit_tree(tree: EditTree, include_derived: bool = False) -> dict[str, float]:
    """Flat score map of an edit tree.

    Leaves always contribute their value; internal nodes contribute their
    derived score only with ``include_derived``.
    """
    flat: dict[str, float] = {}

    def visit(node: EditNode) -> None:
        if isinstance(node, LeafScore):
            flat[node.muscle_id] = node.value
            return
        if include_derived:
            flat[node.muscle_id] = node.derived_score
        for child in node.children:
            visit(child)

    for root in tree.roots:
        visit(root)
    return flat


def set_leaf_score(
    flat: Mapping[str, float],
    muscle_id: str,
    value: float,
    catalog: MuscleCatalog,
) -> dict[str, float]:
    """Copy of ``flat`` with one leaf's score replaced.

    Raises:
        DerivedScoreError: ``muscle_id`` is an internal node for this map
    """
    if is_derived(muscle_id, flat, catalog):
        raise DerivedScoreError(muscle_id)
    updated = dict(flat)
    updated[muscle_id] = value
    return updated


def add_muscle(flat: Mapping[str, float], muscle_id: str) -> dict[str, float]:
    """Copy of ``flat`` with ``muscle_id`` scored 0; its ancestors follow from the tree build."""
    updated = dict(flat)
    updated.setdefault(muscle_id, 0)
    return updated


def remove_muscle(flat: Mapping[str, float], muscle_id: str, catalog: MuscleCatalog) -> dict[str, float]:
    """Copy of ``flat`` without ``muscle_id`` and everything beneath it."""
    dropped = {muscle_id, *primary_descendants(muscle_id, catalog)}
    return {mid: score for mid, score in flat.items() if mid not in dropped}
