"""Muscle hierarchy walking.

Two relations exist over ``parent_ids``:

- the *primary parent* (``parent_ids[0]``) forms a single-parent tree used for
  grouping, classification and the editable score tree
- *all declared parents* let a muscle roll up under several branches in the
  read-only display tree

Every walk carries a visited set, so a cyclic catalog never loops forever.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from deltamatrix.models.records import Muscle

LEVEL_NAMES = ("primary", "secondary", "tertiary")


class MuscleCatalog:
    """Indexed, ordered view over the muscles table."""

    def __init__(self, muscles: Iterable[Muscle]):
        self._muscles: dict[str, Muscle] = {}
        for muscle in muscles:
            self._muscles.setdefault(muscle.id, muscle)
        self._order = {mid: idx for idx, mid in enumerate(self._muscles)}
        self._primary_children: dict[str, list[Muscle]] = {}
        self._children: dict[str, list[Muscle]] = {}
        for muscle in self._muscles.values():
            if muscle.primary_parent_id is not None:
                self._primary_children.setdefault(muscle.primary_parent_id, []).append(muscle)
            for pid in dict.fromkeys(muscle.parent_ids):
                self._children.setdefault(pid, []).append(muscle)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> MuscleCatalog:
        return cls(Muscle.from_record(r) for r in records if isinstance(r, Mapping))

    def __contains__(self, muscle_id: object) -> bool:
        return muscle_id in self._muscles

    def __iter__(self) -> Iterator[Muscle]:
        return iter(self._muscles.values())

    def __len__(self) -> int:
        return len(self._muscles)

    def get(self, muscle_id: str) -> Muscle | None:
        return self._muscles.get(muscle_id)

    def label(self, muscle_id: str) -> str:
        muscle = self._muscles.get(muscle_id)
        return muscle.label if muscle else muscle_id

    def index(self, muscle_id: str) -> int:
        """Catalog position; unknown ids sort last."""
        return self._order.get(muscle_id, len(self._order))

    def roots(self) -> list[Muscle]:
        return [m for m in self._muscles.values() if m.is_root]

    def primary_children(self, muscle_id: str) -> list[Muscle]:
        return list(self._primary_children.get(muscle_id, ()))

    def children(self, muscle_id: str) -> list[Muscle]:
        """Direct children over any declared parent edge."""
        return list(self._children.get(muscle_id, ()))


def find_root(muscle_id: str, catalog: MuscleCatalog) -> str:
    """Follow primary parents up to a muscle without one.

    Unknown or parentless ids are returned unchanged. On a cycle the walk stops
    at the last muscle reached before one would be visited twice.
    """
    visited = {muscle_id}
    current = muscle_id
    while True:
        muscle = catalog.get(current)
        parent = muscle.primary_parent_id if muscle else None
        if parent is None or parent in visited:
            return current
        visited.add(parent)
        current = parent


def primary_ancestors(muscle_id: str, catalog: MuscleCatalog) -> list[str]:
    """Primary-parent chain above a muscle, nearest first."""
    chain: list[str] = []
    visited = {muscle_id}
    muscle = catalog.get(muscle_id)
    while muscle is not None and muscle.primary_parent_id is not None:
        parent = muscle.primary_parent_id
        if parent in visited:
            break
        visited.add(parent)
        chain.append(parent)
        muscle = catalog.get(parent)
    return chain


def primary_path(muscle_id: str, catalog: MuscleCatalog) -> list[str]:
    """Root-to-muscle path over primary parents, both ends inclusive."""
    return list(reversed(primary_ancestors(muscle_id, catalog))) + [muscle_id]


def depth_under_root(muscle_id: str, catalog: MuscleCatalog) -> int:
    """0 for a root, 1 for its child, and so on."""
    return len(primary_ancestors(muscle_id, catalog))


def level_of(muscle_id: str, catalog: MuscleCatalog) -> str:
    """Conventional level name; anything deeper than two is tertiary."""
    return LEVEL_NAMES[min(depth_under_root(muscle_id, catalog), len(LEVEL_NAMES) - 1)]


def ancestors(muscle_id: str, catalog: MuscleCatalog) -> list[str]:
    """Every ancestor reachable over any declared parent edge, each listed once."""
    found: list[str] = []
    seen = {muscle_id}
    stack = [muscle_id]
    while stack:
        muscle = catalog.get(stack.pop())
        if muscle is None:
            continue
        for pid in muscle.parent_ids:
            if pid in seen:
                continue
            seen.add(pid)
            found.append(pid)
            stack.append(pid)
    return found


def primary_descendants(muscle_id: str, catalog: MuscleCatalog) -> list[str]:
    """All muscles below ``muscle_id`` in the primary-parent tree, depth first."""
    found: list[str] = []
    seen = {muscle_id}

    def walk(parent_id: str) -> None:
        for child in catalog.primary_children(parent_id):
            if child.id in seen:
                continue
            seen.add(child.id)
            found.append(child.id)
            walk(child.id)

    walk(muscle_id)
    return found


def paths_from_roots(muscle_id: str, catalog: MuscleCatalog) -> list[list[str]]:
    """Every root-to-muscle path over all declared parents."""

    def walk(current: str, below: frozenset[str]) -> list[list[str]]:
        muscle = catalog.get(current)
        parents = [p for p in (muscle.parent_ids if muscle else ()) if p not in below]
        if not parents:
            return [[current]]
        paths: list[list[str]] = []
        for pid in dict.fromkeys(parents):
            for path in walk(pid, below | {current}):
                paths.append(path + [current])
        return paths

    return walk(muscle_id, frozenset({muscle_id}))
