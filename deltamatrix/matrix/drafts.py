"""Buffered, uncommitted edits to one motion's delta relationships.

A draft never touches persistence; :meth:`MotionDeltaMatrixService.commit_draft`
writes it. Cells are keyed ``table::row_id``.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from deltamatrix.matrix.relationships import DeltaRelationship
from deltamatrix.models.delta_value import ABSENT, INHERIT, Inherit, ScoreMap, merge_rule
from deltamatrix.models.records import DeltaRow

CELL_KEY_SEPARATOR = "::"


@dataclass(frozen=True)
class RemoveMarker:
    """Buffered removal of the motion's key from a row."""


REMOVE = RemoveMarker()

Override = Union[Inherit, ScoreMap, RemoveMarker]


def cell_key(table_key: str, row_id: str) -> str:
    return f"{table_key}{CELL_KEY_SEPARATOR}{row_id}"


def split_cell_key(key: str) -> tuple[str, str]:
    table_key, _, row_id = key.partition(CELL_KEY_SEPARATOR)
    return table_key, row_id


@dataclass(frozen=True)
class AddedRow:
    table_key: str
    row_id: str
    row_label: str


@dataclass
class DraftCommitResult:
    """Rows written by a commit, and buffered cells dropped because their row is gone."""

    written: int = 0
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"written": self.written, "skipped": list(self.skipped)}


@dataclass
class DraftBuffer:
    """Per-cell overrides for ``motion_id`` plus rows newly linked to it."""

    motion_id: str
    overrides: dict[str, Override] = field(default_factory=dict)
    added: list[AddedRow] = field(default_factory=list)

    def set(self, table_key: str, row_id: str, value: Inherit | ScoreMap) -> None:
        self.overrides[cell_key(table_key, row_id)] = value

    def remove(self, table_key: str, row_id: str) -> None:
        self.overrides[cell_key(table_key, row_id)] = REMOVE

    def add(self, table_key: str, row_id: str, row_label: str | None = None) -> None:
        """Link a new row with an empty modifier."""
        if not self.is_added(table_key, row_id):
            self.added.append(AddedRow(table_key, row_id, row_label or row_id))
        self.overrides[cell_key(table_key, row_id)] = ScoreMap({})

    def is_added(self, table_key: str, row_id: str) -> bool:
        return any(a.table_key == table_key and a.row_id == row_id for a in self.added)

    def toggle_inherit(self, table_key: str, row_id: str, current: Inherit | ScoreMap) -> Inherit | ScoreMap:
        """Flip a cell between inherit and an empty modifier; returns the new value."""
        value: Inherit | ScoreMap = ScoreMap({}) if isinstance(current, Inherit) else INHERIT
        self.set(table_key, row_id, value)
        return value

    def get(self, table_key: str, row_id: str) -> Override | None:
        return self.overrides.get(cell_key(table_key, row_id))

    @property
    def is_dirty(self) -> bool:
        return bool(self.overrides) or bool(self.added)

    def discard(self) -> None:
        self.overrides.clear()
        self.added.clear()

    def pending(self) -> Iterator[tuple[str, str, Override]]:
        """Buffered ``(table_key, row_id, override)`` in the order they were first touched."""
        for key, override in self.overrides.items():
            table_key, row_id = split_cell_key(key)
            yield table_key, row_id, override

    def apply_to_row(self, row: DeltaRow, override: Override) -> dict[str, Any]:
        """The row's ``delta_rules`` with only this motion's key changed."""
        value = ABSENT if isinstance(override, RemoveMarker) else override
        return merge_rule(row.delta_rules, self.motion_id, value)

    def overlay(
        self,
        relationships: Mapping[str, list[DeltaRelationship]],
    ) -> dict[str, list[DeltaRelationship]]:
        """Relationships as they will look once the draft is committed.

        Removed rows drop out, overridden values replace the stored ones and
        added rows are appended after the existing ones.
        """
        view: dict[str, list[DeltaRelationship]] = {}
        for table_key, rels in relationships.items():
            kept = []
            for rel in rels:
                override = self.get(table_key, rel.row_id)
                if isinstance(override, RemoveMarker):
                    continue
                if override is not None:
                    rel = DeltaRelationship(table_key, rel.row_id, rel.row_label, override)
                kept.append(rel)
            view[table_key] = kept
        for added in self.added:
            override = self.get(added.table_key, added.row_id)
            if isinstance(override, RemoveMarker) or override is None:
                continue
            rels = view.setdefault(added.table_key, [])
            if any(r.row_id == added.row_id for r in rels):
                continue
            rels.append(DeltaRelationship(added.table_key, added.row_id, added.row_label, override))
        return {key: rels for key, rels in view.items() if rels}
