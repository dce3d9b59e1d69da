"""
Motion delta matrix service.

Holds a snapshot of the muscles, motions and delta tables read through a
:class:`TableGateway`, answers matrix queries from it, and writes edits back.

Write semantics:
- quick edits (``set_delta``/``add_delta``/``remove_delta``) write one row and
  raise immediately on failure
- ``commit_draft`` writes every buffered row; if any write fails the draft is
  kept so the caller can retry
- ``import_text`` is best effort, collecting per-row errors

Successful delta edits trigger a derived-config sync for the motion and its
parent motion only. Sync failures are logged, never raised.

Callers must not run two commits against the same row concurrently; the
store is last-write-wins.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from deltamatrix.config.delta_tables import DELTA_TABLE_KEYS, MOTION_PATHS_TABLE
from deltamatrix.core.exceptions import (
    DomainError,
    DraftCommitError,
    NotFoundError,
    ValidationError,
)
from deltamatrix.core.logging import get_logger
from deltamatrix.exchange.codec import ImportResult, apply_import, export_rows, export_text, parse_import
from deltamatrix.exchange.delimited import TAB
from deltamatrix.matrix.drafts import DraftBuffer, DraftCommitResult, RemoveMarker
from deltamatrix.matrix.family import PlaneAssignment, family_plane_assignments, motions_by_id
from deltamatrix.matrix.family import reassign_plane as moved_plane_rules
from deltamatrix.matrix.relationships import (
    DeltaRelationship,
    RelationshipCounts,
    ResolvedDelta,
    counts_for,
    relationships_for,
    resolve_all_deltas,
    resolve_delta,
)
from deltamatrix.matrix.trees import DisplayNode, EditTree, build_display_tree, build_edit_tree
from deltamatrix.models.delta_value import ABSENT, Inherit, ScoreMap, merge_rule
from deltamatrix.models.records import DeltaRow, Motion
from deltamatrix.repositories.base import TableGateway
from deltamatrix.scoring.grouping import GroupedItem, effective_grouping_id, group_motions
from deltamatrix.scoring.hierarchy import MuscleCatalog
from deltamatrix.scoring.selection import OptionGroup, best_default, option_groups, selectable_ids

logger = get_logger(__name__)

MUSCLES_TABLE = "muscles"
MOTIONS_TABLE = "motions"


@dataclass
class MatrixSnapshot:
    """Point-in-time copy of every table the matrix reads."""

    motions: list[Motion] = field(default_factory=list)
    muscles: MuscleCatalog = field(default_factory=lambda: MuscleCatalog(()))
    tables: dict[str, list[DeltaRow]] = field(default_factory=dict)

    def motion(self, motion_id: str) -> Motion | None:
        return next((m for m in self.motions if m.id == motion_id), None)

    def row(self, table_key: str, row_id: str) -> DeltaRow | None:
        return next((r for r in self.tables.get(table_key, ()) if r.id == row_id), None)


class MotionDeltaMatrixService:
    """Matrix queries and edits over one gateway."""

    def __init__(self, gateway: TableGateway, table_keys: Sequence[str] = DELTA_TABLE_KEYS):
        self._gateway = gateway
        self._table_keys = tuple(table_keys)
        self._snapshot: MatrixSnapshot | None = None

    @property
    def gateway(self) -> TableGateway:
        return self._gateway

    @property
    def table_keys(self) -> tuple[str, ...]:
        return self._table_keys

    async def _fetch_rows(self, name: str) -> list[dict]:
        try:
            return await self._gateway.fetch_table(name)
        except DomainError as e:
            logger.warning("table_unavailable", table=name, error=e.message)
            return []

    async def load(self) -> MatrixSnapshot:
        """Read every table afresh. Unavailable tables load as empty."""
        muscles = MuscleCatalog.from_records(await self._fetch_rows(MUSCLES_TABLE))
        motions = [Motion.from_record(r) for r in await self._fetch_rows(MOTIONS_TABLE)]
        tables = {}
        for key in self._table_keys:
            tables[key] = [DeltaRow.from_record(r) for r in await self._fetch_rows(key)]
        self._snapshot = MatrixSnapshot(motions=motions, muscles=muscles, tables=tables)
        logger.info(
            "matrix_loaded",
            muscles=len(muscles),
            motions=len(motions),
            rows=sum(len(rows) for rows in tables.values()),
        )
        return self._snapshot

    async def ensure_loaded(self) -> MatrixSnapshot:
        if self._snapshot is None:
            return await self.load()
        return self._snapshot

    def _require_table(self, table_key: str) -> None:
        if table_key not in self._table_keys:
            raise ValidationError("table", f"unknown delta table {table_key}", {"table": table_key})

    async def get_motion(self, motion_id: str) -> Motion:
        snapshot = await self.ensure_loaded()
        motion = snapshot.motion(motion_id)
        if motion is None:
            raise NotFoundError("motion", f"Motion {motion_id} not found", {"id": motion_id})
        return motion

    async def get_row(self, table_key: str, row_id: str) -> DeltaRow:
        self._require_table(table_key)
        snapshot = await self.ensure_loaded()
        row = snapshot.row(table_key, row_id)
        if row is None:
            raise NotFoundError("row", f"Row {row_id} not found in {table_key}", {"table": table_key, "id": row_id})
        return row

    async def grouped_motions(self) -> list[GroupedItem]:
        snapshot = await self.ensure_loaded()
        return group_motions(snapshot.motions, snapshot.muscles)

    async def relationships_for(
        self,
        motion_id: str,
        draft: DraftBuffer | None = None,
    ) -> dict[str, list[DeltaRelationship]]:
        """Relationships of a motion, with ``draft`` overlaid when given."""
        snapshot = await self.ensure_loaded()
        relationships = relationships_for(motion_id, snapshot.tables)
        if draft is not None:
            relationships = draft.overlay(relationships)
        return relationships

    async def counts_for(self, motion_id: str, table_key: str) -> RelationshipCounts:
        self._require_table(table_key)
        snapshot = await self.ensure_loaded()
        return counts_for(motion_id, table_key, snapshot.tables)

    async def grouping_options(self, motion_id: str) -> tuple[list[OptionGroup], str | None]:
        """Dropdown groups for a motion and the muscle pre-selected in it."""
        motion = await self.get_motion(motion_id)
        catalog = self._snapshot.muscles
        selectable = selectable_ids(motion.muscle_targets, catalog)
        groups = option_groups(selectable, catalog)
        default = motion.muscle_grouping_id or best_default(motion.muscle_targets, catalog, selectable)
        return groups, default

    async def effective_grouping(self, motion_id: str) -> str | None:
        motion = await self.get_motion(motion_id)
        return effective_grouping_id(motion, self._snapshot.muscles)

    async def resolve_delta(self, motion_id: str, table_key: str, row_id: str) -> ResolvedDelta | None:
        row = await self.get_row(table_key, row_id)
        return resolve_delta(motion_id, row, motions_by_id(self._snapshot.motions), table_key)

    async def resolve_selections(
        self,
        motion_id: str,
        selections: Sequence[tuple[str, str]],
    ) -> list[ResolvedDelta]:
        """Resolve a set of chosen rows for a motion, dropping rows that contribute nothing."""
        await self.get_motion(motion_id)
        for table_key, _ in selections:
            self._require_table(table_key)
        snapshot = self._snapshot
        return resolve_all_deltas(motion_id, selections, motions_by_id(snapshot.motions), snapshot.tables)

    async def delta_trees(
        self,
        motion_id: str,
        table_key: str,
        row_id: str,
    ) -> tuple[list[DisplayNode], EditTree]:
        """Display and edit trees for one relationship's score map."""
        row = await self.get_row(table_key, row_id)
        value = row.rule_for(motion_id)
        flat = value.scores if isinstance(value, ScoreMap) else {}
        catalog = self._snapshot.muscles
        return build_display_tree(flat, catalog), build_edit_tree(flat, catalog)

    async def family_planes(self, motion_id: str) -> list[PlaneAssignment]:
        await self.get_motion(motion_id)
        snapshot = self._snapshot
        return family_plane_assignments(
            motion_id,
            snapshot.motions,
            snapshot.tables.get(MOTION_PATHS_TABLE, []),
        )

    async def _sync_motion(self, motion_id: str) -> None:
        """Sync a motion, then its parent. Grandparents are never synced."""
        targets = [motion_id]
        motion = self._snapshot.motion(motion_id) if self._snapshot else None
        if motion is not None and motion.parent_id:
            targets.append(motion.parent_id)
        for target in targets:
            try:
                await self._gateway.sync_derived_config(target)
            except DomainError as e:
                logger.warning("derived_config_sync_failed", motion_id=target, error=e.message)
                return

    async def _write_cell(self, table_key: str, row_id: str, motion_id: str, value) -> None:
        row = await self.get_row(table_key, row_id)
        rules = merge_rule(row.delta_rules, motion_id, value)
        await self._gateway.update_row(table_key, row_id, {"delta_rules": rules})
        logger.info("delta_saved", table=table_key, row_id=row_id, motion_id=motion_id)
        await self.load()
        await self._sync_motion(motion_id)

    async def set_delta(self, table_key: str, row_id: str, motion_id: str, value: Inherit | ScoreMap) -> None:
        """Write one cell now. Raises :class:`PersistenceError` if the write fails."""
        await self._write_cell(table_key, row_id, motion_id, value)

    async def add_delta(self, table_key: str, row_id: str, motion_id: str) -> None:
        await self._write_cell(table_key, row_id, motion_id, ScoreMap({}))

    async def remove_delta(self, table_key: str, row_id: str, motion_id: str) -> None:
        await self._write_cell(table_key, row_id, motion_id, ABSENT)

    async def new_draft(self, motion_id: str) -> DraftBuffer:
        await self.get_motion(motion_id)
        return DraftBuffer(motion_id)

    async def commit_draft(self, draft: DraftBuffer) -> DraftCommitResult:
        """
        Write every buffered row of ``draft``, then clear it.

        Cells whose row is no longer in the snapshot are not written; they
        are listed in the result's ``skipped``.

        Returns:
            Rows written and cells skipped

        Raises:
            DraftCommitError: one or more writes failed; the draft is left intact
        """
        snapshot = await self.ensure_loaded()
        errors: list[str] = []
        skipped: list[str] = []
        written = 0
        for table_key, row_id, override in draft.pending():
            row = snapshot.row(table_key, row_id)
            if row is None:
                logger.warning("draft_row_missing", table=table_key, row_id=row_id, motion_id=draft.motion_id)
                skipped.append(f'{table_key}: row "{row_id}" not found, skipped')
                continue
            rules = draft.apply_to_row(row, override)
            try:
                await self._gateway.update_row(table_key, row_id, {"delta_rules": rules})
            except DomainError as e:
                errors.append(f'{table_key} "{row_id}": save failed - {e.message}')
                continue
            written += 1

        if errors:
            logger.error("draft_commit_failed", motion_id=draft.motion_id, written=written, failed=len(errors))
            raise DraftCommitError(errors, written=written)

        logger.info(
            "draft_committed",
            motion_id=draft.motion_id,
            written=written,
            skipped=len(skipped),
            removed=sum(isinstance(o, RemoveMarker) for _, _, o in draft.pending()),
        )
        draft.discard()
        await self.load()
        await self._sync_motion(draft.motion_id)
        return DraftCommitResult(written=written, skipped=skipped)

    async def reassign_plane(self, row_id: str, from_motion_id: str | None, to_motion_id: str) -> None:
        """Move a motion-path row's rule between members of a family."""
        row = await self.get_row(MOTION_PATHS_TABLE, row_id)
        await self.get_motion(to_motion_id)
        rules = moved_plane_rules(row, from_motion_id, to_motion_id)
        await self._gateway.update_row(MOTION_PATHS_TABLE, row_id, {"delta_rules": rules})
        logger.info("plane_reassigned", row_id=row_id, from_motion_id=from_motion_id, to_motion_id=to_motion_id)
        await self.load()

    async def set_muscle_grouping(self, motion_id: str, muscle_id: str | None) -> None:
        """Store a motion's grouping muscle, or clear it with ``None``."""
        await self.get_motion(motion_id)
        if muscle_id is not None and muscle_id not in self._snapshot.muscles:
            raise ValidationError("muscle_grouping_id", f"unknown muscle {muscle_id}", {"muscle_id": muscle_id})
        await self._gateway.update_row(MOTIONS_TABLE, motion_id, {"muscle_grouping_id": muscle_id})
        logger.info("muscle_grouping_set", motion_id=motion_id, muscle_id=muscle_id)
        await self.load()

    async def export_rows(self) -> list[dict]:
        snapshot = await self.ensure_loaded()
        return export_rows(snapshot.motions, snapshot.tables, self._table_keys)

    async def export_text(self, delimiter: str = TAB) -> str:
        return export_text(await self.export_rows(), delimiter, self._table_keys)

    async def import_text(self, text: str) -> ImportResult:
        """Parse and apply pasted exchange text; reloads when anything was written."""
        snapshot = await self.ensure_loaded()
        plan = parse_import(text, self._table_keys, {m.id for m in snapshot.motions})
        result = await apply_import(plan, self._gateway, snapshot.tables)
        if result.updated:
            await self.load()
        return result

    async def close(self) -> None:
        await self._gateway.close()
