"""Whole-matrix export and import.

One line per motion: the fixed motion columns, then one column per delta
table holding ``{row_id: value}`` for every row of that table referencing
the motion.
"""
from __future__ import annotations

import json
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from deltamatrix.config.delta_tables import DELTA_TABLE_KEYS, MOTION_PATHS_TABLE
from deltamatrix.core.exceptions import DomainError, ImportFormatError
from deltamatrix.core.logging import get_logger
from deltamatrix.exchange.delimited import TAB, read_rows, write_rows
from deltamatrix.models.delta_value import Absent, Inherit, ScoreMap, merge_rule, parse_delta_value
from deltamatrix.models.records import DeltaRow, Motion
from deltamatrix.repositories.base import TableGateway

logger = get_logger(__name__)

MOTION_ID = "motion_id"
FIXED_COLUMNS = (MOTION_ID, "motion_label", "parent_id", "muscle_targets")

# table -> row id -> motion id -> value
ChangeMap = dict[str, dict[str, dict[str, Inherit | ScoreMap]]]


def export_columns(table_keys: Sequence[str] = DELTA_TABLE_KEYS) -> list[str]:
    """Header row: fixed columns, the motion-path table if present, then the rest in order."""
    tables = [key for key in table_keys if key != MOTION_PATHS_TABLE]
    if MOTION_PATHS_TABLE in table_keys:
        tables.insert(0, MOTION_PATHS_TABLE)
    return [*FIXED_COLUMNS, *tables]


def export_rows(
    motions: Iterable[Motion],
    tables: Mapping[str, Sequence[DeltaRow]],
    table_keys: Sequence[str] = DELTA_TABLE_KEYS,
) -> list[dict[str, Any]]:
    """One record per motion; table cells are ``None`` when no row references the motion."""
    records = []
    for motion in motions:
        record: dict[str, Any] = {
            MOTION_ID: motion.id,
            "motion_label": motion.label,
            "parent_id": motion.parent_id,
            "muscle_targets": dict(motion.muscle_targets) or None,
        }
        for table_key in table_keys:
            cell = {}
            for row in tables.get(table_key, ()):
                value = row.rule_for(motion.id)
                if not isinstance(value, Absent):
                    cell[row.id] = value.to_raw()
            record[table_key] = cell or None
        records.append(record)
    return records


def _render_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def export_text(
    records: Sequence[Mapping[str, Any]],
    delimiter: str = TAB,
    table_keys: Sequence[str] = DELTA_TABLE_KEYS,
) -> str:
    """Delimited text for :func:`export_rows` output, header first."""
    columns = export_columns(table_keys)
    lines = [columns]
    lines.extend([_render_cell(record.get(col)) for col in columns] for record in records)
    return write_rows(lines, delimiter)


@dataclass
class ImportPlan:
    """Parsed changes awaiting application, plus per-cell problems found while parsing."""

    changes: ChangeMap = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    motions_read: int = 0

    @property
    def row_count(self) -> int:
        return sum(len(rows) for rows in self.changes.values())


@dataclass
class ImportResult:
    updated: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"updated": self.updated, "errors": list(self.errors)}


def parse_import(
    text: str,
    table_keys: Sequence[str] = DELTA_TABLE_KEYS,
    motion_ids: Collection[str] | None = None,
) -> ImportPlan:
    """
    Parse pasted exchange text into a change map.

    Cells holding malformed JSON or JSON that is not an object are reported
    and skipped. When ``motion_ids`` is given, lines naming any other motion
    are reported and skipped.

    Raises:
        ImportFormatError: no data, no ``motion_id`` column or no table column
    """
    if not text.strip():
        raise ImportFormatError("Paste data first")
    rows = read_rows(text)
    if len(rows) < 2:
        raise ImportFormatError("Need at least a header row and one data row")

    headers = rows[0]
    if MOTION_ID not in headers:
        raise ImportFormatError('Missing "motion_id" column', details={"headers": headers})
    motion_idx = headers.index(MOTION_ID)
    table_columns = [(idx, h) for idx, h in enumerate(headers) if h in table_keys]
    if not table_columns:
        raise ImportFormatError(
            "No table columns found (expected column names like motionPaths, grips, etc.)",
            details={"headers": headers},
        )

    plan = ImportPlan()
    for line_no, cells in enumerate(rows[1:], start=2):
        motion_id = cells[motion_idx] if motion_idx < len(cells) else ""
        if not motion_id:
            continue
        if motion_ids is not None and motion_id not in motion_ids:
            plan.errors.append(f'Row {line_no}: motion "{motion_id}" not found, skipped')
            continue
        plan.motions_read += 1
        for idx, table_key in table_columns:
            raw = cells[idx] if idx < len(cells) else ""
            if not raw or raw == "null":
                continue
            try:
                parsed = json.loads(raw)
            except ValueError:
                plan.errors.append(f"Row {line_no}, {table_key}: invalid JSON")
                continue
            if not isinstance(parsed, dict):
                plan.errors.append(f"Row {line_no}, {table_key}: expected a JSON object")
                continue
            table_changes = plan.changes.setdefault(table_key, {})
            for row_id, value in parsed.items():
                table_changes.setdefault(str(row_id), {})[motion_id] = parse_delta_value(value)
    logger.info(
        "import_parsed",
        motions=plan.motions_read,
        rows=plan.row_count,
        errors=len(plan.errors),
    )
    return plan


async def apply_import(
    plan: ImportPlan,
    gateway: TableGateway,
    tables: Mapping[str, Sequence[DeltaRow]],
) -> ImportResult:
    """Merge each planned row change into that row's current rules, one write per row.

    Unknown rows and failed writes are reported and do not stop the batch.
    """
    result = ImportResult(errors=list(plan.errors))
    for table_key, row_changes in plan.changes.items():
        rows = {row.id: row for row in tables.get(table_key, ())}
        for row_id, motion_values in row_changes.items():
            row = rows.get(row_id)
            if row is None:
                result.errors.append(f'{table_key}: row "{row_id}" not found, skipped')
                continue
            rules: dict[str, Any] = dict(row.delta_rules)
            for motion_id, value in motion_values.items():
                rules = merge_rule(rules, motion_id, value)
            try:
                await gateway.update_row(table_key, row_id, {"delta_rules": rules})
            except DomainError as e:
                logger.warning("import_row_failed", table=table_key, row_id=row_id, error=e.message)
                result.errors.append(f'{table_key} "{row_id}": save failed - {e.message}')
                continue
            result.updated += 1
    logger.info("import_applied", updated=result.updated, errors=len(result.errors))
    return result
