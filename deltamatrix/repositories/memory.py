"""Dictionary-backed table gateway."""
from __future__ import annotations

import copy
from typing import Any

from deltamatrix.core.exceptions import PersistenceError
from deltamatrix.core.logging import get_logger
from deltamatrix.repositories.base import TableGateway

logger = get_logger(__name__)


class InMemoryTableGateway(TableGateway):
    """Holds tables as lists of row dicts.

    Every successful write and sync is recorded in ``writes`` / ``syncs``.
    ``fail_updates`` (``(table, row_id)`` pairs), ``fail_syncs`` (motion ids)
    and ``unavailable_tables`` make the matching calls raise
    :class:`PersistenceError`.
    """

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = copy.deepcopy(tables) if tables else {}
        self.writes: list[tuple[str, str, dict[str, Any]]] = []
        self.syncs: list[str] = []
        self.fail_updates: set[tuple[str, str]] = set()
        self.fail_syncs: set[str] = set()
        self.unavailable_tables: set[str] = set()

    async def fetch_table(self, name: str) -> list[dict[str, Any]]:
        if name in self.unavailable_tables:
            raise PersistenceError(f"Table {name} is unavailable", details={"table": name})
        return copy.deepcopy(self.tables.get(name, []))

    async def update_row(self, name: str, row_id: str, fields: dict[str, Any]) -> None:
        if (name, row_id) in self.fail_updates:
            raise PersistenceError(
                f"Failed to update {name}/{row_id}",
                details={"table": name, "row_id": row_id},
            )
        for row in self.tables.get(name, []):
            if str(row.get("id")) == row_id:
                row.update(copy.deepcopy(fields))
                self.writes.append((name, row_id, copy.deepcopy(fields)))
                logger.debug("row_updated", table=name, row_id=row_id, fields=sorted(fields))
                return
        raise PersistenceError(
            f"Row {row_id} not found in {name}",
            details={"table": name, "row_id": row_id},
        )

    async def sync_derived_config(self, motion_id: str) -> None:
        if motion_id in self.fail_syncs:
            raise PersistenceError(f"Sync failed for {motion_id}", details={"motion_id": motion_id})
        self.syncs.append(motion_id)
