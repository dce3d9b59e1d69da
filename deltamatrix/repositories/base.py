"""Table collaborator interface."""
from abc import ABC, abstractmethod
from typing import Any


class TableGateway(ABC):
    """Async access to the admin tables backing the matrix.

    Implementations raise :class:`~deltamatrix.core.exceptions.PersistenceError`
    from every method when the backing store cannot be reached or rejects the
    call.
    """

    @abstractmethod
    async def fetch_table(self, name: str) -> list[dict[str, Any]]:
        """All rows of a named table, in stored order."""

    @abstractmethod
    async def update_row(self, name: str, row_id: str, fields: dict[str, Any]) -> None:
        """Merge ``fields`` into one existing row."""

    @abstractmethod
    async def sync_derived_config(self, motion_id: str) -> None:
        """Ask the store to recompute cached configuration derived from a motion's delta rules."""

    async def close(self) -> None:
        """Release any held resources."""
