"""Repositories package."""
from deltamatrix.repositories.base import TableGateway
from deltamatrix.repositories.http import HttpTableGateway
from deltamatrix.repositories.memory import InMemoryTableGateway

__all__ = [
    "TableGateway",
    "HttpTableGateway",
    "InMemoryTableGateway",
]
