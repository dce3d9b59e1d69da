"""Configuration package."""
from deltamatrix.config.delta_tables import (
    DELTA_TABLE_KEYS,
    DELTA_TABLES,
    MOTION_PATHS_TABLE,
    DeltaTable,
    get_table_label,
    grouped_table_headers,
)
from deltamatrix.config.settings import Settings, get_settings

__all__ = [
    "DELTA_TABLE_KEYS",
    "DELTA_TABLES",
    "MOTION_PATHS_TABLE",
    "DeltaTable",
    "Settings",
    "get_settings",
    "get_table_label",
    "grouped_table_headers",
]
