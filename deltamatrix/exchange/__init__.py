"""Delimited-text exchange of the whole delta matrix."""
from deltamatrix.exchange.codec import (
    FIXED_COLUMNS,
    ImportPlan,
    ImportResult,
    apply_import,
    export_columns,
    export_rows,
    export_text,
    parse_import,
)
from deltamatrix.exchange.delimited import COMMA, TAB, detect_delimiter, read_rows, write_rows

__all__ = [
    "COMMA",
    "FIXED_COLUMNS",
    "TAB",
    "ImportPlan",
    "ImportResult",
    "apply_import",
    "detect_delimiter",
    "export_columns",
    "export_rows",
    "export_text",
    "parse_import",
    "read_rows",
    "write_rows",
]
