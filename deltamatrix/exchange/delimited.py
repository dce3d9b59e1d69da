"""Tab- and comma-delimited text with RFC 4180 quoting."""
from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence

TAB = "\t"
COMMA = ","
BOM = "\ufeff"

LINE_TERMINATORS = {TAB: "\n", COMMA: "\r\n"}


def detect_delimiter(text: str) -> str:
    """Tab when the header line contains one, comma otherwise."""
    header = next((line for line in text.lstrip(BOM).splitlines() if line.strip()), "")
    return TAB if TAB in header else COMMA


def read_rows(text: str, delimiter: str | None = None) -> list[list[str]]:
    """Parse delimited text into trimmed cells, skipping blank records.

    Quoted fields may contain the delimiter, doubled quotes and line breaks.
    """
    text = text.lstrip(BOM)
    if delimiter is None:
        delimiter = detect_delimiter(text)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    rows = []
    for record in reader:
        cells = [cell.strip() for cell in record]
        if any(cells):
            rows.append(cells)
    return rows


def write_rows(rows: Iterable[Sequence[str]], delimiter: str = TAB) -> str:
    """Serialize rows, quoting only cells that need it.

    Tab output uses ``\\n`` line endings and comma output ``\\r\\n``; there is
    no trailing line break.
    """
    terminator = LINE_TERMINATORS.get(delimiter, "\n")
    buffer = io.StringIO(newline="")
    writer = csv.writer(
        buffer,
        delimiter=delimiter,
        lineterminator=terminator,
        quoting=csv.QUOTE_MINIMAL,
    )
    writer.writerows(rows)
    text = buffer.getvalue()
    return text[: -len(terminator)] if text.endswith(terminator) else text
