"""Ingest helpers shared by the CSV export adapters."""

from __future__ import annotations

import csv
from collections.abc import Iterator
from os import PathLike
from pathlib import Path

# Card exports from Brazilian banks come as UTF-8 (often with a BOM) or as
# Windows-1252; try them in that order.
_ENCODINGS = ("utf-8-sig", "cp1252")


def read_export_text(path: str | PathLike[str]) -> str:
    """Read a CSV export as text, tolerating the common encodings."""

    data = Path(path).read_bytes()
    primary, fallback = _ENCODINGS
    try:
        return data.decode(primary)
    except UnicodeDecodeError:
        return data.decode(fallback, errors="replace")


def iter_data_lines(text: str, *, delimiter: str = ";") -> Iterator[tuple[int, list[str]]]:
    """Yield ``(line_number, columns)`` for each non-blank line after the header.

    ``line_number`` is 1-based within ``text``. Columns are split with the
    stdlib :mod:`csv` reader so quoted fields may contain the delimiter;
    values are stripped.
    """

    for pos, raw in enumerate(text.splitlines()):
        if pos == 0:
            continue
        line = raw.strip()
        if not line:
            continue
        columns = next(csv.reader([line], delimiter=delimiter))
        yield pos + 1, [c.strip() for c in columns]


__all__ = ["iter_data_lines", "read_export_text"]
