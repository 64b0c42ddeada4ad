from __future__ import annotations

import re
from typing import List, Literal

ImportMode = Literal["lenient", "strict"]

IMPORT_MODES: tuple[str, ...] = ("lenient", "strict")

_EMBEDDED_BREAKS = re.compile(r"\r?\n|\t")


def sanitize_cell(cell: str) -> str:
    """Replace embedded newlines and tabs with a space and trim the cell."""
    return _EMBEDDED_BREAKS.sub(" ", cell).strip()


def trim_trailing_empty_columns(rows: List[List[str]]) -> List[List[str]]:
    """Cut every row at the last column that has content in any row."""
    last_non_empty = -1
    for row in rows:
        for index in range(len(row) - 1, -1, -1):
            if row[index].strip():
                last_non_empty = max(last_non_empty, index)
                break

    width = max(last_non_empty + 1, 1)
    return [row[:width] for row in rows]


def pad_rows(rows: List[List[str]]) -> List[List[str]]:
    if not rows:
        return []
    width = max(len(row) for row in rows)
    return [row + [""] * (width - len(row)) for row in rows]


def rectify_rows(rows: List[List[str]], mode: ImportMode = "lenient") -> List[List[str]]:
    """
    Clean every cell. In lenient mode short rows are also right-padded to
    the widest row; strict mode leaves widths alone so the uniformity check
    can report the offending row.
    """
    if mode == "lenient":
        rows = pad_rows(rows)
    return [[sanitize_cell(cell) for cell in row] for row in rows]


__all__ = [
    "IMPORT_MODES",
    "ImportMode",
    "pad_rows",
    "rectify_rows",
    "sanitize_cell",
    "trim_trailing_empty_columns",
]
