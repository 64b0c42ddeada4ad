from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass
class UniformityResult:
    ok: bool
    reason: str = ""
    # 1-based, the header is row 1
    row_number: int | None = None


def _filled_pattern(row: List[str]) -> tuple[bool, ...]:
    return tuple(bool(cell.strip()) for cell in row)


def validate_uniformity(rows: List[List[str]], strict: bool = False) -> UniformityResult:
    """
    Check that every data row has the header's shape.

    Strict mode additionally rejects empty cells and rows whose filled-cell
    pattern differs from the header's.
    """
    if not rows or len(rows[0]) < 2:
        return UniformityResult(
            ok=False,
            reason="The header row must have at least 2 columns.",
            row_number=1,
        )

    if len(rows) < 2:
        return UniformityResult(ok=False, reason="At least one data row is required below the header.")

    header = rows[0]
    expected = len(header)
    for index, row in enumerate(rows, start=1):
        if len(row) != expected:
            return UniformityResult(
                ok=False,
                reason=f"Row {index} has {len(row)} columns; expected {expected}.",
                row_number=index,
            )

    if not strict:
        return UniformityResult(ok=True)

    for index, row in enumerate(rows, start=1):
        empty_columns = [str(col) for col, cell in enumerate(row, start=1) if not cell.strip()]
        if empty_columns:
            return UniformityResult(
                ok=False,
                reason=f"Row {index} has empty cell(s) in column(s): {', '.join(empty_columns)}.",
                row_number=index,
            )

    header_pattern = _filled_pattern(header)
    for index, row in enumerate(rows[1:], start=2):
        if _filled_pattern(row) != header_pattern:
            return UniformityResult(
                ok=False,
                reason=f"Row {index} does not match the filled-cell layout of the header row.",
                row_number=index,
            )

    return UniformityResult(ok=True)


__all__ = ["UniformityResult", "validate_uniformity"]
