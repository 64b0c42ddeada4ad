"""Best-effort detection of a header row in pasted spreadsheet data.

The rules are a heuristic: a short header made of number-like names can be
rejected, and a data row with mostly text cells can be accepted.
"""
from __future__ import annotations

import math
import re
import unicodedata
from typing import Sequence

_NUMBER = re.compile(r"^-?\d+([.,]\d+)?$")
_ISO_DATE = re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}$")
_BOOLEAN = re.compile(r"^(true|false|yes|no)$", re.IGNORECASE)
_ALPHA = re.compile(r"[A-Za-z]")


def _is_currency_amount(value: str) -> bool:
    if value and unicodedata.category(value[0]) == "Sc":
        value = value[1:]
    return bool(value) and value[0].isascii() and value[0].isdigit()


def is_likely_data_token(value: str) -> bool:
    normalized = value.strip()
    if not normalized:
        return False
    return bool(
        _NUMBER.match(normalized)
        or _ISO_DATE.match(normalized)
        or _BOOLEAN.match(normalized)
        or _is_currency_amount(normalized)
    )


def looks_like_header(first_row: Sequence[str]) -> bool:
    cells = [cell.strip() for cell in first_row]
    non_empty = [cell for cell in cells if cell]
    if len(non_empty) < 2:
        return False

    alpha_count = sum(1 for cell in non_empty if _ALPHA.search(cell))
    data_count = sum(1 for cell in non_empty if is_likely_data_token(cell))

    if alpha_count == 0:
        return False
    if data_count == len(non_empty) and alpha_count < len(non_empty):
        return False
    return alpha_count >= math.ceil(len(non_empty) / 2)


__all__ = ["is_likely_data_token", "looks_like_header"]
