"""Sequential item codes such as ``MAT-0001``."""
from __future__ import annotations

import re
from typing import Iterable


def _normalize(value: str) -> str:
    return (value or "").strip().upper()


def parse_code_number(code: str, prefix: str) -> int | None:
    normalized_prefix = _normalize(prefix)
    if not normalized_prefix:
        return None
    match = re.fullmatch(re.escape(normalized_prefix) + r"(\d+)", _normalize(code))
    return int(match.group(1)) if match else None


def get_next_code_number(codes: Iterable[str], prefix: str) -> int:
    numbers = [n for n in (parse_code_number(code, prefix) for code in codes) if n is not None]
    return max(numbers, default=0) + 1


def format_code(prefix: str, number: int, min_digits: int = 4) -> str:
    safe_number = number if isinstance(number, int) and number > 0 else 1
    return f"{_normalize(prefix)}{safe_number:0{min_digits}d}"


__all__ = ["format_code", "get_next_code_number", "parse_code_number"]
