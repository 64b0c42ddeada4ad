"""Integer-cent arithmetic shared by the import and costing code."""
from __future__ import annotations

import datetime as dt
import math
import uuid

MAX_WASTE_PCT = 1000
MAX_MARKUP_PCT = 10000
MAX_TAX_PCT = 1000
MAX_OVERHEAD_PCT = 1000


def _to_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def is_finite_number(value: object) -> bool:
    number = _to_float(value)
    return number is not None and math.isfinite(number)


def as_finite_number(value: object, fallback: float = 0) -> float:
    """Return ``value`` as a finite number, or ``fallback`` when it is not one."""
    number = _to_float(value)
    if number is None or not math.isfinite(number):
        return fallback
    return number


def round_half_away(value: float) -> int:
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def round_cents(cents: object) -> int:
    """Round to a whole cent; anything non-finite becomes 0."""
    number = _to_float(cents)
    if number is None or not math.isfinite(number):
        return 0
    return round_half_away(number)


def clamp(n: object, lo: float, hi: float) -> float:
    number = _to_float(n)
    if number is None or not math.isfinite(number):
        return lo
    return min(hi, max(lo, number))


def non_negative(value: object) -> float:
    return max(0.0, as_finite_number(value, 0))


def make_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4()}"


def now_iso() -> str:
    now = dt.datetime.now(dt.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> float:
    """Timestamp of an ISO string for sorting; unparseable values sort first."""
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.timestamp()


__all__ = [
    "MAX_MARKUP_PCT",
    "MAX_OVERHEAD_PCT",
    "MAX_TAX_PCT",
    "MAX_WASTE_PCT",
    "as_finite_number",
    "clamp",
    "is_finite_number",
    "make_id",
    "non_negative",
    "now_iso",
    "parse_iso",
    "round_cents",
    "round_half_away",
]
