"""Display formatting for cent amounts."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import lru_cache

from .money import round_cents

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "PHP": "₱",
    "THB": "฿",
    "INR": "₹",
    "KRW": "₩",
    "VND": "₫",
    "IRR": "﷼",
    "CAD": "$",
    "AUD": "$",
    "SGD": "$",
    "MYR": "RM",
    "IDR": "Rp",
}

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class CurrencyFormatter:
    code: str
    symbol: str
    display: str = "symbol"

    def format(self, cents: int) -> str:
        sign = "-" if cents < 0 else ""
        amount = f"{abs(cents) / 100:,.2f}"
        if self.display == "code":
            return f"{sign}{self.code} {amount}"
        return f"{sign}{self.symbol}{amount}"


@lru_cache(maxsize=None)
def get_currency_formatter(currency: str, display: str = "symbol") -> CurrencyFormatter:
    """One formatter per currency and display style for the life of the process."""
    code = currency.upper()
    return CurrencyFormatter(code=code, symbol=CURRENCY_SYMBOLS.get(code, code + " "), display=display)


def currency_code_from_settings(base_currency: str | None) -> str:
    normalized = base_currency.strip().upper() if isinstance(base_currency, str) else ""
    return normalized if _CURRENCY_CODE.match(normalized) else "USD"


def currency_symbol(currency: str | None) -> str:
    return get_currency_formatter(currency_code_from_settings(currency)).symbol


def apply_rounding_increment(cents: int, increment: int = 1, mode: str = "nearest") -> int:
    increment = max(1, int(increment or 1))
    if increment == 1:
        return cents
    steps = cents / increment
    if mode == "up":
        return math.ceil(steps) * increment
    if mode == "down":
        return math.floor(steps) * increment
    return round_cents(steps) * increment


def format_cents(
    cents: object,
    currency: str | None = "USD",
    rounding_increment: int = 1,
    rounding_mode: str = "nearest",
    display: str = "symbol",
) -> str:
    safe = apply_rounding_increment(round_cents(cents), rounding_increment, rounding_mode)
    return get_currency_formatter(currency_code_from_settings(currency), display).format(safe)


__all__ = [
    "CurrencyFormatter",
    "apply_rounding_increment",
    "currency_code_from_settings",
    "currency_symbol",
    "format_cents",
    "get_currency_formatter",
]
