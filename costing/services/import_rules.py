"""Small helpers shared by the import screens."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple


@dataclass(frozen=True)
class SelectOption:
    value: str
    aliases: Tuple[str, ...] = ()


MARKETPLACE_OPTIONS: List[SelectOption] = [
    SelectOption("shopee", ("shopee.com", "shoppee")),
    SelectOption("lazada", ("lazada.com", "lzd")),
    SelectOption("local", ("local store", "in store", "in-store", "offline")),
    SelectOption("other", ("others", "online", "misc")),
]


def _token(value: str) -> str:
    return value.strip().lower()


def resolve_imported_select_value(raw_value: str, options: Iterable[SelectOption]) -> str | None:
    """Match an imported cell against option values and aliases, ignoring case."""
    token = _token(raw_value or "")
    if not token:
        return None
    for option in options:
        if _token(option.value) == token:
            return option.value
        if any(_token(alias) == token for alias in option.aliases):
            return option.value
    return None


__all__ = [
    "MARKETPLACE_OPTIONS",
    "SelectOption",
    "resolve_imported_select_value",
]
