from __future__ import annotations

from django import template

from ..formatting import format_cents

register = template.Library()


@register.filter
def cents(value, currency="USD"):
    """Render integer cents as money, e.g. ``{{ total|cents:"EUR" }}``."""
    if value is None or value == "":
        return "—"
    return format_cents(value, currency)


@register.filter
def percent(value, digits=1):
    try:
        return f"{float(value):.{int(digits)}f}%"
    except (TypeError, ValueError):
        return "—"
