"""Core cost roll-up calculations."""
from __future__ import annotations

from typing import Iterable

from .app_settings import make_default_settings
from .domain_models import (
    AppSettings,
    CostSheet,
    FlatOverhead,
    LaborItem,
    MaterialItem,
    OverheadItem,
    PercentOverhead,
    SheetTotals,
)
from .money import (
    MAX_MARKUP_PCT,
    MAX_OVERHEAD_PCT,
    MAX_TAX_PCT,
    MAX_WASTE_PCT,
    clamp,
    make_id,
    non_negative,
    now_iso,
    round_cents,
)


def sum_material_cents(items: Iterable[MaterialItem]) -> int:
    """Sum of each line's ``qty × unit cost``, rounded per line."""

    return sum(round_cents(non_negative(item.qty) * non_negative(item.unit_cost_cents)) for item in items)


def sum_labor_cents(items: Iterable[LaborItem]) -> int:
    return sum(round_cents(non_negative(item.hours) * non_negative(item.rate_cents)) for item in items)


def sum_overhead_flat_cents(items: Iterable[OverheadItem]) -> int:
    return sum(
        round_cents(non_negative(item.amount_cents)) for item in items if isinstance(item, FlatOverhead)
    )


def sum_overhead_percent_cents(items: Iterable[OverheadItem], base_cents: int) -> int:
    """Each percent item applies to the same base; they never compound."""

    total = 0
    for item in items:
        if not isinstance(item, PercentOverhead):
            continue
        pct = clamp(item.percent, 0, MAX_OVERHEAD_PCT)
        total += round_cents(base_cents * pct / 100)
    return total


def compute_totals(sheet: CostSheet) -> SheetTotals:
    """Compute the full cost breakdown for a sheet.

    Per-unit values are ``None`` when the batch size is zero.
    """

    materials_subtotal = sum_material_cents(sheet.materials)
    waste_pct = clamp(sheet.waste_pct, 0, MAX_WASTE_PCT)
    materials_with_waste = round_cents(materials_subtotal * (1 + waste_pct / 100))

    labor_subtotal = sum_labor_cents(sheet.labor)
    base = materials_with_waste + labor_subtotal

    overhead_flat = sum_overhead_flat_cents(sheet.overhead)
    overhead_percent = sum_overhead_percent_cents(sheet.overhead, base)
    overhead_total = overhead_flat + overhead_percent

    batch_total = base + overhead_total

    batch_size = clamp(sheet.batch_size, 0, float("inf"))
    cost_per_unit = round_cents(batch_total / batch_size) if batch_size > 0 else None

    markup_pct = clamp(sheet.markup_pct, 0, MAX_MARKUP_PCT)
    price_per_unit = None if cost_per_unit is None else round_cents(cost_per_unit * (1 + markup_pct / 100))

    profit_per_unit = (
        None if price_per_unit is None or cost_per_unit is None else price_per_unit - cost_per_unit
    )

    margin_pct = (
        round_cents(profit_per_unit / price_per_unit * 1000) / 10
        if price_per_unit and profit_per_unit is not None
        else None
    )

    tax_pct = clamp(sheet.tax_pct, 0, MAX_TAX_PCT)
    price_with_tax = (
        None if price_per_unit is None else price_per_unit + round_cents(price_per_unit * tax_pct / 100)
    )

    return SheetTotals(
        materials_subtotal_cents=materials_subtotal,
        materials_with_waste_cents=materials_with_waste,
        labor_subtotal_cents=labor_subtotal,
        overhead_flat_cents=overhead_flat,
        overhead_percent_cents=overhead_percent,
        overhead_total_cents=overhead_total,
        batch_total_cents=batch_total,
        cost_per_unit_cents=cost_per_unit,
        price_per_unit_cents=price_per_unit,
        profit_per_unit_cents=profit_per_unit,
        margin_pct=margin_pct,
        price_per_unit_with_tax_cents=price_with_tax,
    )


def compute_purchase_total_cents(quantity: float, unit_cost_cents: float) -> int:
    return max(0, round_cents(non_negative(quantity) * non_negative(unit_cost_cents)))


def compute_unit_cost_cents_from_cost(quantity: float, cost_cents: float) -> int:
    """Unit cost from a line total; zero when nothing was bought."""

    qty = non_negative(quantity)
    if qty <= 0:
        return 0
    return max(0, round_cents(non_negative(cost_cents) / qty))


def make_blank_sheet(sheet_id: str, settings: AppSettings | None = None) -> CostSheet:
    """Return an empty sheet seeded from the user's default percentages."""

    settings = settings or make_default_settings()
    now = now_iso()
    return CostSheet(
        id=sheet_id,
        name="Untitled",
        currency=settings.base_currency,
        unit_name="unit",
        batch_size=1,
        waste_pct=settings.default_waste_pct,
        markup_pct=settings.default_markup_pct,
        tax_pct=settings.default_tax_pct,
        materials=[MaterialItem(id=make_id("m"), qty=1)],
        labor=[LaborItem(id=make_id("l"))],
        overhead=[],
        created_at=now,
        updated_at=now,
    )


def touch(record):
    """Refresh ``updated_at`` on any record and return it."""

    record.updated_at = now_iso()
    return record


__all__ = [
    "compute_purchase_total_cents",
    "compute_totals",
    "compute_unit_cost_cents_from_cost",
    "make_blank_sheet",
    "sum_labor_cents",
    "sum_material_cents",
    "sum_overhead_flat_cents",
    "sum_overhead_percent_cents",
    "touch",
]
