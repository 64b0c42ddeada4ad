"""Per-user application settings: defaults, normalization and persistence."""
from __future__ import annotations

import logging
from dataclasses import replace

from .domain_models import AppSettings, UomConversion
from .money import (
    MAX_MARKUP_PCT,
    MAX_TAX_PCT,
    MAX_WASTE_PCT,
    as_finite_number,
    clamp,
    is_finite_number,
    now_iso,
    round_cents,
)

logger = logging.getLogger(__name__)

SETTINGS_COLLECTION = "settings"
SETTINGS_RECORD_ID = "app_settings"

DATE_FORMATS = ("MM/dd/yyyy", "dd/MM/yyyy", "yyyy-MM-dd")
ROUNDING_MODES = ("nearest", "up", "down")
COSTING_METHODS = ("standard", "average", "fifo")


def default_uom_conversions() -> list[UomConversion]:
    return [
        UomConversion(id="conv_kg_lb", from_unit="kg", to_unit="lb", factor=2.20462),
        UomConversion(id="conv_lb_kg", from_unit="lb", to_unit="kg", factor=0.453592),
        UomConversion(id="conv_l_gal", from_unit="l", to_unit="gal", factor=0.264172),
        UomConversion(id="conv_gal_l", from_unit="gal", to_unit="l", factor=3.78541),
        UomConversion(id="conv_m_ft", from_unit="m", to_unit="ft", factor=3.28084),
        UomConversion(id="conv_ft_m", from_unit="ft", to_unit="m", factor=0.3048),
    ]


def make_default_settings(now: str | None = None) -> AppSettings:
    now = now or now_iso()
    return AppSettings(uom_conversions=default_uom_conversions(), created_at=now, updated_at=now)


def _normalize_conversion(raw: object) -> UomConversion | None:
    if not isinstance(raw, dict):
        return None
    from_unit = raw.get("fromUnit") if isinstance(raw.get("fromUnit"), str) else ""
    to_unit = raw.get("toUnit") if isinstance(raw.get("toUnit"), str) else ""
    factor = as_finite_number(raw.get("factor"), 0)
    if not from_unit or not to_unit or factor <= 0:
        return None
    conv_id = raw.get("id") if isinstance(raw.get("id"), str) and raw.get("id") else f"{from_unit}_{to_unit}"
    return UomConversion(id=conv_id, from_unit=from_unit, to_unit=to_unit, factor=factor)


def _clamp_int(value: object, lo: int, hi: int, fallback: int) -> int:
    if not is_finite_number(value):
        return fallback
    return int(min(hi, max(lo, round_cents(value))))


def _clamp_float(value: object, lo: float, hi: float, fallback: float) -> float:
    if not is_finite_number(value):
        return fallback
    return clamp(value, lo, hi)


def _choice(value: object, choices: tuple[str, ...], fallback: str) -> str:
    return value if isinstance(value, str) and value in choices else fallback


def normalize_settings(raw: object) -> AppSettings:
    """Coerce a loosely-typed settings payload; unknown values keep defaults."""

    base = make_default_settings()
    if not isinstance(raw, dict):
        return base

    def text(key: str, fallback: str) -> str:
        value = raw.get(key)
        return value if isinstance(value, str) else fallback

    conversions_raw = raw.get("uomConversions")
    if not isinstance(conversions_raw, list):
        conversions_raw = []
    conversions = [conv for conv in map(_normalize_conversion, conversions_raw) if conv is not None]

    created_at = text("createdAt", base.created_at)
    return AppSettings(
        country_code=text("countryCode", base.country_code).upper(),
        timezone=text("timezone", base.timezone),
        date_format=_choice(raw.get("dateFormat"), DATE_FORMATS, base.date_format),
        base_currency=text("baseCurrency", base.base_currency).upper(),
        currency_display="code" if raw.get("currencyDisplay") == "code" else "symbol",
        currency_rounding_increment=_clamp_int(
            raw.get("currencyRoundingIncrement"), 1, 100, base.currency_rounding_increment
        ),
        currency_rounding_mode=_choice(raw.get("currencyRoundingMode"), ROUNDING_MODES, "nearest"),
        unit_system="imperial" if raw.get("unitSystem") == "imperial" else "metric",
        default_material_unit=text("defaultMaterialUnit", base.default_material_unit),
        uom_conversions=conversions or base.uom_conversions,
        costing_method=_choice(raw.get("costingMethod"), COSTING_METHODS, "standard"),
        default_waste_pct=_clamp_float(raw.get("defaultWastePct"), 0, MAX_WASTE_PCT, base.default_waste_pct),
        default_markup_pct=_clamp_float(
            raw.get("defaultMarkupPct"), 0, MAX_MARKUP_PCT, base.default_markup_pct
        ),
        default_tax_pct=_clamp_float(raw.get("defaultTaxPct"), 0, MAX_TAX_PCT, base.default_tax_pct),
        price_includes_tax=bool(raw.get("priceIncludesTax")),
        quantity_precision=_clamp_int(raw.get("quantityPrecision"), 0, 6, base.quantity_precision),
        price_precision=_clamp_int(raw.get("pricePrecision"), 0, 6, base.price_precision),
        created_at=created_at,
        updated_at=text("updatedAt", base.updated_at),
    )


def load_settings(store, owner: str, base_currency: str | None = None) -> AppSettings:
    """Return the owner's settings, creating and storing defaults on first use."""

    stored = store.get(owner, SETTINGS_COLLECTION, SETTINGS_RECORD_ID)
    if stored is None:
        settings = make_default_settings()
        if base_currency:
            settings.base_currency = base_currency.upper()
        store.insert(owner, SETTINGS_COLLECTION, {"id": SETTINGS_RECORD_ID, **settings.to_dict()})
        logger.debug("Created default settings for %s", owner)
        return settings
    return normalize_settings(stored)


def save_settings(store, owner: str, settings: AppSettings) -> AppSettings:
    """Persist settings; this is the only path that mutates them."""

    saved = replace(settings, updated_at=now_iso())
    payload = {"id": SETTINGS_RECORD_ID, **saved.to_dict()}
    if store.get(owner, SETTINGS_COLLECTION, SETTINGS_RECORD_ID) is None:
        store.insert(owner, SETTINGS_COLLECTION, payload)
    else:
        store.update(owner, SETTINGS_COLLECTION, payload)
    logger.info("Saved settings for %s", owner)
    return saved


__all__ = [
    "default_uom_conversions",
    "load_settings",
    "make_default_settings",
    "normalize_settings",
    "save_settings",
]
