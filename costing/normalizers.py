"""Parsers that turn loosely-typed stored or imported data into records.

Every function accepts anything (decoded JSON, form payloads, rows read back
from storage) and returns typed records. Entries that are not objects are
dropped; missing or non-finite numbers fall back to the defaults below and
never raise.

Defaults: material unit cost 0, unit ``"ea"``; purchase quantity 1 and usable
quantity equal to quantity; BOM line quantity 1, sort order 0; BOM output
quantity 1; sheet batch size 1, waste/markup/tax 0.
"""
from __future__ import annotations

import json
import logging
from typing import Any, List

from .costing_engine import compute_purchase_total_cents, compute_unit_cost_cents_from_cost
from .domain_models import (
    PURCHASE_MARKETPLACES,
    BomLine,
    BomRecord,
    CostSheet,
    FlatOverhead,
    LaborItem,
    MaterialItem,
    MaterialRecord,
    OverheadItem,
    PercentOverhead,
    PurchaseRecord,
    StoredData,
)
from .money import (
    MAX_MARKUP_PCT,
    MAX_TAX_PCT,
    MAX_WASTE_PCT,
    as_finite_number,
    clamp,
    make_id,
    now_iso,
    parse_iso,
    round_cents,
)

logger = logging.getLogger(__name__)

EPOCH_ISO = "1970-01-01T00:00:00.000Z"


def _str(value: Any, fallback: str = "") -> str:
    return value if isinstance(value, str) else fallback


def _id(value: Any, prefix: str) -> str:
    return value if isinstance(value, str) and value else make_id(prefix)


def _optional_id(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _cents(value: Any, fallback: int = 0) -> int:
    return max(0, round_cents(as_finite_number(value, fallback)))


def _bool(value: Any, fallback: bool = True) -> bool:
    return fallback if value is None else bool(value)


def _objects(raw: Any) -> List[dict]:
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


def parse_material_records(raw: Any) -> List[MaterialRecord]:
    now = now_iso()
    return [
        MaterialRecord(
            id=_id(row.get("id"), "mat"),
            name=_str(row.get("name")),
            code=_str(row.get("code")),
            category=_str(row.get("category")),
            unit=_str(row.get("unit"), "ea"),
            unit_cost_cents=_cents(row.get("unitCostCents")),
            supplier=_str(row.get("supplier")),
            last_purchase_cost_cents=_cents(row.get("lastPurchaseCostCents")),
            last_purchase_date=_str(row.get("lastPurchaseDate")),
            is_active=_bool(row.get("isActive")),
            created_at=_str(row.get("createdAt"), now),
            updated_at=_str(row.get("updatedAt"), now),
        )
        for row in _objects(raw)
    ]


def normalize_marketplace(value: Any, fallback: str = "other") -> str:
    token = _str(value).strip().lower()
    return token if token in PURCHASE_MARKETPLACES else fallback


def parse_purchase_records(raw: Any) -> List[PurchaseRecord]:
    now = now_iso()
    records = []
    for row in _objects(raw):
        quantity = max(0.0, as_finite_number(row.get("quantity"), 1))
        cost_cents = _cents(row.get("costCents"))
        unit_cost_cents = (
            _cents(row.get("unitCostCents"))
            if "unitCostCents" in row
            else compute_unit_cost_cents_from_cost(quantity, cost_cents)
        )
        store = _str(row.get("store"))
        supplier = _str(row.get("supplier"), store)
        records.append(
            PurchaseRecord(
                id=_id(row.get("id"), "purchase"),
                purchase_date=_str(row.get("purchaseDate"), now[:10]),
                material_id=_optional_id(row.get("materialId")),
                material_name=_str(row.get("materialName")),
                description=_str(row.get("description")),
                variation=_str(row.get("variation")),
                quantity=quantity,
                usable_quantity=max(0.0, as_finite_number(row.get("usableQuantity"), quantity)),
                unit=_str(row.get("unit"), "ea"),
                unit_cost_cents=unit_cost_cents,
                cost_cents=cost_cents,
                total_cost_cents=compute_purchase_total_cents(quantity, unit_cost_cents),
                currency=_str(row.get("currency"), "USD").upper(),
                marketplace=normalize_marketplace(row.get("marketplace"), "local"),
                store=store or supplier,
                supplier=supplier,
                reference_no=_str(row.get("referenceNo")),
                notes=_str(row.get("notes")),
                created_at=_str(row.get("createdAt"), now),
                updated_at=_str(row.get("updatedAt"), now),
            )
        )
    return records


def _make_blank_bom_line(line_id: str, sort_order: int = 0, now: str = "") -> BomLine:
    return BomLine(id=line_id, sort_order=sort_order, created_at=now, updated_at=now)


def normalize_bom_line(row: dict, fallback_prefix: str = "bomline", now: str = "") -> BomLine:
    now = now or now_iso()
    return BomLine(
        id=_id(row.get("id"), fallback_prefix),
        sort_order=max(0, int(as_finite_number(row.get("sortOrder"), 0))),
        component_type="bom_item" if row.get("componentType") == "bom_item" else "material",
        material_id=_optional_id(row.get("materialId")),
        component_bom_id=_optional_id(row.get("componentBomId")),
        component_name=_str(row.get("componentName")),
        quantity=max(0.0, as_finite_number(row.get("quantity"), 1)),
        unit=_str(row.get("unit"), "ea"),
        unit_cost_cents=_cents(row.get("unitCostCents")),
        notes=_str(row.get("notes")),
        created_at=_str(row.get("createdAt"), now),
        updated_at=_str(row.get("updatedAt"), now),
    )


def parse_bom_records(raw: Any) -> List[BomRecord]:
    """Parse BOMs; lines are ordered by sort order then creation time and
    renumbered 0..n-1. A BOM with no lines gets one blank material line."""
    now = now_iso()
    records = []
    for row in _objects(raw):
        lines = [
            normalize_bom_line(line, f"bomline_{index}", now)
            for index, line in enumerate(_objects(row.get("lines")))
        ]
        lines.sort(key=lambda line: (line.sort_order, parse_iso(line.created_at)))
        for index, line in enumerate(lines):
            line.sort_order = index
        if not lines:
            lines = [_make_blank_bom_line(make_id("bomline"), 0, now)]

        records.append(
            BomRecord(
                id=_id(row.get("id"), "bom"),
                name=_str(row.get("name"), "Untitled BOM"),
                code=_str(row.get("code")),
                item_type="product" if row.get("itemType") == "product" else "part",
                output_qty=max(0.0, as_finite_number(row.get("outputQty"), 1)),
                output_unit=_str(row.get("outputUnit"), "ea"),
                is_active=_bool(row.get("isActive")),
                notes=_str(row.get("notes")),
                created_at=_str(row.get("createdAt"), now),
                updated_at=_str(row.get("updatedAt"), now),
                lines=lines,
            )
        )
    return records


def _normalize_overhead(row: dict) -> OverheadItem | None:
    overhead_id = _str(row.get("id"))
    if not overhead_id:
        return None
    kind = _str(row.get("kind"))
    if kind == "flat":
        return FlatOverhead(id=overhead_id, name=_str(row.get("name")), amount_cents=_cents(row.get("amountCents")))
    if kind == "percent":
        return PercentOverhead(
            id=overhead_id, name=_str(row.get("name")), percent=max(0.0, as_finite_number(row.get("percent"), 0))
        )
    return None


def normalize_sheet(raw: Any) -> CostSheet | None:
    """Normalize one stored sheet; sheets and line items without an id are dropped."""
    if not isinstance(raw, dict):
        return None
    sheet_id = _str(raw.get("id"))
    if not sheet_id:
        return None

    materials = [
        MaterialItem(
            id=row["id"],
            material_id=_optional_id(row.get("materialId", row.get("material_id"))),
            name=_str(row.get("name")),
            qty=max(0.0, as_finite_number(row.get("qty"), 0)),
            unit=_str(row.get("unit")),
            unit_cost_cents=_cents(row.get("unitCostCents")),
        )
        for row in _objects(raw.get("materials"))
        if _str(row.get("id"))
    ]
    labor = [
        LaborItem(
            id=row["id"],
            role=_str(row.get("role")),
            hours=max(0.0, as_finite_number(row.get("hours"), 0)),
            rate_cents=_cents(row.get("rateCents")),
        )
        for row in _objects(raw.get("labor"))
        if _str(row.get("id"))
    ]
    overhead = [item for item in map(_normalize_overhead, _objects(raw.get("overhead"))) if item is not None]

    created_at = _str(raw.get("createdAt")) or EPOCH_ISO
    return CostSheet(
        id=sheet_id,
        name=_str(raw.get("name"), "Untitled"),
        sku=_str(raw.get("sku")),
        currency=_str(raw.get("currency"), "USD"),
        unit_name=_str(raw.get("unitName"), "unit"),
        batch_size=clamp(as_finite_number(raw.get("batchSize"), 1), 0, float("inf")),
        waste_pct=clamp(as_finite_number(raw.get("wastePct"), 0), 0, MAX_WASTE_PCT),
        markup_pct=clamp(as_finite_number(raw.get("markupPct"), 0), 0, MAX_MARKUP_PCT),
        tax_pct=clamp(as_finite_number(raw.get("taxPct"), 0), 0, MAX_TAX_PCT),
        materials=materials,
        labor=labor,
        overhead=overhead,
        notes=_str(raw.get("notes")),
        created_at=created_at,
        updated_at=_str(raw.get("updatedAt")) or created_at,
    )


def sort_purchases_by_date_desc(items: List[PurchaseRecord]) -> List[PurchaseRecord]:
    return sorted(
        items,
        key=lambda p: (parse_iso(f"{p.purchase_date}T00:00:00.000Z"), parse_iso(p.updated_at)),
        reverse=True,
    )


def sort_materials_by_name(items: List[MaterialRecord]) -> List[MaterialRecord]:
    return sorted(items, key=lambda m: (m.name.casefold(), m.id))


def parse_stored_data_json(json_text: str) -> StoredData | None:
    """Accept ``{"version": 1, "sheets": [...]}`` or a bare list of sheets."""
    try:
        parsed = json.loads(json_text)
    except (TypeError, ValueError):
        logger.info("Stored data is not valid JSON")
        return None

    selected_id = None
    if isinstance(parsed, list):
        sheets_raw = parsed
    elif isinstance(parsed, dict):
        if as_finite_number(parsed.get("version"), 0) != 1:
            return None
        sheets_raw = parsed.get("sheets")
        selected_id = _str(parsed.get("selectedId")) or None
    else:
        return None

    sheets = [sheet for sheet in map(normalize_sheet, sheets_raw if isinstance(sheets_raw, list) else []) if sheet]
    if not sheets:
        return None

    if not any(sheet.id == selected_id for sheet in sheets):
        selected_id = sheets[0].id
    return StoredData(sheets=sheets, selected_id=selected_id)


__all__ = [
    "normalize_bom_line",
    "normalize_marketplace",
    "normalize_sheet",
    "parse_bom_records",
    "parse_material_records",
    "parse_purchase_records",
    "parse_stored_data_json",
    "sort_materials_by_name",
    "sort_purchases_by_date_desc",
]
