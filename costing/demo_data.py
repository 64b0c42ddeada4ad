"""Deterministic sample data a new owner can load before adding their own."""
from __future__ import annotations

from typing import List, Sequence

from .domain_models import (
    BomLine,
    BomRecord,
    CostSheet,
    FlatOverhead,
    LaborItem,
    MaterialItem,
    MaterialRecord,
    PercentOverhead,
)

DEMO_TIMESTAMP = "2026-02-09T00:00:00.000Z"
DEMO_BOM_TIMESTAMP = "2026-02-10T00:00:00.000Z"


def create_demo_sheet() -> CostSheet:
    return CostSheet(
        id="demo",
        name="Demo: Canvas Tote Bag",
        sku="TOTE-001",
        currency="USD",
        unit_name="bag",
        batch_size=10,
        waste_pct=6,
        markup_pct=55,
        tax_pct=0,
        materials=[
            MaterialItem(id="m_canvas", name="Canvas fabric", qty=6.2, unit="yd", unit_cost_cents=625),
            MaterialItem(id="m_thread", name="Thread", qty=1, unit="spool", unit_cost_cents=399),
            MaterialItem(id="m_label", name="Woven label", qty=10, unit="ea", unit_cost_cents=28),
        ],
        labor=[LaborItem(id="l_cut", role="Cut + sew", hours=2.5, rate_cents=2200)],
        overhead=[
            PercentOverhead(id="o_shop", name="Shop overhead", percent=12),
            FlatOverhead(id="o_pack", name="Packaging", amount_cents=600),
        ],
        notes="Sample sheet. Create a new sheet to start costing your own products.",
        created_at=DEMO_TIMESTAMP,
        updated_at=DEMO_TIMESTAMP,
    )


def create_demo_materials() -> List[MaterialRecord]:
    return [
        MaterialRecord(
            id="material_demo_canvas",
            name="Canvas fabric",
            code="CANVAS-10OZ",
            category="Fabric",
            unit="yd",
            unit_cost_cents=625,
            supplier="Metro Textile",
            last_purchase_cost_cents=599,
            last_purchase_date="2026-02-05",
            created_at=DEMO_TIMESTAMP,
            updated_at=DEMO_TIMESTAMP,
        ),
        MaterialRecord(
            id="material_demo_thread",
            name="Thread",
            code="THREAD-BLK",
            category="Accessories",
            unit="spool",
            unit_cost_cents=399,
            supplier="Sewing Hub",
            last_purchase_cost_cents=389,
            last_purchase_date="2026-02-03",
            created_at=DEMO_TIMESTAMP,
            updated_at=DEMO_TIMESTAMP,
        ),
    ]


def _material_line(line_id: str, order: int, material: MaterialRecord, quantity: float) -> BomLine:
    return BomLine(
        id=line_id,
        sort_order=order,
        component_type="material",
        material_id=material.id,
        component_name=material.name,
        quantity=quantity,
        unit=material.unit,
        unit_cost_cents=material.unit_cost_cents,
        created_at=DEMO_BOM_TIMESTAMP,
        updated_at=DEMO_BOM_TIMESTAMP,
    )


def create_demo_boms(materials: Sequence[MaterialRecord] = ()) -> List[BomRecord]:
    """A tote bag product built from a reusable handle-set part."""
    defaults = create_demo_materials()
    canvas = materials[0] if len(materials) > 0 else defaults[0]
    thread = materials[1] if len(materials) > 1 else defaults[1]

    handle_set = BomRecord(
        id="bom_demo_handle_set",
        name="Handle Set",
        code="PART-HANDLE-SET",
        item_type="part",
        output_qty=1,
        output_unit="set",
        notes="Reusable part used across multiple bags.",
        created_at=DEMO_BOM_TIMESTAMP,
        updated_at=DEMO_BOM_TIMESTAMP,
        lines=[
            _material_line("bomline_demo_handle_canvas", 0, canvas, 1.2),
            _material_line("bomline_demo_handle_thread", 1, thread, 0.2),
        ],
    )
    tote = BomRecord(
        id="bom_demo_tote_bag",
        name="Canvas Tote Bag (BOM)",
        code="PROD-TOTE-001",
        item_type="product",
        output_qty=1,
        output_unit="bag",
        notes="Multi-level BOM with a reusable subassembly.",
        created_at=DEMO_BOM_TIMESTAMP,
        updated_at=DEMO_BOM_TIMESTAMP,
        lines=[
            BomLine(
                id="bomline_demo_tote_part",
                sort_order=0,
                component_type="bom_item",
                component_bom_id=handle_set.id,
                component_name=handle_set.name,
                quantity=1,
                unit=handle_set.output_unit,
                created_at=DEMO_BOM_TIMESTAMP,
                updated_at=DEMO_BOM_TIMESTAMP,
            ),
            _material_line("bomline_demo_tote_canvas", 1, canvas, 1.8),
        ],
    )
    return [tote, handle_set]


def seed_demo_data(store, owner: str) -> dict:
    """Write the demo sheet, materials and BOMs for ``owner`` and return counts.

    Records are upserted, so seeding twice leaves one copy of each.
    """
    materials = create_demo_materials()
    boms = create_demo_boms(materials)
    store.upsert(owner, "sheets", create_demo_sheet().to_dict())
    for material in materials:
        store.upsert(owner, "materials", material.to_dict())
    for bom in boms:
        store.upsert(owner, "boms", bom.to_dict())
    return {"sheets": 1, "materials": len(materials), "boms": len(boms)}


__all__ = ["create_demo_boms", "create_demo_materials", "create_demo_sheet", "seed_demo_data"]
