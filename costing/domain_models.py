"""Domain models for cost sheets, catalog records and bills of materials.

Money is always held as integer cents. Field names are snake_case in Python;
``to_dict`` produces the camelCase shape used by persisted records.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

OverheadKind = Literal["flat", "percent"]
BomItemType = Literal["part", "product"]
BomComponentType = Literal["material", "bom_item"]
PurchaseMarketplace = Literal["shopee", "lazada", "local", "other"]

PURCHASE_MARKETPLACES: tuple[str, ...] = ("shopee", "lazada", "local", "other")


@dataclass
class MaterialItem:
    id: str
    name: str = ""
    qty: float = 0.0
    unit: str = ""
    unit_cost_cents: int = 0
    material_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "materialId": self.material_id,
            "name": self.name,
            "qty": self.qty,
            "unit": self.unit,
            "unitCostCents": self.unit_cost_cents,
        }


@dataclass
class LaborItem:
    id: str
    role: str = ""
    hours: float = 0.0
    rate_cents: int = 0

    def to_dict(self) -> dict:
        return {"id": self.id, "role": self.role, "hours": self.hours, "rateCents": self.rate_cents}


@dataclass
class FlatOverhead:
    id: str
    name: str = ""
    amount_cents: int = 0
    kind: Literal["flat"] = field(default="flat", init=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "kind": self.kind, "amountCents": self.amount_cents}


@dataclass
class PercentOverhead:
    id: str
    name: str = ""
    percent: float = 0.0
    kind: Literal["percent"] = field(default="percent", init=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "kind": self.kind, "percent": self.percent}


OverheadItem = Union[FlatOverhead, PercentOverhead]


@dataclass
class CostSheet:
    id: str
    name: str = "Untitled"
    sku: str = ""
    currency: str = "USD"
    unit_name: str = "unit"
    batch_size: float = 1
    waste_pct: float = 0
    markup_pct: float = 0
    tax_pct: float = 0
    materials: list[MaterialItem] = field(default_factory=list)
    labor: list[LaborItem] = field(default_factory=list)
    overhead: list[OverheadItem] = field(default_factory=list)
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "currency": self.currency,
            "unitName": self.unit_name,
            "batchSize": self.batch_size,
            "wastePct": self.waste_pct,
            "markupPct": self.markup_pct,
            "taxPct": self.tax_pct,
            "materials": [item.to_dict() for item in self.materials],
            "labor": [item.to_dict() for item in self.labor],
            "overhead": [item.to_dict() for item in self.overhead],
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class SheetTotals:
    materials_subtotal_cents: int
    materials_with_waste_cents: int
    labor_subtotal_cents: int
    overhead_flat_cents: int
    overhead_percent_cents: int
    overhead_total_cents: int
    batch_total_cents: int
    cost_per_unit_cents: int | None
    price_per_unit_cents: int | None
    profit_per_unit_cents: int | None
    margin_pct: float | None
    price_per_unit_with_tax_cents: int | None

    def to_dict(self) -> dict:
        return {
            "materialsSubtotalCents": self.materials_subtotal_cents,
            "materialsWithWasteCents": self.materials_with_waste_cents,
            "laborSubtotalCents": self.labor_subtotal_cents,
            "overheadFlatCents": self.overhead_flat_cents,
            "overheadPercentCents": self.overhead_percent_cents,
            "overheadTotalCents": self.overhead_total_cents,
            "batchTotalCents": self.batch_total_cents,
            "costPerUnitCents": self.cost_per_unit_cents,
            "pricePerUnitCents": self.price_per_unit_cents,
            "profitPerUnitCents": self.profit_per_unit_cents,
            "marginPct": self.margin_pct,
            "pricePerUnitWithTaxCents": self.price_per_unit_with_tax_cents,
        }


@dataclass
class StoredData:
    sheets: list[CostSheet]
    selected_id: str
    version: int = 1


@dataclass
class MaterialRecord:
    id: str
    name: str = ""
    code: str = ""
    category: str = ""
    unit: str = "ea"
    unit_cost_cents: int = 0
    supplier: str = ""
    last_purchase_cost_cents: int = 0
    last_purchase_date: str = ""
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "category": self.category,
            "unit": self.unit,
            "unitCostCents": self.unit_cost_cents,
            "supplier": self.supplier,
            "lastPurchaseCostCents": self.last_purchase_cost_cents,
            "lastPurchaseDate": self.last_purchase_date,
            "isActive": self.is_active,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class PurchaseRecord:
    id: str
    purchase_date: str = ""
    material_id: str | None = None
    material_name: str = ""
    description: str = ""
    variation: str = ""
    quantity: float = 1
    usable_quantity: float = 1
    unit: str = "ea"
    unit_cost_cents: int = 0
    cost_cents: int = 0
    total_cost_cents: int = 0
    currency: str = "USD"
    marketplace: str = "local"
    store: str = ""
    supplier: str = ""
    reference_no: str = ""
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchaseDate": self.purchase_date,
            "materialId": self.material_id,
            "materialName": self.material_name,
            "description": self.description,
            "variation": self.variation,
            "quantity": self.quantity,
            "usableQuantity": self.usable_quantity,
            "unit": self.unit,
            "unitCostCents": self.unit_cost_cents,
            "costCents": self.cost_cents,
            "totalCostCents": self.total_cost_cents,
            "currency": self.currency,
            "marketplace": self.marketplace,
            "store": self.store,
            "supplier": self.supplier,
            "referenceNo": self.reference_no,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class BomLine:
    id: str
    sort_order: int = 0
    component_type: BomComponentType = "material"
    material_id: str | None = None
    component_bom_id: str | None = None
    component_name: str = ""
    quantity: float = 1
    unit: str = "ea"
    unit_cost_cents: int = 0
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sortOrder": self.sort_order,
            "componentType": self.component_type,
            "materialId": self.material_id,
            "componentBomId": self.component_bom_id,
            "componentName": self.component_name,
            "quantity": self.quantity,
            "unit": self.unit,
            "unitCostCents": self.unit_cost_cents,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class BomRecord:
    id: str
    name: str = "Untitled BOM"
    code: str = ""
    item_type: BomItemType = "part"
    output_qty: float = 1
    output_unit: str = "ea"
    is_active: bool = True
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""
    lines: list[BomLine] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "itemType": self.item_type,
            "outputQty": self.output_qty,
            "outputUnit": self.output_unit,
            "isActive": self.is_active,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "lines": [line.to_dict() for line in self.lines],
        }


@dataclass
class BomCostSummary:
    total_cost_cents: int
    unit_cost_cents: int | None
    # Non-fatal integrity problems such as dangling material or BOM ids.
    warnings: list[str] = field(default_factory=list)

    @property
    def unresolved(self) -> bool:
        return bool(self.warnings) or self.unit_cost_cents is None


@dataclass
class UomConversion:
    id: str
    from_unit: str
    to_unit: str
    factor: float

    def to_dict(self) -> dict:
        return {"id": self.id, "fromUnit": self.from_unit, "toUnit": self.to_unit, "factor": self.factor}


@dataclass
class AppSettings:
    country_code: str = "US"
    timezone: str = "America/New_York"
    date_format: str = "MM/dd/yyyy"
    base_currency: str = "USD"
    currency_display: str = "symbol"
    currency_rounding_increment: int = 1
    currency_rounding_mode: str = "nearest"
    unit_system: str = "metric"
    default_material_unit: str = "ea"
    uom_conversions: list[UomConversion] = field(default_factory=list)
    costing_method: str = "standard"
    default_waste_pct: float = 0
    default_markup_pct: float = 40
    default_tax_pct: float = 0
    price_includes_tax: bool = False
    quantity_precision: int = 3
    price_precision: int = 2
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "countryCode": self.country_code,
            "timezone": self.timezone,
            "dateFormat": self.date_format,
            "baseCurrency": self.base_currency,
            "currencyDisplay": self.currency_display,
            "currencyRoundingIncrement": self.currency_rounding_increment,
            "currencyRoundingMode": self.currency_rounding_mode,
            "unitSystem": self.unit_system,
            "defaultMaterialUnit": self.default_material_unit,
            "uomConversions": [conv.to_dict() for conv in self.uom_conversions],
            "costingMethod": self.costing_method,
            "defaultWastePct": self.default_waste_pct,
            "defaultMarkupPct": self.default_markup_pct,
            "defaultTaxPct": self.default_tax_pct,
            "priceIncludesTax": self.price_includes_tax,
            "quantityPrecision": self.quantity_precision,
            "pricePrecision": self.price_precision,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
