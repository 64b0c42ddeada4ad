"""Build purchase records from a validated purchases TSV."""
from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Iterable, List

import pandas as pd

from ..costing_engine import compute_purchase_total_cents, compute_unit_cost_cents_from_cost
from ..domain_models import MaterialRecord, PurchaseRecord
from ..money import make_id, now_iso, round_cents
from .header_contracts import validate_purchase_headers
from .import_rules import MARKETPLACE_OPTIONS, resolve_imported_select_value

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^\d.\-]")
# pandas still accepts "today" and "now" with an explicit format
_DATE_SHAPE = re.compile(r"^\d{1,4}[-/]\d{1,2}[-/]\d{1,4}$")

ISO_DATE_PATTERN = "%Y-%m-%d"
DATE_PATTERNS = {
    "MM/dd/yyyy": "%m/%d/%Y",
    "dd/MM/yyyy": "%d/%m/%Y",
    "yyyy-MM-dd": ISO_DATE_PATTERN,
}


@dataclass
class PurchaseImportResult:
    ok: bool
    records: List[PurchaseRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    reason: str = ""


def parse_amount(raw: str) -> float | None:
    """Parse ``"$1,234.50"`` style text; returns ``None`` when not a number."""
    cleaned = _NON_NUMERIC.sub("", raw.replace(",", "")) if raw else ""
    if not cleaned:
        return None
    try:
        return float(Decimal(cleaned))
    except InvalidOperation:
        return None


def parse_money_cents(raw: str) -> int | None:
    amount = parse_amount(raw)
    if amount is None:
        return None
    return round_cents(amount * 100)


def parse_purchase_date(raw: str, date_format: str = "yyyy-MM-dd") -> str | None:
    """Parse a date in the user's format or ISO; anything else is ``None``."""
    value = raw.strip()
    if not _DATE_SHAPE.match(value):
        return None
    patterns = [DATE_PATTERNS.get(date_format, ISO_DATE_PATTERN), ISO_DATE_PATTERN]
    for pattern in dict.fromkeys(patterns):
        parsed = pd.to_datetime(value, format=pattern, errors="coerce")
        if not pd.isna(parsed):
            return parsed.strftime("%Y-%m-%d")
    return None


def _material_lookup(materials: Iterable[MaterialRecord]) -> dict[str, MaterialRecord]:
    lookup: dict[str, MaterialRecord] = {}
    for material in materials:
        for key in (material.code, material.name):
            token = key.strip().lower()
            if token and token not in lookup:
                lookup[token] = material
    return lookup


def read_tsv_frame(tsv: str) -> pd.DataFrame:
    frame = pd.read_csv(
        io.StringIO(tsv),
        sep="\t",
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    return frame.fillna("")


def purchases_from_tsv(
    tsv: str,
    materials: Iterable[MaterialRecord] = (),
    currency: str = "USD",
    date_format: str = "yyyy-MM-dd",
) -> PurchaseImportResult:
    """
    Convert canonical purchases TSV into ``PurchaseRecord`` objects.

    ``Cost`` is the amount paid for the whole line. Rows with unreadable
    numbers or dates are skipped and reported in ``warnings``; a material name
    that matches no catalog entry keeps the name and is also reported.
    """
    headers = validate_purchase_headers(tsv)
    if not headers.ok:
        return PurchaseImportResult(ok=False, reason=headers.reason)

    frame = read_tsv_frame(tsv)
    lookup = _material_lookup(materials)
    records: List[PurchaseRecord] = []
    warnings: List[str] = []
    now = now_iso()

    for row_number, row in enumerate(frame.to_dict(orient="records"), start=2):
        quantity = parse_amount(row["Quantity"])
        usable = parse_amount(row["Usable Quantity"])
        cost_cents = parse_money_cents(row["Cost"])
        purchase_date = parse_purchase_date(row["Purchase Date"], date_format)

        if quantity is None or usable is None:
            warnings.append(f"Row {row_number}: Quantity and Usable Quantity must be numbers.")
            continue
        if cost_cents is None:
            warnings.append(f"Row {row_number}: Cost must be a number.")
            continue
        if purchase_date is None:
            warnings.append(f"Row {row_number}: Purchase Date is not a valid date.")
            continue

        quantity = max(0.0, quantity)
        cost_cents = max(0, cost_cents)
        unit_cost_cents = compute_unit_cost_cents_from_cost(quantity, cost_cents)

        material_name = row.get("Material", "").strip()
        material = lookup.get(material_name.lower()) if material_name else None
        if material_name and material is None:
            warnings.append(f"Row {row_number}: material '{material_name}' was not found in the catalog.")

        marketplace_raw = row.get("Marketplace", "")
        marketplace = resolve_imported_select_value(marketplace_raw, MARKETPLACE_OPTIONS)
        if marketplace is None:
            if marketplace_raw.strip():
                warnings.append(f"Row {row_number}: unknown marketplace '{marketplace_raw.strip()}', using 'other'.")
                marketplace = "other"
            else:
                marketplace = "local"

        store = row.get("Store", "").strip()
        records.append(
            PurchaseRecord(
                id=make_id("purchase"),
                purchase_date=purchase_date,
                material_id=material.id if material else None,
                material_name=material.name if material else material_name,
                description=row["Description"].strip(),
                variation=row.get("Variation", "").strip(),
                quantity=quantity,
                usable_quantity=max(0.0, usable),
                unit=material.unit if material else "ea",
                unit_cost_cents=unit_cost_cents,
                cost_cents=cost_cents,
                total_cost_cents=compute_purchase_total_cents(quantity, unit_cost_cents),
                currency=currency.upper(),
                marketplace=marketplace,
                store=store,
                supplier=store or (material.supplier if material else ""),
                created_at=now,
                updated_at=now,
            )
        )

    for warning in warnings:
        logger.warning("Purchase import: %s", warning)
    return PurchaseImportResult(ok=True, records=records, warnings=warnings)


__all__ = [
    "PurchaseImportResult",
    "parse_amount",
    "parse_money_cents",
    "parse_purchase_date",
    "purchases_from_tsv",
    "read_tsv_frame",
]
