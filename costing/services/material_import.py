"""Build catalog materials from a validated materials TSV."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from ..domain_models import MaterialRecord
from ..item_codes import format_code, get_next_code_number
from ..money import make_id, now_iso
from .header_contracts import MATERIAL_HEADERS, validate_headers
from .purchase_import import parse_money_cents, read_tsv_frame

logger = logging.getLogger(__name__)

MATERIAL_CODE_PREFIX = "MAT-"


@dataclass
class MaterialImportResult:
    ok: bool
    records: List[MaterialRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    reason: str = ""


def materials_from_tsv(tsv: str, existing: Iterable[MaterialRecord] = ()) -> MaterialImportResult:
    """Rows without a code get the next free ``MAT-0001`` style code."""
    headers = validate_headers(tsv, MATERIAL_HEADERS)
    if not headers.ok:
        return MaterialImportResult(ok=False, reason=headers.reason)

    codes = [material.code for material in existing]
    next_number = get_next_code_number(codes, MATERIAL_CODE_PREFIX)
    records: List[MaterialRecord] = []
    warnings: List[str] = []
    now = now_iso()

    for row_number, row in enumerate(read_tsv_frame(tsv).to_dict(orient="records"), start=2):
        name = row["Name"].strip()
        unit_cost_cents = parse_money_cents(row["Unit Cost"])
        if not name:
            warnings.append(f"Row {row_number}: Name is required.")
            continue
        if unit_cost_cents is None:
            warnings.append(f"Row {row_number}: Unit Cost must be a number.")
            continue

        code = row.get("Code", "").strip().upper()
        if not code:
            code = format_code(MATERIAL_CODE_PREFIX, next_number)
            next_number += 1

        records.append(
            MaterialRecord(
                id=make_id("mat"),
                name=name,
                code=code,
                category=row.get("Category", "").strip(),
                unit=row["Unit"].strip() or "ea",
                unit_cost_cents=max(0, unit_cost_cents),
                supplier=row.get("Supplier", "").strip(),
                created_at=now,
                updated_at=now,
            )
        )

    for warning in warnings:
        logger.warning("Material import: %s", warning)
    return MaterialImportResult(ok=True, records=records, warnings=warnings)


__all__ = ["MATERIAL_CODE_PREFIX", "MaterialImportResult", "materials_from_tsv"]
