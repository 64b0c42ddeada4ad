"""Cost resolution for multi-level bills of materials.

BOMs are held in a mapping keyed by id; ``bom_item`` lines refer to other
BOMs by id only. Resolution walks the graph depth first with a set of the
BOM ids currently being visited so a cycle is reported instead of recursing
forever.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping

from .domain_models import BomCostSummary, BomLine, BomRecord, MaterialRecord
from .money import non_negative, round_cents

logger = logging.getLogger(__name__)


class BomCycleError(Exception):
    """Raised while resolving when a BOM transitively contains itself."""

    def __init__(self, path: List[str]):
        self.path = path
        super().__init__("Circular BOM reference: " + " -> ".join(path))


class BomInUseError(Exception):
    """Raised when deleting a BOM that other BOM lines still reference."""

    def __init__(self, bom_id: str, referenced_by: List[str]):
        self.bom_id = bom_id
        self.referenced_by = referenced_by
        super().__init__(
            f"BOM {bom_id} is used by {', '.join(referenced_by)}; remove those lines first."
        )


@dataclass
class BomCostResult:
    bom_id: str
    summary: BomCostSummary | None = None
    cycle: BomCycleError | None = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.cycle is None and self.summary is not None

    def to_dict(self) -> dict:
        if self.cycle is not None:
            return {"ok": False, "bomId": self.bom_id, "reason": str(self.cycle), "cyclePath": self.cycle.path}
        if self.summary is None:
            raise ValueError(f"BOM {self.bom_id} has neither a cost summary nor a cycle.")
        return {
            "ok": True,
            "bomId": self.bom_id,
            "totalCostCents": self.summary.total_cost_cents,
            "unitCostCents": self.summary.unit_cost_cents,
            "warnings": list(self.summary.warnings),
        }


class _Resolver:
    def __init__(self, boms_by_id: Mapping[str, BomRecord], materials_by_id: Mapping[str, MaterialRecord]):
        self.boms_by_id = boms_by_id
        self.materials_by_id = materials_by_id
        self.memo: Dict[str, BomCostSummary] = {}
        self.visiting: List[str] = []

    def resolve(self, bom_id: str) -> BomCostSummary:
        cached = self.memo.get(bom_id)
        if cached is not None:
            return cached
        if bom_id in self.visiting:
            start = self.visiting.index(bom_id)
            raise BomCycleError(self.visiting[start:] + [bom_id])

        bom = self.boms_by_id.get(bom_id)
        if bom is None:
            return BomCostSummary(0, None, [f"BOM {bom_id} was not found."])

        self.visiting.append(bom_id)
        try:
            total = 0
            warnings: List[str] = []
            for line in bom.lines:
                total += self._line_cost(bom, line, warnings)
        finally:
            self.visiting.pop()

        output_qty = non_negative(bom.output_qty)
        summary = BomCostSummary(
            total_cost_cents=max(0, total),
            unit_cost_cents=round_cents(total / output_qty) if output_qty > 0 else None,
            warnings=warnings,
        )
        self.memo[bom_id] = summary
        return summary

    def _line_cost(self, bom: BomRecord, line: BomLine, warnings: List[str]) -> int:
        qty = non_negative(line.quantity)
        if line.component_type == "material":
            unit_cost = non_negative(line.unit_cost_cents)
            if line.material_id:
                material = self.materials_by_id.get(line.material_id)
                if material is None:
                    warnings.append(f"{bom.id}: line {line.id} references missing material {line.material_id}.")
                    return 0
                unit_cost = non_negative(material.unit_cost_cents)
            return round_cents(qty * unit_cost)

        if not line.component_bom_id:
            warnings.append(f"{bom.id}: line {line.id} has no component BOM.")
            return 0

        child = self.resolve(line.component_bom_id)
        for warning in child.warnings:
            if warning not in warnings:
                warnings.append(warning)
        if child.unit_cost_cents is None:
            if line.component_bom_id in self.boms_by_id:
                warnings.append(f"{bom.id}: component BOM {line.component_bom_id} has no output quantity.")
            return 0
        return round_cents(qty * child.unit_cost_cents)


def resolve_unit_cost(
    bom_id: str,
    boms_by_id: Mapping[str, BomRecord],
    materials_by_id: Mapping[str, MaterialRecord],
) -> BomCostResult:
    """Resolve the total and per-output-unit cost of one BOM.

    A cycle anywhere below ``bom_id`` makes the whole result a failure;
    dangling material or BOM ids only add warnings.
    """
    try:
        summary = _Resolver(boms_by_id, materials_by_id).resolve(bom_id)
    except BomCycleError as exc:
        logger.warning("%s", exc)
        return BomCostResult(bom_id=bom_id, cycle=exc)
    for warning in summary.warnings:
        logger.warning("BOM integrity: %s", warning)
    return BomCostResult(bom_id=bom_id, summary=summary, warnings=list(summary.warnings))


def compute_bom_cost_map(
    boms: Iterable[BomRecord], materials: Iterable[MaterialRecord]
) -> Dict[str, BomCostResult]:
    boms = list(boms)
    boms_by_id = {bom.id: bom for bom in boms}
    materials_by_id = {material.id: material for material in materials}
    return {bom.id: resolve_unit_cost(bom.id, boms_by_id, materials_by_id) for bom in boms}


def resolve_line_unit_cost(
    parent_bom_id: str,
    line: BomLine,
    materials_by_id: Mapping[str, MaterialRecord],
    bom_costs: Mapping[str, BomCostResult],
) -> int:
    """The unit cost shown next to a line: live catalog or sub-assembly cost,
    falling back to the line's snapshot."""
    if line.component_type == "material":
        material = materials_by_id.get(line.material_id) if line.material_id else None
        return material.unit_cost_cents if material else line.unit_cost_cents
    if not line.component_bom_id or line.component_bom_id == parent_bom_id:
        return 0
    result = bom_costs.get(line.component_bom_id)
    if result is None or not result.ok or result.summary.unit_cost_cents is None:
        return line.unit_cost_cents
    return result.summary.unit_cost_cents


def find_bom_references(bom_id: str, boms: Iterable[BomRecord]) -> List[str]:
    return [
        bom.id
        for bom in boms
        if bom.id != bom_id
        and any(line.component_type == "bom_item" and line.component_bom_id == bom_id for line in bom.lines)
    ]


def check_bom_deletable(bom_id: str, boms: Iterable[BomRecord]) -> None:
    referenced_by = find_bom_references(bom_id, boms)
    if referenced_by:
        raise BomInUseError(bom_id, referenced_by)


def would_create_cycle(parent_id: str, child_id: str, boms_by_id: Mapping[str, BomRecord]) -> bool:
    """True when adding ``child_id`` as a component of ``parent_id`` closes a loop."""
    stack = [child_id]
    seen = set()
    while stack:
        current = stack.pop()
        if current == parent_id:
            return True
        if current in seen:
            continue
        seen.add(current)
        bom = boms_by_id.get(current)
        if bom is None:
            continue
        stack.extend(
            line.component_bom_id
            for line in bom.lines
            if line.component_type == "bom_item" and line.component_bom_id
        )
    return False


def reindex_lines(lines: Iterable[BomLine]) -> List[BomLine]:
    return [line if line.sort_order == index else replace(line, sort_order=index) for index, line in enumerate(lines)]


__all__ = [
    "BomCostResult",
    "BomCycleError",
    "BomInUseError",
    "check_bom_deletable",
    "compute_bom_cost_map",
    "find_bom_references",
    "reindex_lines",
    "resolve_line_unit_cost",
    "resolve_unit_cost",
    "would_create_cycle",
]
