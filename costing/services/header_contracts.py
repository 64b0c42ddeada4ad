from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeaderContract:
    """Required and optional column names accepted by one import screen."""

    name: str
    required: Tuple[str, ...]
    optional: Tuple[str, ...] = ()

    @property
    def allowed(self) -> Tuple[str, ...]:
        return self.required + self.optional


@dataclass
class HeaderValidationResult:
    ok: bool
    message: str = ""
    reason: str = ""


PURCHASE_HEADERS = HeaderContract(
    name="purchases",
    required=("Description", "Quantity", "Cost", "Usable Quantity", "Purchase Date"),
    optional=("Material", "Variation", "Marketplace", "Store"),
)

MATERIAL_HEADERS = HeaderContract(
    name="materials",
    required=("Name", "Unit", "Unit Cost"),
    optional=("Code", "Category", "Supplier"),
)


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def parse_header_row(tsv: str) -> List[str]:
    first_line = next((line for line in re.split(r"\r?\n", tsv) if line.strip()), "")
    return [cell.strip() for cell in first_line.split("\t")]


def _fail(reason: str) -> HeaderValidationResult:
    logger.info("Header validation failed: %s", reason)
    return HeaderValidationResult(ok=False, reason=reason)


def validate_headers(tsv: str, contract: HeaderContract) -> HeaderValidationResult:
    header = parse_header_row(tsv)
    if not header or header == [""]:
        return _fail("Validation failed: header row is empty.")

    empty_positions = [str(index) for index, cell in enumerate(header, start=1) if not cell]
    if empty_positions:
        return _fail(
            "Validation failed: header has empty column names at position(s): "
            f"{', '.join(empty_positions)}."
        )

    duplicates = _unique([cell for index, cell in enumerate(header) if header.index(cell) != index])
    if duplicates:
        return _fail(f"Validation failed: duplicate header(s): {', '.join(duplicates)}.")

    unknown = _unique([cell for cell in header if cell not in contract.allowed])
    if unknown:
        return _fail(
            f"Validation failed: unsupported header(s): {', '.join(unknown)}. "
            f"Allowed headers: {', '.join(contract.allowed)}."
        )

    missing = [name for name in contract.required if name not in header]
    if missing:
        return _fail(f"Validation failed: missing required header(s): {', '.join(missing)}.")

    return HeaderValidationResult(
        ok=True,
        message=f"{contract.name.capitalize()}-specific header validation passed.",
    )


def validate_purchase_headers(tsv: str) -> HeaderValidationResult:
    return validate_headers(tsv, PURCHASE_HEADERS)


__all__ = [
    "HeaderContract",
    "HeaderValidationResult",
    "MATERIAL_HEADERS",
    "PURCHASE_HEADERS",
    "parse_header_row",
    "validate_headers",
    "validate_purchase_headers",
]
