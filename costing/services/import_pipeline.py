"""Turn pasted CSV or TSV text into canonical TSV for the import screens."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .delimited_parser import DELIMITERS, detect_delimiter, normalize_input, parse_delimited
from .header_classifier import looks_like_header
from .import_sanitizer import IMPORT_MODES, ImportMode, rectify_rows, trim_trailing_empty_columns
from .row_uniformity import validate_uniformity

logger = logging.getLogger(__name__)

EMPTY_INPUT_REASON = "Textarea is empty. Paste CSV or TSV content first."
NO_DELIMITER_REASON = (
    "Could not detect CSV or TSV delimiters. Use comma-separated or tab-separated values."
)
NO_ROWS_LEFT_REASON = "No valid rows remained after formatting cleanup."
MISSING_HEADER_REASON = (
    "Header row is missing or invalid. Include a descriptive header row as the first line."
)
INVALID_TSV_REASON = (
    "Could not repair the pasted data into a valid TSV layout. Check row delimiters and quotes."
)
CSV_CONVERTED_MESSAGE = "Validation passed. CSV input was converted to TSV."
TSV_OK_MESSAGE = "Validation passed. TSV format looks valid."


@dataclass
class ImportValidationResult:
    ok: bool
    tsv: str = ""
    converted_from_csv: bool = False
    message: str = ""
    reason: str = ""
    row_number: int | None = None

    @classmethod
    def failure(cls, reason: str, row_number: int | None = None) -> "ImportValidationResult":
        logger.info("Import rejected: %s", reason)
        return cls(ok=False, reason=reason, row_number=row_number)

    def to_dict(self) -> dict:
        if not self.ok:
            payload: dict = {"ok": False, "reason": self.reason}
            if self.row_number is not None:
                payload["rowNumber"] = self.row_number
            return payload
        return {
            "ok": True,
            "tsv": self.tsv,
            "convertedFromCsv": self.converted_from_csv,
            "message": self.message,
        }


def _tsv_cell(cell: str) -> str:
    # A leading quote would reopen quoting when the TSV is pasted back in.
    if cell.startswith('"'):
        return '"' + cell.replace('"', '""') + '"'
    return cell


def rows_to_tsv(rows: List[List[str]]) -> str:
    return "\n".join("\t".join(_tsv_cell(cell) for cell in row) for row in rows)


def is_valid_tsv(tsv: str) -> bool:
    lines = [line for line in tsv.split("\n") if line.strip()]
    if not lines:
        return False
    expected = lines[0].count("\t") + 1
    if expected < 2:
        return False
    return all(line.count("\t") + 1 == expected for line in lines)


def validate_and_normalize(raw_text: str, mode: ImportMode = "lenient") -> ImportValidationResult:
    """
    Validate pasted text and return it as canonical TSV.

    ``mode`` is ``"lenient"`` (short rows are padded) or ``"strict"`` (rows
    must already be uniform and fully filled). Failures never carry output.
    """
    if mode not in IMPORT_MODES:
        raise ValueError(f"Unknown import mode: {mode!r}")

    text = normalize_input(raw_text or "")
    if not text:
        return ImportValidationResult.failure(EMPTY_INPUT_REASON)

    delimiter_type = detect_delimiter(text)
    if delimiter_type is None:
        return ImportValidationResult.failure(NO_DELIMITER_REASON)

    parsed = parse_delimited(text, DELIMITERS[delimiter_type])
    if not parsed.ok:
        return ImportValidationResult.failure(parsed.reason)

    trimmed = trim_trailing_empty_columns(parsed.rows)
    if not trimmed:
        return ImportValidationResult.failure(NO_ROWS_LEFT_REASON)

    rows = rectify_rows(trimmed, mode)
    if not looks_like_header(rows[0]):
        return ImportValidationResult.failure(MISSING_HEADER_REASON)

    uniformity = validate_uniformity(rows, strict=mode == "strict")
    if not uniformity.ok:
        return ImportValidationResult.failure(uniformity.reason, uniformity.row_number)

    tsv = rows_to_tsv(rows)
    if not is_valid_tsv(tsv):
        return ImportValidationResult.failure(INVALID_TSV_REASON)

    converted = delimiter_type == "csv"
    logger.debug("Import normalized %d rows (converted_from_csv=%s)", len(rows), converted)
    return ImportValidationResult(
        ok=True,
        tsv=tsv,
        converted_from_csv=converted,
        message=CSV_CONVERTED_MESSAGE if converted else TSV_OK_MESSAGE,
    )


__all__ = [
    "ImportValidationResult",
    "is_valid_tsv",
    "rows_to_tsv",
    "validate_and_normalize",
]
