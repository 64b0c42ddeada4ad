from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Literal

DelimiterType = Literal["csv", "tsv"]

DELIMITERS = {"csv": ",", "tsv": "\t"}

UNCLOSED_QUOTE_REASON = "Unclosed quoted value found in the pasted data."
NO_ROWS_REASON = "No rows were detected after cleaning the input."

_LINE_ENDINGS = re.compile(r"\r\n?")


@dataclass
class ParseResult:
    ok: bool
    rows: List[List[str]] = field(default_factory=list)
    reason: str = ""


def normalize_input(raw: str) -> str:
    """Drop a leading byte-order mark, unify line endings and trim.

    Only spaces and newlines are trimmed. A leading or trailing tab is an
    empty cell and must survive, e.g. the blank index header of a pandas
    ``to_csv`` export.
    """
    if raw.startswith("\ufeff"):
        raw = raw[1:]
    return _LINE_ENDINGS.sub("\n", raw).strip(" \n")


def detect_delimiter(text: str) -> DelimiterType | None:
    if "\t" in text:
        return "tsv"
    if "," in text:
        return "csv"
    return None


def parse_delimited(text: str, delimiter: str) -> ParseResult:
    """
    Split ``text`` into rows of cells using CSV quoting rules.

    A quote only opens a quoted field when nothing has been read into the
    field yet; otherwise it is kept as a literal character. Inside quotes a
    doubled quote is an escaped quote. Rows whose cells are all blank are
    dropped.
    """
    rows: List[List[str]] = []
    row: List[str] = []
    cell: List[str] = []
    in_quotes = False

    i = 0
    length = len(text)
    while i < length:
        char = text[i]

        if in_quotes:
            if char == '"':
                if i + 1 < length and text[i + 1] == '"':
                    cell.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                cell.append(char)
        elif char == '"':
            if cell:
                cell.append(char)
            else:
                in_quotes = True
        elif char == delimiter:
            row.append("".join(cell))
            cell = []
        elif char == "\n":
            row.append("".join(cell))
            rows.append(row)
            row = []
            cell = []
        else:
            cell.append(char)
        i += 1

    if in_quotes:
        return ParseResult(ok=False, reason=UNCLOSED_QUOTE_REASON)

    row.append("".join(cell))
    rows.append(row)

    compact = [[value.strip() for value in r] for r in rows]
    compact = [r for r in compact if any(value for value in r)]
    if not compact:
        return ParseResult(ok=False, reason=NO_ROWS_REASON)

    return ParseResult(ok=True, rows=compact)


__all__ = [
    "DELIMITERS",
    "ParseResult",
    "detect_delimiter",
    "normalize_input",
    "parse_delimited",
]
