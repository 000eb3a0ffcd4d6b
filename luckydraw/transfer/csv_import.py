"""Parsing of participant CSV uploads.

The first line is a header and is skipped without inspection. Each data line
holds ``name[,category_id]``. Fields may be wrapped in double quotes so that
names can contain commas; inside a quoted field a doubled quote (``""``)
stands for a literal quote character. Records cannot span lines.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

BOM = "\ufeff"


@dataclass(frozen=True)
class ParsedRow:
    """A participant row that passed validation."""

    line: int
    name: str
    category_id: Optional[str]
    is_active: bool = True


@dataclass
class ParseResult:
    """Rows accepted, per-line errors, and the number of data lines seen.

    ``total_data_lines`` counts every line after the header, blank ones
    included, so callers can report "imported X of Y".
    """

    valid_rows: list[ParsedRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    total_data_lines: int = 0


def split_fields(line: str) -> list[str]:
    """Split one CSV line on commas that are outside double quotes."""
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current).strip())
    return fields


def _clean(value: Optional[str]) -> str:
    if value is None:
        return ""
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value.strip()


def parse_participants(text: str, category_id: Optional[str] = None) -> ParseResult:
    """Parse ``text`` into participant rows.

    Malformed rows never abort the parse; they are reported in
    :attr:`ParseResult.errors` as ``"Line N: ..."`` where ``N`` is the
    1-based source line (the header is line 1).

    Parameters
    ----------
    text : str
        Raw CSV content. A leading byte-order mark is ignored.
    category_id : Optional[str], default: None
        When given, every row is assigned to this category regardless of its
        own second column.

    Returns
    -------
    ParseResult
        Accepted rows in source order, error messages, and the data line count.
    """
    result = ParseResult()
    content = (text or "").lstrip(BOM).strip()
    if not content:
        return result

    lines = content.split("\n")
    result.total_data_lines = len(lines) - 1

    for index, raw in enumerate(lines[1:], start=2):
        line = raw.strip()
        if not line:
            continue

        fields = split_fields(line)
        name = _clean(fields[0])
        if not name:
            result.errors.append(f"Line {index}: name must not be empty")
            continue

        row_category = _clean(fields[1]) if len(fields) > 1 else ""
        result.valid_rows.append(
            ParsedRow(
                line=index,
                name=name,
                category_id=category_id or row_category or None,
            )
        )

    if result.errors:
        logger.warning(
            f"CSV parse rejected {len(result.errors)} of {result.total_data_lines} data line(s)"
        )
    return result


__all__ = ["BOM", "ParseResult", "ParsedRow", "parse_participants", "split_fields"]
