"""Delimited-text import and export of participants and draw records."""

from .csv_export import (
    BOM,
    PARTICIPANT_HEADER,
    RECORD_HEADER,
    format_draw_records,
    format_participants,
    import_template,
)
from .csv_import import ParsedRow, ParseResult, parse_participants, split_fields

__all__ = [
    "BOM",
    "PARTICIPANT_HEADER",
    "RECORD_HEADER",
    "ParseResult",
    "ParsedRow",
    "format_draw_records",
    "format_participants",
    "import_template",
    "parse_participants",
    "split_fields",
]
