"""CSV rendering of participants and draw records.

Output is UTF-8 text with a leading byte-order mark, a header row, and every
field wrapped in double quotes (embedded quotes doubled).
"""

from __future__ import annotations

import csv
import io
from typing import Iterable, Sequence

from ..db.utils import dt_iso
from ..models import DrawRecord, Participant
from .csv_import import BOM

PARTICIPANT_HEADER = ("Name", "CategoryId", "Active", "CreatedAt")
RECORD_HEADER = ("WinnerName", "PrizeName", "DrawDate", "CategoryId", "ParticipantId")


def _render(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return BOM + buffer.getvalue()


def import_template() -> str:
    """Return a header-only participant CSV for users to fill in."""
    return _render(PARTICIPANT_HEADER[:2], [])


def format_participants(participants: Iterable[Participant]) -> str:
    """Render participants in the given order.

    The first two columns are the ones the importer reads, so the output can
    be uploaded again as-is.
    """
    return _render(
        PARTICIPANT_HEADER,
        (
            (
                participant.name,
                participant.category_id or "",
                "yes" if participant.is_active else "no",
                dt_iso(participant.created_at) or "",
            )
            for participant in participants
        ),
    )


def format_draw_records(records: Iterable[DrawRecord]) -> str:
    """Render draw records, most recent draw first.

    Records of the same draw keep their winner order.
    """
    ordered = sorted(records, key=lambda record: (record.draw_id, record.position))
    ordered.sort(key=lambda record: dt_iso(record.lottery_date) or "", reverse=True)
    return _render(
        RECORD_HEADER,
        (
            (
                record.participant_name,
                record.prize_name,
                dt_iso(record.lottery_date) or "",
                record.category_id or "",
                record.participant_id or "",
            )
            for record in ordered
        ),
    )


__all__ = [
    "BOM",
    "PARTICIPANT_HEADER",
    "RECORD_HEADER",
    "format_draw_records",
    "format_participants",
    "import_template",
]
