"""Request parsing and response shaping for the JSON interface.

Incoming payloads are loosely typed dictionaries; they are turned into typed
request objects here so that nothing past this module sees raw JSON.
Responses use the field names clients already rely on (camelCase for
computed values, snake_case for stored rows).
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .db.utils import dt_iso
from .draw.engine import DrawRequest, DrawResult
from .draw.errors import (
    CategoryRequired,
    CsvRequired,
    InvalidCount,
    InvalidRequest,
    PrizesRequired,
    UnsupportedExportType,
)
from .models import Category, DrawRecord, Participant

EXPORT_PARTICIPANTS = "participants"
EXPORT_LOTTERY_RECORDS = "lottery_records"
EXPORT_TYPES = (EXPORT_PARTICIPANTS, EXPORT_LOTTERY_RECORDS)
CSV_MIME_TYPE = "text/csv;charset=utf-8"


def _require_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise InvalidRequest("Request body must be a JSON object")
    return payload


def _optional_str(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidRequest(f"'{key}' must be a string")
    return value.strip() or None


def parse_draw_request(payload: Any) -> DrawRequest:
    """Build a :class:`DrawRequest` from ``{categoryId, prizeNames, winnerCount}``.

    ``winnerCount`` defaults to 1. Checks run in the order category, prizes,
    count, so a payload missing several fields reports the first one.
    """
    payload = _require_mapping(payload)

    category_id = _optional_str(payload, "categoryId")
    if category_id is None:
        raise CategoryRequired("A category id is required")

    prize_names = payload.get("prizeNames")
    if not isinstance(prize_names, list) or not prize_names:
        raise PrizesRequired("A non-empty list of prize names is required")
    if not all(isinstance(name, str) and name.strip() for name in prize_names):
        raise PrizesRequired("Every prize name must be a non-empty string")

    winner_count = payload.get("winnerCount", 1)
    if isinstance(winner_count, bool) or not isinstance(winner_count, int):
        raise InvalidCount(f"Winner count must be an integer, got {winner_count!r}")

    request = DrawRequest(
        category_id=category_id,
        prize_names=tuple(prize_names),
        winner_count=winner_count,
    )
    request.validate()
    return request


@dataclass(frozen=True)
class ImportRequest:
    csv_data: str
    category_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ImportRequest":
        payload = _require_mapping(payload)
        csv_data = payload.get("csvData")
        if csv_data is not None and not isinstance(csv_data, str):
            raise InvalidRequest("'csvData' must be a string")
        if not csv_data or not csv_data.strip():
            raise CsvRequired("CSV data is required")
        return cls(csv_data=csv_data, category_id=_optional_str(payload, "categoryId"))


@dataclass(frozen=True)
class ExportRequest:
    type: str = EXPORT_PARTICIPANTS
    category_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ExportRequest":
        payload = _require_mapping(payload)
        export_type = payload.get("type", EXPORT_PARTICIPANTS)
        if export_type not in EXPORT_TYPES:
            raise UnsupportedExportType(f"Unsupported export type: {export_type!r}")
        return cls(type=export_type, category_id=_optional_str(payload, "categoryId"))


# -------- responses --------
def category_to_dict(category: Category, active_participants: Optional[int] = None) -> dict:
    data = {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "is_active": category.is_active,
        "created_at": dt_iso(category.created_at),
        "updated_at": dt_iso(category.updated_at),
    }
    if active_participants is not None:
        data["active_participants"] = active_participants
    return data


def participant_to_dict(participant: Participant) -> dict:
    return {
        "id": participant.id,
        "name": participant.name,
        "category_id": participant.category_id,
        "is_active": participant.is_active,
        "created_at": dt_iso(participant.created_at),
        "updated_at": dt_iso(participant.updated_at),
    }


def record_to_dict(record: DrawRecord) -> dict:
    return {
        "id": record.id,
        "draw_id": record.draw_id,
        "category_id": record.category_id,
        "participant_id": record.participant_id,
        "participant_name": record.participant_name,
        "prize_name": record.prize_name,
        "position": record.position,
        "lottery_date": dt_iso(record.lottery_date),
        "created_at": dt_iso(record.created_at),
    }


def draw_result_to_dict(result: DrawResult) -> dict:
    lottery_date = dt_iso(result.lottery_date)
    return {
        "winners": [
            {
                "id": record.participant_id,
                "name": record.participant_name,
                "prizeName": record.prize_name,
                "lotteryDate": lottery_date,
            }
            for record in result.records
        ],
        "totalParticipants": result.total_participants,
        "categoryId": result.category_id,
        "drawId": result.draw_id,
        "lotteryRecords": [record_to_dict(record) for record in result.records],
    }


def import_result_to_dict(
    participants: Iterable[Participant], total: int, errors: Iterable[str]
) -> dict:
    participants = list(participants)
    return {
        "imported": len(participants),
        "total": total,
        "errors": list(errors),
        "participants": [participant_to_dict(p) for p in participants],
    }


def export_to_dict(filename: str, content: str) -> dict:
    return {
        "filename": filename,
        "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        "mimeType": CSV_MIME_TYPE,
        "encoding": "base64",
    }
