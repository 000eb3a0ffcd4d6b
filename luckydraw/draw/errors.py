"""Error taxonomy shared by the draw engine, import and export paths.

Every error carries a stable ``code`` for API clients, a human readable
``message`` and whether retrying the same request can succeed.
"""

from __future__ import annotations

from typing import Optional, Sequence

VALIDATION = "validation"
STATE = "state"
PERSISTENCE = "persistence"
CONFLICT = "conflict"


class LotteryError(Exception):
    """Base class for every failure reported by :mod:`luckydraw`."""

    code: str = "LOTTERY_ERROR"
    kind: str = STATE
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }


# -------- validation: bad input, no side effects --------
class LotteryValidationError(LotteryError, ValueError):
    kind = VALIDATION


class InvalidRequest(LotteryValidationError):
    code = "INVALID_REQUEST"


class CategoryRequired(LotteryValidationError):
    code = "CATEGORY_REQUIRED"


class PrizesRequired(LotteryValidationError):
    code = "PRIZES_REQUIRED"


class InvalidCount(LotteryValidationError):
    code = "INVALID_COUNT"


class UnknownCategory(LotteryValidationError):
    code = "UNKNOWN_CATEGORY"


class CsvRequired(LotteryValidationError):
    code = "CSV_REQUIRED"


class UnsupportedExportType(LotteryValidationError):
    code = "UNSUPPORTED_EXPORT_TYPE"


# -------- state: valid input, data does not allow it --------
class NoCandidates(LotteryError):
    code = "NO_CANDIDATES"


class InsufficientCandidates(LotteryError):
    code = "INSUFFICIENT_CANDIDATES"

    def __init__(self, available: int, requested: int) -> None:
        super().__init__(
            f"Only {available} candidate(s) available but {requested} winner(s) requested"
        )
        self.available = available
        self.requested = requested


class CategoryInUse(LotteryError):
    code = "CATEGORY_IN_USE"


class NoValidRows(LotteryError):
    code = "NO_VALID_ROWS"

    def __init__(self, message: str, errors: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["details"] = self.errors
        return payload


# -------- persistence: storage failed, nothing committed --------
class LotteryPersistenceError(LotteryError):
    kind = PERSISTENCE
    retryable = True


class FetchFailed(LotteryPersistenceError):
    code = "FETCH_FAILED"


class PersistFailed(LotteryPersistenceError):
    code = "PERSIST_FAILED"


# -------- conflict: another draw holds the category --------
class DrawInProgress(LotteryError):
    code = "DRAW_IN_PROGRESS"
    kind = CONFLICT
    retryable = True


__all__ = [
    "CONFLICT",
    "PERSISTENCE",
    "STATE",
    "VALIDATION",
    "CategoryInUse",
    "CategoryRequired",
    "CsvRequired",
    "DrawInProgress",
    "FetchFailed",
    "InsufficientCandidates",
    "InvalidCount",
    "InvalidRequest",
    "LotteryError",
    "LotteryPersistenceError",
    "LotteryValidationError",
    "NoCandidates",
    "NoValidRows",
    "PersistFailed",
    "PrizesRequired",
    "UnknownCategory",
    "UnsupportedExportType",
]
