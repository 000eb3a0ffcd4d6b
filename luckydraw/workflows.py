import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterator, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .draw.engine import DrawRequest, DrawResult, LotteryDrawEngine
from .draw.errors import (
    CategoryInUse,
    FetchFailed,
    NoValidRows,
    PersistFailed,
    UnknownCategory,
)
from .draw.locks import CategoryLockRegistry
from .models import Category, DrawRecord, Participant
from .schemas import EXPORT_PARTICIPANTS, ExportRequest, ImportRequest
from .transfer import format_draw_records, format_participants, parse_participants

logger = logging.getLogger(__name__)


@contextmanager
def _reading(what: str) -> Iterator[None]:
    """Report a failed read of ``what`` as :class:`FetchFailed`."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"Loading {what} failed: {exc}")
        raise FetchFailed(f"Could not load {what}: {exc}") from exc


def run_lottery_draw(
    session_factory: sessionmaker,
    request: DrawRequest,
    *,
    locks: Optional[CategoryLockRegistry] = None,
) -> DrawResult:
    """Run one draw in its own transaction and return the committed result.

    This function essentially wraps :class:`LotteryDrawEngine`. Unlike the
    other workflows it takes a session factory rather than a session: the
    draw must commit or roll back on its own, independently of whatever the
    caller is doing.

    Parameters
    ----------
    session_factory : sessionmaker
        Factory used to open the draw transaction.
    request : DrawRequest
        Category, prize names and winner count.
    locks : Optional[CategoryLockRegistry], default: None
        Lock registry override; the process-wide registry is used otherwise.

    Returns
    -------
    DrawResult
        Persisted winners and the candidate pool size.
    """

    engine = LotteryDrawEngine(session_factory, locks=locks)
    return engine.draw(request)


# -------- import / export --------
@dataclass
class ImportOutcome:
    participants: list[Participant] = field(default_factory=list)
    total: int = 0
    errors: list[str] = field(default_factory=list)


def import_participants(session: Session, request: ImportRequest) -> ImportOutcome:
    """Parse ``request.csv_data`` and insert every valid row as an active participant.

    Rows with an empty name or an unknown category are skipped and reported
    in :attr:`ImportOutcome.errors`; the other rows are still imported.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session. The caller commits.
    request : ImportRequest
        CSV text and an optional category override for every row.

    Returns
    -------
    ImportOutcome
        Inserted participants, the number of data lines, and per-row errors.

    Raises
    ------
    UnknownCategory
        If ``request.category_id`` does not exist.
    NoValidRows
        If no row could be imported.
    FetchFailed
        If looking up the referenced categories fails.
    PersistFailed
        If the insert fails. The caller must roll back its transaction.
    """

    if request.category_id is not None:
        with _reading(f"category {request.category_id}"):
            category = Category.get(session, request.category_id)
        if category is None:
            raise UnknownCategory(f"Category {request.category_id} does not exist")

    parsed = parse_participants(request.csv_data, request.category_id)
    errors = list(parsed.errors)
    if parsed.total_data_lines == 0:
        raise NoValidRows("CSV must contain a header line and at least one data line", errors)

    referenced = {row.category_id for row in parsed.valid_rows if row.category_id}
    known: set[str] = set()
    if referenced:
        with _reading("categories referenced by the import"):
            known = set(
                session.scalars(
                    select(Category.id).where(Category.id.in_(referenced))
                ).all()
            )

    participants: list[Participant] = []
    for row in parsed.valid_rows:
        if row.category_id is not None and row.category_id not in known:
            errors.append(f"Line {row.line}: unknown category '{row.category_id}'")
            continue
        participants.append(
            Participant(name=row.name, category_id=row.category_id, is_active=row.is_active)
        )

    if not participants:
        logger.warning(f"Import rejected: none of {parsed.total_data_lines} data line(s) valid")
        raise NoValidRows("No valid participant rows to import", errors)

    session.add_all(participants)
    try:
        session.flush()
    except SQLAlchemyError as exc:
        logger.error(f"Inserting {len(participants)} imported participant(s) failed: {exc}")
        raise PersistFailed(f"Could not save imported participants: {exc}") from exc

    logger.info(
        f"Imported {len(participants)} of {parsed.total_data_lines} participant line(s)"
    )
    return ImportOutcome(
        participants=participants, total=parsed.total_data_lines, errors=errors
    )


def export_csv(
    session: Session, request: ExportRequest, *, today: Optional[date] = None
) -> tuple[str, str]:
    """Return ``(filename, csv_text)`` for the requested export.

    The CSV text depends only on stored data, so two exports with no change
    in between are identical. Only the file name carries the (UTC) date.
    """
    today = today or datetime.now(timezone.utc).date()
    with _reading(f"{request.type} for export"):
        if request.type == EXPORT_PARTICIPANTS:
            rows = Participant.ordered(session, request.category_id)
        else:
            rows = DrawRecord.history(session, request.category_id)
    if request.type == EXPORT_PARTICIPANTS:
        content = format_participants(rows)
    else:
        content = format_draw_records(rows)
    return f"{request.type}_{today.isoformat()}.csv", content


# -------- categories --------
def create_category(
    session: Session,
    name: str,
    description: Optional[str] = None,
    *,
    category_id: Optional[str] = None,
) -> Category:
    """Persist a new active category."""
    category = Category(id=category_id, name=name, description=description)
    session.add(category)
    session.flush()
    return category


def update_category(
    session: Session,
    category: Category,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Category:
    if name is not None:
        category.name = name
    if description is not None:
        category.description = description or None
    session.flush()
    return category


def set_category_active(session: Session, category: Category, active: bool) -> Category:
    category.is_active = active
    session.flush()
    return category


def delete_category(session: Session, category: Category) -> None:
    """Delete ``category`` unless it still has active participants.

    Inactive participants of the category become uncategorized.

    Raises
    ------
    CategoryInUse
        If at least one active participant belongs to the category.
    """
    active = category.active_participant_count(session)
    if active:
        raise CategoryInUse(
            f"Category {category.id} still has {active} active participant(s)"
        )
    session.delete(category)
    session.flush()


def active_participant_counts(session: Session) -> dict[str, int]:
    """Map category id to its number of active participants (zero counts omitted)."""
    with _reading("active participant counts"):
        rows = session.execute(
            select(Participant.category_id, func.count(Participant.id))
            .where(Participant.is_active.is_(True), Participant.category_id.is_not(None))
            .group_by(Participant.category_id)
        ).all()
    return {category_id: count for category_id, count in rows}


def list_categories(session: Session, *, active_only: bool = False) -> Sequence[Category]:
    stmt = select(Category)
    if active_only:
        stmt = stmt.where(Category.is_active.is_(True))
    with _reading("categories"):
        return session.scalars(stmt.order_by(Category.created_at, Category.id)).all()


# -------- participants --------
def add_participant(
    session: Session,
    name: str,
    category: Optional[Category] = None,
    *,
    is_active: bool = True,
) -> Participant:
    participant = Participant(name=name, category=category, is_active=is_active)
    session.add(participant)
    session.flush()
    return participant


def rename_participant(session: Session, participant: Participant, name: str) -> Participant:
    """Rename ``participant``; names already captured in draw records stay as they were."""
    participant.name = name
    session.flush()
    return participant


def set_participant_active(
    session: Session, participant: Participant, active: bool
) -> Participant:
    participant.is_active = active
    session.flush()
    return participant


def list_participants(
    session: Session, category_id: Optional[str] = None
) -> Sequence[Participant]:
    with _reading("participants"):
        return Participant.ordered(session, category_id)


def list_draw_history(
    session: Session, category_id: Optional[str] = None
) -> Sequence[DrawRecord]:
    """Return draw records newest first, optionally for one category."""
    with _reading("draw history"):
        return DrawRecord.history(session, category_id)
