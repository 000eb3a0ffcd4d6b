"""Draw coordinator: fetch candidates, sample, assign prizes, persist."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .errors import (
    CategoryRequired,
    FetchFailed,
    InsufficientCandidates,
    InvalidCount,
    NoCandidates,
    PersistFailed,
    PrizesRequired,
)
from .locks import CategoryLockRegistry, DEFAULT_LOCK_REGISTRY
from .prizes import assign
from .sampler import sample
from ..models import Category, DrawRecord, Participant
from ..models.utils import generate_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawRequest:
    """Validated input for one draw.

    Attributes
    ----------
    category_id : str
        Category whose active participants form the candidate pool.
    prize_names : tuple[str, ...]
        Prize labels, assigned to winners by position (cycling).
    winner_count : int
        Number of distinct winners to draw.
    """

    category_id: str
    prize_names: tuple[str, ...]
    winner_count: int = 1

    def validate(self) -> None:
        """Check the request fields in a fixed order and raise on the first failure."""
        if not self.category_id:
            raise CategoryRequired("A category id is required")
        if not self.prize_names or not all(
            isinstance(name, str) and name.strip() for name in self.prize_names
        ):
            raise PrizesRequired("At least one non-empty prize name is required")
        if (
            isinstance(self.winner_count, bool)
            or not isinstance(self.winner_count, int)
            or self.winner_count <= 0
        ):
            raise InvalidCount(
                f"Winner count must be a positive integer, got {self.winner_count!r}"
            )


@dataclass
class DrawResult:
    """Outcome of a committed draw.

    Attributes
    ----------
    draw_id : str
        Identifier shared by all records of this draw.
    category_id : str
        Category the draw was run against.
    lottery_date : datetime
        Single timestamp stamped on every record.
    total_participants : int
        Size of the candidate pool observed at draw time.
    records : list[DrawRecord]
        Persisted records, one per winner, in draw order.
    """

    draw_id: str
    category_id: str
    lottery_date: datetime
    total_participants: int
    records: list[DrawRecord] = field(default_factory=list)


class LotteryDrawEngine:
    """Runs draws as all-or-nothing units against a SQLAlchemy database."""

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        locks: Optional[CategoryLockRegistry] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Create a draw engine.

        Parameters
        ----------
        session_factory : sessionmaker
            Factory used to open one fresh transaction per draw.
        locks : Optional[CategoryLockRegistry], default: None
            Per-category lock registry. Defaults to the process-wide
            registry shared by every engine.
        rng : Optional[random.Random], default: None
            Random source handed to the sampler.
        clock : Optional[Callable[[], datetime]], default: None
            Returns the draw timestamp; defaults to the current UTC time.
        """

        self._session_factory = session_factory
        self._locks = locks if locks is not None else DEFAULT_LOCK_REGISTRY
        self._rng = rng
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def draw(self, request: DrawRequest) -> DrawResult:
        """Draw ``request.winner_count`` winners and persist one record each.

        Parameters
        ----------
        request : DrawRequest
            Category, prize labels and winner count.

        Returns
        -------
        DrawResult
            The committed records together with the candidate pool size.

        Notes
        -----
        The steps are:

        1. Validate the request (category, prizes, count, in that order).
        2. Take the per-category lock.
        3. In a new transaction, lock the category row and load the active
           participants of the category.
        4. Check the pool is non-empty and large enough.
        5. Sample winners, assign prizes, and insert all records.
        6. Commit. Any failure rolls back the whole transaction.

        Raises
        ------
        LotteryValidationError
            If the request is malformed.
        NoCandidates, InsufficientCandidates
            If the pool cannot satisfy the request.
        DrawInProgress
            If another draw holds the category lock past the timeout.
        FetchFailed, PersistFailed
            If the database fails; nothing has been committed.
        """
        request.validate()
        category_id = request.category_id

        with self._locks.hold(category_id):
            phase = "fetch"
            try:
                with self._session_factory.begin() as session:
                    candidates = self._load_candidates(session, category_id)
                    logger.debug(
                        f"Category {category_id}: {len(candidates)} active candidate(s)"
                    )
                    self._check_pool(category_id, len(candidates), request.winner_count)

                    winners = sample(candidates, request.winner_count, rng=self._rng)
                    pairs = assign(winners, request.prize_names)

                    draw_id = generate_id()
                    lottery_date = self._clock()
                    records = [
                        DrawRecord(
                            draw_id=draw_id,
                            category_id=category_id,
                            participant_id=winner.id,
                            participant_name=winner.name,
                            prize_name=prize_name,
                            position=position,
                            lottery_date=lottery_date,
                        )
                        for position, (winner, prize_name) in enumerate(pairs)
                    ]

                    phase = "persist"
                    self._persist(session, records)
                    # Detach before commit so the returned records stay
                    # readable once the session is closed.
                    for record in records:
                        session.expunge(record)
            except SQLAlchemyError as exc:
                if phase == "fetch":
                    logger.error(f"Loading candidates for category {category_id} failed: {exc}")
                    raise FetchFailed(
                        f"Could not load candidates for category {category_id}: {exc}"
                    ) from exc
                logger.error(f"Persisting draw for category {category_id} failed: {exc}")
                raise PersistFailed(
                    "Saving the draw failed and nothing was recorded; "
                    f"it is safe to retry: {exc}"
                ) from exc

        logger.info(
            f"Draw {draw_id} for category {category_id}: "
            f"{len(records)} winner(s) from {len(candidates)} candidate(s)"
        )
        return DrawResult(
            draw_id=draw_id,
            category_id=category_id,
            lottery_date=lottery_date,
            total_participants=len(candidates),
            records=records,
        )

    def _load_candidates(
        self, session: Session, category_id: str
    ) -> Sequence[Participant]:
        """Lock the category row (where supported) and read its active pool."""
        session.execute(
            select(Category.id).where(Category.id == category_id).with_for_update()
        )
        return Participant.active_in_category(session, category_id)

    @staticmethod
    def _check_pool(category_id: str, available: int, requested: int) -> None:
        if available == 0:
            logger.warning(f"Draw refused: category {category_id} has no active participants")
            raise NoCandidates(f"Category {category_id} has no active participants")
        if available < requested:
            logger.warning(
                f"Draw refused: category {category_id} has {available} candidate(s), "
                f"{requested} requested"
            )
            raise InsufficientCandidates(available, requested)

    def _persist(self, session: Session, records: list[DrawRecord]) -> None:
        """Insert ``records`` as one batch inside the draw transaction."""
        session.add_all(records)
        session.flush()


__all__ = [
    "DrawRequest",
    "DrawResult",
    "LotteryDrawEngine",
]
