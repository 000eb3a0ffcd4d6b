"""Append-only storage of draw outcomes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import DateTime, Index, Integer, String, event, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .utils import ID_LENGTH, generate_id


class ImmutableRecordError(RuntimeError):
    """Raised when code attempts to modify or delete a :class:`DrawRecord`."""


class DrawRecord(Base):
    """Immutable record of one winner produced by a draw.

    ``participant_id`` and ``category_id`` are plain snapshots rather than
    foreign keys so that later participant or category changes never alter
    history.
    """

    __tablename__ = "lottery_records"

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=generate_id
    )
    """Surrogate primary key."""

    draw_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    """Identifier shared by every record produced by the same draw."""

    category_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH), nullable=True
    )
    """Category the draw was run against."""

    participant_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH), nullable=True
    )
    """Winning participant."""

    participant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Winner's name as it was at draw time."""

    prize_name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Prize label taken from the draw request."""

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Zero-based index of the winner within the draw."""

    lottery_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    """Moment of the draw; identical for every record of one draw."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_lottery_records_category_date", "category_id", "lottery_date"),
        Index("ix_lottery_records_draw_id", "draw_id"),
    )

    def __init__(
        self,
        *,
        draw_id: str,
        participant_id: Optional[str],
        participant_name: str,
        prize_name: str,
        lottery_date: datetime,
        category_id: Optional[str] = None,
        position: int = 0,
        id: Optional[str] = None,
    ) -> None:
        self.id = id or generate_id()
        self.draw_id = draw_id
        self.category_id = category_id
        self.participant_id = participant_id
        self.participant_name = participant_name
        self.prize_name = prize_name
        self.position = position
        self.lottery_date = lottery_date
        self.created_at = lottery_date

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<DrawRecord(id={self.id}, draw_id={self.draw_id}, "
            f"participant_id={self.participant_id}, prize_name='{self.prize_name}')>"
        )

    @classmethod
    def history(
        cls, session: Session, category_id: Optional[str] = None
    ) -> Sequence["DrawRecord"]:
        """Return records newest draw first, winners in draw order."""
        stmt = select(cls)
        if category_id is not None:
            stmt = stmt.where(cls.category_id == category_id)
        stmt = stmt.order_by(cls.lottery_date.desc(), cls.draw_id, cls.position)
        return session.scalars(stmt).all()


@event.listens_for(DrawRecord, "before_update")
def _reject_update(mapper, connection, target: DrawRecord) -> None:
    raise ImmutableRecordError(f"Draw record {target.id} is immutable")


@event.listens_for(DrawRecord, "before_delete")
def _reject_delete(mapper, connection, target: DrawRecord) -> None:
    raise ImmutableRecordError(f"Draw record {target.id} cannot be deleted")
