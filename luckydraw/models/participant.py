from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .utils import ID_LENGTH, generate_id

if TYPE_CHECKING:
    from .category import Category


class Participant(Base):
    """Someone who can be drawn as a winner."""

    __tablename__ = "participants"

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=generate_id
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    """``None`` means uncategorized."""

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    category: Mapped[Optional["Category"]] = relationship(
        back_populates="participants"
    )

    __table_args__ = (
        Index("ix_participants_category_active", "category_id", "is_active"),
    )

    def __init__(
        self,
        *,
        name: str,
        category_id: Optional[str] = None,
        category: Optional["Category"] = None,
        is_active: bool = True,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.id = id or generate_id()
        self.name = name
        if category is not None:
            self.category = category
        else:
            self.category_id = category_id
        self.is_active = is_active
        if created_at is not None:
            self.created_at = created_at

    @validates("name")
    def _normalize_name(self, _key: str, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise ValueError("Participant name must not be empty")
        return normalized

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Participant(id={self.id}, name='{self.name}', "
            f"category_id={self.category_id}, is_active={self.is_active})>"
        )

    @classmethod
    def active_in_category(
        cls, session: Session, category_id: str
    ) -> Sequence["Participant"]:
        """Return the active participants of ``category_id``, oldest first.

        Always hits the database; callers must not cache the result across
        draws.
        """
        stmt = (
            select(cls)
            .where(cls.category_id == category_id, cls.is_active.is_(True))
            .order_by(cls.created_at, cls.id)
        )
        return session.scalars(stmt).all()

    @classmethod
    def ordered(
        cls, session: Session, category_id: Optional[str] = None
    ) -> Sequence["Participant"]:
        """Return participants in a stable order, optionally for one category."""
        stmt = select(cls)
        if category_id is not None:
            stmt = stmt.where(cls.category_id == category_id)
        return session.scalars(stmt.order_by(cls.created_at, cls.id)).all()
