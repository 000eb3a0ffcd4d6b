from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, String, Text, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .utils import ID_LENGTH, generate_id

if TYPE_CHECKING:
    from .participant import Participant


class Category(Base):
    """A named group of participants that draws are run against.

    Names are unique by convention only; the database does not enforce it.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=generate_id
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
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

    # No delete cascade: removing a category leaves its participants
    # uncategorized.
    participants: Mapped[list["Participant"]] = relationship(
        back_populates="category"
    )

    def __init__(
        self,
        *,
        name: str,
        id: Optional[str] = None,
        description: Optional[str] = None,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.id = id or generate_id()
        self.name = name
        self.description = description
        self.is_active = is_active
        if created_at is not None:
            self.created_at = created_at

    @validates("name")
    def _normalize_name(self, _key: str, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise ValueError("Category name must not be empty")
        return normalized

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Category(id={self.id}, name='{self.name}', is_active={self.is_active})>"

    def active_participant_count(self, session: Session) -> int:
        """Return how many active participants belong to this category."""
        from .participant import Participant

        return session.scalar(
            select(func.count(Participant.id)).where(
                Participant.category_id == self.id,
                Participant.is_active.is_(True),
            )
        ) or 0

    @classmethod
    def get(cls, session: Session, category_id: str) -> Optional["Category"]:
        """Return the category with ``category_id`` if it exists."""
        return session.get(cls, category_id)

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["Category"]:
        """Return the oldest category named ``name``, if any."""
        return session.scalars(
            select(cls).where(cls.name == name).order_by(cls.created_at, cls.id)
        ).first()
