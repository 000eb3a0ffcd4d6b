from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .category import Category  # noqa: F401
from .participant import Participant  # noqa: F401
from .draw_record import DrawRecord, ImmutableRecordError  # noqa: F401

__all__ = [
    "Base",
    "Category",
    "Participant",
    "DrawRecord",
    "ImmutableRecordError",
]
