from __future__ import annotations

import logging

from luckydraw.config import Settings
from luckydraw.db.engine import get_sessionmaker, make_engine
from luckydraw.models import Base
from luckydraw.schemas import ImportRequest
from luckydraw.workflows import (
    add_participant,
    create_category,
    import_participants,
    set_participant_active,
)

logger = logging.getLogger(__name__)

SAMPLE_CSV = """Name,CategoryId
Alice Example,
"Smith, John",
Bob Sample,
Chen Wei,
"O'Neil, Maeve",
"""


def main() -> None:
    """Seed the development database with sample categories and participants."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    engine = make_engine(settings.database_url, timeout=settings.db_timeout)

    # Drop and recreate all tables for a clean dev reset.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    with Session.begin() as session:
        staff = create_category(session, "Staff", "Annual party draw for employees")
        guests = create_category(session, "Guests")

        import_participants(
            session, ImportRequest(csv_data=SAMPLE_CSV, category_id=staff.id)
        )
        for name in ("Dana Guest", "Eli Guest", "Fatima Guest"):
            add_participant(session, name, guests)
        retired = add_participant(session, "Former Guest", guests)
        set_participant_active(session, retired, False)

        logger.info(f"Seeded categories {staff.id} (Staff) and {guests.id} (Guests)")

    engine.dispose()


if __name__ == "__main__":
    main()
