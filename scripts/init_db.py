from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from luckydraw.config import Settings
from luckydraw.db.engine import make_engine

logger = logging.getLogger(__name__)


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def report_tables(settings: Settings) -> list[str]:
    """Return (and log) the table names present in the configured database."""
    engine = make_engine(settings.database_url, timeout=settings.db_timeout)
    tables = sorted(inspect(engine).get_table_names())
    logger.info(f"Current tables: {', '.join(tables)}")
    engine.dispose()
    return tables


def main() -> None:
    """Apply migrations (default to head) and report the resulting schema."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    upgrade_db()
    report_tables(settings)


if __name__ == "__main__":
    main()
