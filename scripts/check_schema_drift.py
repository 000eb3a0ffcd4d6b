from __future__ import annotations

import sys

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext
from sqlalchemy.exc import SQLAlchemyError

from luckydraw.config import Settings
from luckydraw.db.engine import make_engine
from luckydraw.models import Base


def _print_ops(ops, indent: int = 0) -> None:
    prefix = "  " * indent
    for op in ops:
        print(f"{prefix}- {op}")
        sub_ops = getattr(op, "ops", None)
        if sub_ops:
            _print_ops(sub_ops, indent + 1)


def main() -> int:
    """Compare the migrated database with the ORM models.

    Exit code 0 means no drift, 1 means differences, 2 means the check failed.
    """
    settings = Settings.from_env()
    engine = make_engine(settings.database_url, timeout=settings.db_timeout)
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            diff = ag_api.compare_metadata(context, Base.metadata)
    except SQLAlchemyError as exc:
        print(f"Schema drift check: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()

    if not diff:
        print(f"Schema drift check: OK for {url_display}.")
        return 0
    print(f"Schema drift check: FAILED for {url_display}. Differences detected:")
    _print_ops(diff)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
