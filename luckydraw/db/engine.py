from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

import os
from pathlib import Path
from dotenv import load_dotenv
from .utils import resolve_sqlite_url

# Get DB url
load_dotenv()
# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
)
DEFAULT_DB_TIMEOUT = float(os.getenv("DB_TIMEOUT", "15"))


from typing import Optional


def _connect_args(url: str, timeout: float) -> dict:
    """Driver arguments that bound every statement by ``timeout`` seconds."""
    if url.startswith("sqlite"):
        return {"timeout": timeout}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={int(timeout * 1000)}"}
    return {}


def make_engine(
    database_url: Optional[str] = None,
    echo: bool = False,
    timeout: Optional[float] = None,
):
    url = database_url or DEFAULT_SQLITE_URL
    engine = create_engine(
        url,
        echo=echo,
        future=True,
        connect_args=_connect_args(url, timeout or DEFAULT_DB_TIMEOUT),
    )
    if url.startswith("sqlite"):
        # ensure FK constraints are enforced on SQLite so that deleting a
        # category leaves its participants uncategorized instead of dangling
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def get_sessionmaker(engine):
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep objects accessible after commit for serialization
        future=True,
    )
