"""Runtime settings read from the environment (and an optional ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .db.utils import resolve_sqlite_url

ROOT_DIR = Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_timeout: float
    draw_lock_timeout: float
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=resolve_sqlite_url(
                os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
            ),
            db_timeout=float(os.getenv("DB_TIMEOUT", "15")),
            draw_lock_timeout=float(os.getenv("DRAW_LOCK_TIMEOUT", "10")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
