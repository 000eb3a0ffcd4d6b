"""Utility helpers for the models package."""

from __future__ import annotations

import uuid

ID_LENGTH = 36


def generate_id() -> str:
    """Return a new opaque identifier (a random UUID4 in canonical form)."""

    return str(uuid.uuid4())
