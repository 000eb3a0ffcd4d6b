"""Per-category mutual exclusion for draws."""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from dotenv import load_dotenv

from .errors import DrawInProgress

logger = logging.getLogger(__name__)

# DRAW_LOCK_TIMEOUT may come from .env
load_dotenv()


class CategoryLockRegistry:
    """Hands out one lock per category id.

    Two draws on the same category never overlap within a process; draws on
    different categories run concurrently. A category's entry lives only
    while some caller holds or waits on its lock, so the registry does not
    grow with the number of ids it has seen.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, category_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(category_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[category_id] = lock
            self._users[category_id] = self._users.get(category_id, 0) + 1
            return lock

    def _checkin(self, category_id: str) -> None:
        with self._guard:
            remaining = self._users[category_id] - 1
            if remaining:
                self._users[category_id] = remaining
            else:
                del self._users[category_id]
                del self._locks[category_id]

    @contextmanager
    def hold(self, category_id: str) -> Iterator[None]:
        """Hold the lock for ``category_id`` or raise :class:`DrawInProgress`."""
        lock = self._checkout(category_id)
        try:
            if not lock.acquire(timeout=self.timeout):
                logger.warning(
                    f"Timed out after {self.timeout}s waiting for draw lock on category {category_id}"
                )
                raise DrawInProgress(
                    f"Another draw for category {category_id} is still running; retry shortly"
                )
            logger.debug(f"Acquired draw lock for category {category_id}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(category_id)


DEFAULT_LOCK_REGISTRY = CategoryLockRegistry(
    timeout=float(os.getenv("DRAW_LOCK_TIMEOUT", "10"))
)

__all__ = ["CategoryLockRegistry", "DEFAULT_LOCK_REGISTRY"]
