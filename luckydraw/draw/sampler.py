"""Uniform selection of distinct winners from a candidate pool."""

from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

from .errors import InsufficientCandidates, InvalidCount

T = TypeVar("T")

_system_random = random.SystemRandom()


def sample(
    candidates: Sequence[T],
    k: int,
    *,
    rng: Optional[random.Random] = None,
) -> list[T]:
    """Select ``k`` distinct candidates uniformly at random.

    Runs a Fisher-Yates pass over a copy of ``candidates``: walking from the
    last index down to 1, each position is swapped with a uniformly chosen
    index in ``[0, i]``. The first ``k`` elements of the shuffled copy are the
    winners, so every ``k``-subset and every ordering of it is equally likely.

    Parameters
    ----------
    candidates : Sequence[T]
        Pool to draw from. It is copied; the caller's sequence is untouched.
    k : int
        Number of winners to select.
    rng : Optional[random.Random], default: None
        Random source. Defaults to :class:`random.SystemRandom`; pass a seeded
        :class:`random.Random` for reproducible runs.

    Returns
    -------
    list[T]
        ``k`` distinct elements of ``candidates`` in draw order.

    Raises
    ------
    InvalidCount
        If ``k`` is not a positive integer.
    InsufficientCandidates
        If ``candidates`` has fewer than ``k`` elements.
    """
    if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
        raise InvalidCount(f"Winner count must be a positive integer, got {k!r}")
    if len(candidates) < k:
        raise InsufficientCandidates(len(candidates), k)

    source = rng or _system_random
    pool = list(candidates)
    for i in range(len(pool) - 1, 0, -1):
        j = source.randint(0, i)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:k]


__all__ = ["sample"]
