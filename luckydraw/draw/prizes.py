"""Positional assignment of prize labels to winners."""

from __future__ import annotations

from typing import Sequence, TypeVar

from .errors import PrizesRequired

T = TypeVar("T")


def assign(winners: Sequence[T], prize_labels: Sequence[str]) -> list[tuple[T, str]]:
    """Pair each winner with ``prize_labels[i % len(prize_labels)]``.

    Fewer labels than winners repeat; surplus labels go unused. The order of
    ``winners`` is preserved in the output.
    """
    if not prize_labels:
        raise PrizesRequired("At least one prize label is required")
    count = len(prize_labels)
    return [(winner, prize_labels[i % count]) for i, winner in enumerate(winners)]


__all__ = ["assign"]
