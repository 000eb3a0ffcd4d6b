"""The draw engine: sampling, prize assignment and atomic persistence."""

from .engine import DrawRequest, DrawResult, LotteryDrawEngine
from .locks import CategoryLockRegistry, DEFAULT_LOCK_REGISTRY
from .prizes import assign
from .sampler import sample

__all__ = [
    "CategoryLockRegistry",
    "DEFAULT_LOCK_REGISTRY",
    "DrawRequest",
    "DrawResult",
    "LotteryDrawEngine",
    "assign",
    "sample",
]
