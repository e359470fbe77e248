"""
Injectable randomness.

Every random draw in the engine goes through a numpy Generator handed in by the
caller. Scoring and planning never create their own source, so everything but
easy-mode noise and dice resolution is reproducible.
"""

import uuid
from typing import Callable, Optional

import numpy as np

IdFactory = Callable[[], str]


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create a Generator; pass a seed for reproducible runs."""
    return np.random.default_rng(seed)


def default_id_factory() -> str:
    return uuid.uuid4().hex


def sequential_id_factory(prefix: str = "id") -> IdFactory:
    """Deterministic id source: prefix-1, prefix-2, ..."""
    counter = {"n": 0}

    def _next() -> str:
        counter["n"] += 1
        return f"{prefix}-{counter['n']}"

    return _next
