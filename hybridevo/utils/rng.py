"""Explicit random number handles.

Every stochastic component receives a ``numpy.random.Generator``; nothing in
hybridevo touches a module-level random state. Workers get independent
streams through :func:`spawn_rngs` and re-seat a copied operator tree on
their own stream with :func:`clone_with_rng`.
"""

from __future__ import annotations

import copy
from typing import TypeVar

import numpy as np

T = TypeVar("T")


def make_rng(seed: int | None = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def spawn_rngs(rng: np.random.Generator, n: int) -> list[np.random.Generator]:
    """Derive *n* statistically independent child generators from *rng*."""
    if n < 0:
        raise ValueError("Number of generators must be non-negative")
    return list(rng.spawn(n))


def clone_with_rng(
    obj: T, old_rng: np.random.Generator | None, new_rng: np.random.Generator | None
) -> T:
    """Deep-copy *obj*, replacing every reference to *old_rng* by *new_rng*.

    Without a replacement the copy carries a duplicate of the generator state,
    i.e. it replays the same stream as the original.
    """
    memo: dict[int, object] = {}
    if old_rng is not None and new_rng is not None:
        memo[id(old_rng)] = new_rng
    return copy.deepcopy(obj, memo)
