"""Utility helpers shared across the hybridevo codebase."""
from __future__ import annotations

from hybridevo.utils.rng import clone_with_rng, make_rng, spawn_rngs

__all__ = ["clone_with_rng", "make_rng", "spawn_rngs"]
