"""Analytic benchmark backends for demos and tests."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from hybridevo.locopt.backend import BoundsType, ContinuousBackend, HistoryBackend
from hybridevo.individuals.base import Optimizable


class _BoxedBackend(HistoryBackend, ContinuousBackend):
    def __init__(
        self,
        lower: Optional[Sequence[float]] = None,
        upper: Optional[Sequence[float]] = None,
    ):
        self.lower = None if lower is None else np.asarray(lower, dtype=np.float64)
        self.upper = None if upper is None else np.asarray(upper, dtype=np.float64)

    def boundaries_in_representation(self, individual: Optimizable) -> BoundsType:
        if self.lower is not None and self.upper is not None:
            return BoundsType.ALL
        if self.lower is not None or self.upper is not None:
            return BoundsType.SOME
        return BoundsType.NONE

    def best_estimate_boundaries(self, coords: np.ndarray):
        return self.lower, self.upper

    def reset_to_stable(self, coords: np.ndarray) -> None:
        coords[~np.isfinite(coords)] = 0.0
        if self.lower is not None or self.upper is not None:
            np.clip(coords, self.lower, self.upper, out=coords)

    def fitness(self, coords: np.ndarray, iteration: int) -> float:
        return self.gradient(coords, iteration)[0]


class QuadraticBackend(_BoxedBackend):
    """``sum(scale * (x - center)**2)``, minimum 0 at *center*."""

    def __init__(
        self,
        center: Sequence[float],
        scale: float = 1.0,
        lower: Optional[Sequence[float]] = None,
        upper: Optional[Sequence[float]] = None,
    ):
        super().__init__(lower, upper)
        self.center = np.asarray(center, dtype=np.float64)
        self.scale = scale

    def describe(self) -> str:
        return f"quadratic bowl in {len(self.center)} dimensions"

    def gradient(self, coords: np.ndarray, iteration: int) -> Tuple[float, np.ndarray]:
        diff = self._check(coords) - self.center
        return float(self.scale * np.dot(diff, diff)), 2.0 * self.scale * diff


class RastriginBackend(_BoxedBackend):
    """Rastrigin function ``A*n + sum(x**2 - A*cos(2*pi*x))``, minimum 0 at the origin."""

    def __init__(
        self,
        a: float = 10.0,
        lower: Optional[Sequence[float]] = None,
        upper: Optional[Sequence[float]] = None,
    ):
        super().__init__(lower, upper)
        self.a = a

    def describe(self) -> str:
        return f"Rastrigin (A={self.a:g})"

    def gradient(self, coords: np.ndarray, iteration: int) -> Tuple[float, np.ndarray]:
        x = self._check(coords)
        two_pi_x = 2.0 * np.pi * x
        value = self.a * len(x) + float(np.sum(x * x - self.a * np.cos(two_pi_x)))
        grad = 2.0 * x + 2.0 * np.pi * self.a * np.sin(two_pi_x)
        return value, grad
