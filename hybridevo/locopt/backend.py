from __future__ import annotations

from abc import ABC, abstractmethod
import copy as _copy
from enum import Enum
from typing import Optional, Sequence, Tuple

from loguru import logger
import numpy as np

from hybridevo.evolution.fitness import FitnessFunction
from hybridevo.exceptions import BackendError
from hybridevo.individuals.base import ContinuousProblem, Optimizable

__all__ = [
    "Backend",
    "BoundsType",
    "ContinuousBackend",
    "FitnessBackend",
    "FitnessFunctionBackendWrapper",
    "HistoryBackend",
    "supports_history",
]


class BoundsType(Enum):
    """How many active coordinates carry box boundaries."""

    NONE = "none"
    SOME = "some"
    ALL = "all"


class FitnessBackend(ABC):
    """Representation-specific adapter between an individual and an optimizer.

    The backend caches the individual passed to :meth:`get_active_coordinates`;
    subsequent :meth:`fitness` calls are evaluated for that individual and
    only look at the coordinate vector. One backend instance serves one
    local optimization at a time, so workers own their own copy.
    """

    @abstractmethod
    def number_of_active_coordinates(self, individual: Optimizable) -> int: ...

    @abstractmethod
    def get_active_coordinates(self, individual: Optimizable) -> np.ndarray:
        """Coordinates to optimize; also binds the backend to *individual*."""

    @abstractmethod
    def update_active_coordinates(self, individual: Optimizable, coords: np.ndarray) -> None:
        """Write *coords* back into *individual*."""

    @abstractmethod
    def fitness(self, coords: np.ndarray, iteration: int) -> float: ...

    def boundaries_in_representation(self, individual: Optimizable) -> BoundsType:
        return BoundsType.NONE

    def best_estimate_boundaries(
        self, coords: np.ndarray
    ) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
        """Lower and upper bounds for *coords*, ``None`` where unknown."""
        return None, None

    def reset_to_stable(self, coords: np.ndarray) -> None:
        """Best-effort repair of *coords* in place after numerical trouble."""

    def describe(self) -> str:
        return type(self).__name__

    def copy(self) -> FitnessBackend:
        return _copy.deepcopy(self)


class Backend(FitnessBackend):
    """Backend that also provides gradients."""

    @abstractmethod
    def gradient(self, coords: np.ndarray, iteration: int) -> Tuple[float, np.ndarray]:
        """Fitness and gradient at *coords*."""


class HistoryBackend:
    """Mixin remembering the best point seen during one local optimization.

    Optimizers that may diverge call :meth:`remember_point` after every
    evaluation and roll back with :meth:`best_point_into` at the end.
    """

    _best_coords: Optional[np.ndarray] = None
    _best_gradient: Optional[np.ndarray] = None
    _best_fitness: float = float("inf")

    def supports_history(self) -> bool:
        return True

    def remember_point(
        self, coords: np.ndarray, gradient: Optional[np.ndarray], fitness: float
    ) -> None:
        if fitness < self._best_fitness:
            self._best_fitness = float(fitness)
            self._best_coords = np.array(coords, dtype=np.float64)
            self._best_gradient = None if gradient is None else np.array(gradient, dtype=np.float64)

    def reset_to_best_point(self) -> None:
        """Forget the history; start of a new local optimization."""
        self._best_coords = None
        self._best_gradient = None
        self._best_fitness = float("inf")

    @property
    def best_fitness(self) -> float:
        return self._best_fitness

    def best_point_into(self, individual: Optimizable) -> bool:
        """Write the remembered best point into *individual*.

        Returns ``False`` (and leaves the individual alone) without history.
        """
        if self._best_coords is None:
            return False
        self.update_active_coordinates(individual, self._best_coords)  # type: ignore[attr-defined]
        individual.fitness = self._best_fitness
        return True


def supports_history(backend: FitnessBackend) -> bool:
    return isinstance(backend, HistoryBackend) and backend.supports_history()


class ContinuousBackend(Backend):
    """Backend over continuous genomes: all genes are active coordinates.

    Keeps the individual bound by ``get_active_coordinates`` and checks that
    evaluations only happen after binding and with matching lengths.
    """

    _cached: Optional[ContinuousProblem] = None

    def _bind(self, individual: Optimizable) -> ContinuousProblem:
        if not isinstance(individual, ContinuousProblem):
            raise BackendError(
                f"{type(self).__name__} needs a continuous individual, got {type(individual).__name__}"
            )
        self._cached = individual
        return individual

    def _check(self, coords: np.ndarray) -> np.ndarray:
        if self._cached is None:
            raise BackendError(
                f"{type(self).__name__}: get_active_coordinates must be called before evaluating"
            )
        coords = np.asarray(coords, dtype=np.float64)
        expected = len(self._cached.get_genome_as_double())
        if coords.shape != (expected,):
            raise BackendError(
                f"{type(self).__name__}: expected {expected} coordinates, got shape {coords.shape}"
            )
        return coords

    def number_of_active_coordinates(self, individual: Optimizable) -> int:
        return len(self._bind(individual).get_genome_as_double())

    def get_active_coordinates(self, individual: Optimizable) -> np.ndarray:
        return self._bind(individual).get_genome_as_double()

    def update_active_coordinates(self, individual: Optimizable, coords: np.ndarray) -> None:
        individual.set_genome(np.asarray(coords, dtype=np.float64).copy())


class FitnessFunctionBackendWrapper(ContinuousBackend):
    """Exposes a :class:`FitnessFunction` on continuous genomes as a backend.

    Each coordinate evaluation writes the coordinates into a scratch copy of
    the bound individual and asks the fitness function for a single
    evaluation. Gradients are central differences with step *h*.
    """

    def __init__(
        self,
        fitness: FitnessFunction,
        h: float = 1e-6,
        lower: Optional[Sequence[float]] = None,
        upper: Optional[Sequence[float]] = None,
    ):
        if h <= 0:
            raise BackendError(f"Finite-difference step must be positive, got {h}")
        self.fitness_function = fitness
        self.h = h
        self.lower = None if lower is None else np.asarray(lower, dtype=np.float64)
        self.upper = None if upper is None else np.asarray(upper, dtype=np.float64)

    def describe(self) -> str:
        return f"finite-difference wrapper around {self.fitness_function.describe()}"

    def boundaries_in_representation(self, individual: Optimizable) -> BoundsType:
        if self.lower is not None and self.upper is not None:
            return BoundsType.ALL
        if self.lower is not None or self.upper is not None:
            return BoundsType.SOME
        return BoundsType.NONE

    def best_estimate_boundaries(self, coords: np.ndarray):
        return self.lower, self.upper

    def reset_to_stable(self, coords: np.ndarray) -> None:
        bad = ~np.isfinite(coords)
        if np.any(bad):
            logger.debug("[FitnessFunctionBackendWrapper] Zeroing {} non-finite coordinates", int(bad.sum()))
            coords[bad] = 0.0
        if self.lower is not None or self.upper is not None:
            np.clip(coords, self.lower, self.upper, out=coords)

    def fitness(self, coords: np.ndarray, iteration: int) -> float:
        coords = self._check(coords)
        scratch = self._cached.copy()
        scratch.set_genome(coords)
        return float(self.fitness_function.fitness(scratch, True).fitness)

    def gradient(self, coords: np.ndarray, iteration: int) -> Tuple[float, np.ndarray]:
        coords = self._check(coords)
        value = self.fitness(coords, iteration)
        grad = np.empty_like(coords)
        shifted = coords.copy()
        for i in range(len(coords)):
            shifted[i] = coords[i] + self.h
            plus = self.fitness(shifted, iteration)
            shifted[i] = coords[i] - self.h
            minus = self.fitness(shifted, iteration)
            shifted[i] = coords[i]
            grad[i] = (plus - minus) / (2.0 * self.h)
        return value, grad
