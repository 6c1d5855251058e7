from __future__ import annotations

from abc import abstractmethod
from typing import Optional

from loguru import logger
import numpy as np

from hybridevo.constants import NON_CONVERGED_FITNESS
from hybridevo.evolution.fitness import FitnessFunction
from hybridevo.individuals.base import Optimizable
from hybridevo.locopt.backend import FitnessBackend
from hybridevo.statistics import ReproductionStatistics, StatisticsSink

__all__ = ["AbstractLocalOptimization", "LocalOptimization"]


class LocalOptimization(FitnessFunction):
    """A fitness function that may refine the individual before scoring it."""

    @property
    @abstractmethod
    def backend(self) -> Optional[FitnessBackend]:
        """The backend the optimization works on (last stage for chains)."""


class AbstractLocalOptimization(LocalOptimization):
    """Backend-bound local optimization.

    ``fitness(ind, force_one_eval=True)`` evaluates the unchanged coordinates
    once. Otherwise :meth:`optimize` runs on the individual; it must not
    modify its argument in place but return the optimized result.
    """

    def __init__(
        self, backend: FitnessBackend, statistics: Optional[StatisticsSink] = None
    ):
        self._backend = backend
        self.statistics = statistics if statistics is not None else ReproductionStatistics()

    @property
    def backend(self) -> FitnessBackend:
        return self._backend

    def fitness(self, individual: Optimizable, force_one_eval: bool = False) -> Optimizable:
        if force_one_eval:
            return self.single_evaluation(individual)

        self.statistics.increment_local_optimizations()
        result = self.optimize(individual)
        if not np.isfinite(result.fitness):
            logger.warning(
                "[{}] Non-finite fitness for {}, marking as non-converged",
                type(self).__name__,
                result.id,
            )
            result.fitness = NON_CONVERGED_FITNESS
        return result

    def single_evaluation(self, individual: Optimizable) -> Optimizable:
        coords = self._backend.get_active_coordinates(individual)
        self.statistics.increment_fitness_evaluations()
        individual.fitness = float(self._backend.fitness(coords, 0))
        return individual

    @abstractmethod
    def optimize(self, individual: Optimizable) -> Optimizable: ...
