from __future__ import annotations

from abc import ABC, abstractmethod
import copy as _copy
from typing import Callable, Optional

import numpy as np

from hybridevo.individuals.base import ContinuousProblem, Optimizable
from hybridevo.statistics import ReproductionStatistics, StatisticsSink


class FitnessFunction(ABC):
    """Assigns a fitness to an individual, possibly optimizing it locally."""

    statistics: Optional[StatisticsSink] = None

    @abstractmethod
    def fitness(self, individual: Optimizable, force_one_eval: bool = False) -> Optimizable:
        """Return the evaluated individual (may be a new object).

        With *force_one_eval* a single evaluation of the unchanged individual
        is requested, never a full local optimization.
        """

    @abstractmethod
    def describe(self) -> str: ...

    def copy(self) -> FitnessFunction:
        return _copy.deepcopy(self)


class CallableFitness(FitnessFunction):
    """Wraps a plain ``genome -> float`` function for continuous problems."""

    def __init__(
        self,
        func: Callable[[np.ndarray], float],
        name: Optional[str] = None,
        statistics: Optional[StatisticsSink] = None,
    ):
        self.func = func
        self.name = name or getattr(func, "__name__", "callable")
        self.statistics = statistics if statistics is not None else ReproductionStatistics()

    def describe(self) -> str:
        return f"callable fitness {self.name}"

    def fitness(self, individual: Optimizable, force_one_eval: bool = False) -> Optimizable:
        if not isinstance(individual, ContinuousProblem):
            raise TypeError(
                f"Callable fitness needs a continuous individual, got {type(individual).__name__}"
            )
        self.statistics.increment_fitness_evaluations()
        individual.fitness = float(self.func(individual.get_genome_as_double()))
        return individual
