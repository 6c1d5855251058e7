from __future__ import annotations

import copy as _copy
from typing import List, Optional, Sequence

import numpy as np
from loguru import logger

from hybridevo.constants import NON_CONVERGED_FITNESS
from hybridevo.exceptions import LocalOptConfigError
from hybridevo.individuals.base import Optimizable
from hybridevo.locopt.backend import FitnessBackend
from hybridevo.locopt.base import AbstractLocalOptimization, LocalOptimization
from hybridevo.locopt.population import PopulationView
from hybridevo.statistics import ReproductionStatistics, StatisticsSink

__all__ = [
    "AbsolutePrescreeningLocalOptimization",
    "ChainedLocalOptimization",
    "NoLocalOptimization",
    "RelativePrescreeningLocalOptimization",
]


class NoLocalOptimization(AbstractLocalOptimization):
    """Scores the individual as is."""

    def describe(self) -> str:
        return f"no local optimization using: {self.backend.describe()}"

    def optimize(self, individual: Optimizable) -> Optimizable:
        return self.single_evaluation(individual)


class ChainedLocalOptimization(LocalOptimization):
    """Runs local optimizations one after another on the refined result.

    Stops early once a stage reports a fitness at or above *cutoff*; that
    result is returned with its fitness clamped to the cutoff. A forced single
    evaluation only consults the last stage.
    """

    def __init__(
        self,
        stages: Sequence[LocalOptimization],
        cutoff: float = NON_CONVERGED_FITNESS,
        statistics: Optional[StatisticsSink] = None,
    ):
        if not stages:
            raise LocalOptConfigError("Chained local optimization needs at least one stage")
        self.stages: List[LocalOptimization] = list(stages)
        self.cutoff = cutoff
        self.statistics = statistics if statistics is not None else ReproductionStatistics()

    @property
    def backend(self) -> Optional[FitnessBackend]:
        return self.stages[-1].backend

    def describe(self) -> str:
        lines = ["CHAINED LOCAL OPTIMIZATION:"]
        lines += [f"\t{stage.describe()}" for stage in self.stages]
        lines.append(f"\tcutoff: {self.cutoff:g}")
        return "\n".join(lines)

    def fitness(self, individual: Optimizable, force_one_eval: bool = False) -> Optimizable:
        if force_one_eval:
            return self.stages[-1].fitness(individual, True)

        current = individual
        for i, stage in enumerate(self.stages):
            current = stage.fitness(current, False)
            if current.fitness >= self.cutoff:
                logger.debug(
                    "[ChainedLocalOptimization] Stage {} reached cutoff {:g} for {}",
                    i,
                    self.cutoff,
                    current.id,
                )
                current.fitness = self.cutoff
                return current
        return current


class AbsolutePrescreeningLocalOptimization(AbstractLocalOptimization):
    """Skips the expensive optimization for candidates that start out too bad.

    One cheap evaluation of the unmodified coordinates is compared with the
    fixed *cutoff*: above it the candidate is returned unoptimized carrying
    that fitness, otherwise *inner* optimizes it.
    """

    def __init__(
        self,
        inner: LocalOptimization,
        backend: FitnessBackend,
        cutoff: float,
        statistics: Optional[StatisticsSink] = None,
    ):
        super().__init__(backend, statistics)
        self.inner = inner
        self.cutoff = cutoff

    def describe(self) -> str:
        return (
            f"absolute prescreening (cutoff {self.cutoff:g}) locopt using:\n\t"
            f"{self.inner.describe()}"
        )

    def fitness(self, individual: Optimizable, force_one_eval: bool = False) -> Optimizable:
        # only the inner optimizer counts as a local optimization
        if force_one_eval:
            return self.single_evaluation(individual)
        result = self.optimize(individual)
        if not np.isfinite(result.fitness):
            logger.warning(
                "[{}] Non-finite fitness for {}, marking as non-converged",
                type(self).__name__,
                result.id,
            )
            result.fitness = NON_CONVERGED_FITNESS
        return result

    def prescreen(self, individual: Optimizable) -> float:
        coords = self.backend.get_active_coordinates(individual.copy())
        self.statistics.increment_fitness_evaluations()
        return float(self.backend.fitness(coords, 0))

    def optimize(self, individual: Optimizable) -> Optimizable:
        e = self.prescreen(individual)
        if self.rejects(e):
            self.statistics.increment_prescreen_rejections()
            individual.fitness = e
            return individual
        logger.debug("[{}] Individual {} survives prescreening", type(self).__name__, individual.id)
        return self.inner.fitness(individual, False)

    def rejects(self, e: float) -> bool:
        if e > self.cutoff:
            logger.debug(
                "[AbsolutePrescreeningLocalOptimization] Rejected: {:g} above {:g}", e, self.cutoff
            )
            return True
        return False


class RelativePrescreeningLocalOptimization(AbsolutePrescreeningLocalOptimization):
    """Prescreening against the spread of the current population.

    The candidate's position ``(e - best) * 100 / (worst - best)`` in percent
    must not exceed *max_percentage*. With a collapsed spread only candidates
    no worse than the best member pass; an empty population passes everyone.
    The population view is shared between copies.
    """

    def __init__(
        self,
        inner: LocalOptimization,
        backend: FitnessBackend,
        population: PopulationView,
        max_percentage: float,
        statistics: Optional[StatisticsSink] = None,
    ):
        super().__init__(inner, backend, cutoff=NON_CONVERGED_FITNESS, statistics=statistics)
        self.population = population
        self.max_percentage = max_percentage

    def describe(self) -> str:
        return (
            f"relative prescreening ({self.max_percentage:g}%) locopt using:\n\t"
            f"{self.inner.describe()}"
        )

    def __deepcopy__(self, memo):
        # every deepcopy path (worker clones, chained stages) keeps the live view
        memo[id(self.population)] = self.population
        clone = type(self).__new__(type(self))
        memo[id(self)] = clone
        for key, value in self.__dict__.items():
            setattr(clone, key, _copy.deepcopy(value, memo))
        return clone

    def position(self, e: float) -> float:
        size = self.population.size()
        if size == 0:
            return 0.0
        best = self.population.fitness_at(0)
        worst = self.population.fitness_at(size - 1)
        spread = worst - best
        if spread <= 0.0:
            return 0.0 if e <= best else float("inf")
        return (e - best) * 100.0 / spread

    def rejects(self, e: float) -> bool:
        perc = self.position(e)
        if perc > self.max_percentage:
            logger.debug(
                "[RelativePrescreeningLocalOptimization] Rejected: {:g}% vs {:g}%",
                perc,
                self.max_percentage,
            )
            return True
        return False
