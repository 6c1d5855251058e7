from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from loguru import logger
import numpy as np

from hybridevo.evolution.config import ReproductionConfig
from hybridevo.evolution.fitness import FitnessFunction
from hybridevo.evolution.sanity import SanityCheck
from hybridevo.evolution.writer import IndividualWriter, NullIndividualWriter
from hybridevo.individuals.base import Optimizable
from hybridevo.operators.base import Crossover, Mutation, Offspring, Priority
from hybridevo.statistics import ReproductionStatistics, StatisticsSink
from hybridevo.utils.rng import clone_with_rng

__all__ = ["Darwin", "GlobalOptimization"]


class GlobalOptimization(ABC):
    """One reproduction step: two parents in, at most one evaluated child out."""

    rng: Optional[np.random.Generator] = None

    @abstractmethod
    def global_optimization(
        self, future_id: int, mother: Optimizable, father: Optimizable
    ) -> Optional[Optimizable]:
        """Produce the offspring for step *future_id*.

        ``None`` means no offspring this cycle, which is not an error.
        """

    @abstractmethod
    def describe(self) -> str: ...

    def copy(self, rng: Optional[np.random.Generator] = None) -> GlobalOptimization:
        """Independent deep copy for another worker, optionally on its own *rng*."""
        return clone_with_rng(self, self.rng, rng)


class Darwin(GlobalOptimization):
    """Classical genetic reproduction step with bounded retries.

    Per trial: crossover (gated), mutation (gated), sanity check, fitness
    evaluation of each surviving child, then the children fill up to two
    offspring slots. The better of the collected offspring is returned.

    Random draws happen in a fixed order per trial: crossover gate, crossover
    internals, mutation gate, mutation internals, and finally the slot coin
    when the crossover expresses no preference.
    """

    def __init__(
        self,
        crossover: Crossover,
        mutation: Mutation,
        sanity_check: SanityCheck,
        fitness: FitnessFunction,
        rng: np.random.Generator,
        config: Optional[ReproductionConfig] = None,
        writer: Optional[IndividualWriter] = None,
        statistics: Optional[StatisticsSink] = None,
    ):
        self.crossover = crossover
        self.mutation = mutation
        self.sanity_check = sanity_check
        self.fitness = fitness
        self.rng = rng
        self.config = config or ReproductionConfig()
        self.writer = writer or NullIndividualWriter()
        self.statistics = statistics if statistics is not None else ReproductionStatistics()

        logger.debug(
            "[Darwin] Init | crossover={}, mutation={}, fitness={}, max_trials={}",
            type(self.crossover).__name__,
            type(self.mutation).__name__,
            type(self.fitness).__name__,
            self.config.max_trials,
        )

    def describe(self) -> str:
        return "\n".join(
            [
                "DARWIN",
                f"crossover ({self.config.crossover_probability * 100:g}%): {self.crossover.describe()}",
                f"mutation ({self.config.mutation_probability * 100:g}%): {self.mutation.describe()}",
                f"fitness: {self.fitness.describe()}",
            ]
        )

    def global_optimization(
        self, future_id: int, mother: Optimizable, father: Optimizable
    ) -> Optional[Optimizable]:
        offspring: List[Optimizable] = []

        for trial in range(self.config.max_trials):
            self.statistics.increment_trials()

            crossed = self.rng.random() < self.config.crossover_probability
            if crossed:
                child1, child2 = self.cross(mother, father, future_id)
                if child1 is None:
                    self.statistics.increment_crossover_failures()
                    logger.debug("[Darwin] Crossover failed for {} in trial {}", future_id, trial)
                    continue
                self.post_crossover(child1, child2, future_id)
            else:
                child1, child2 = mother.copy(), father.copy()

            for child in (child1, child2):
                if child is not None:
                    child.id = future_id

            # uncrossed children are always mutated
            mutate = self.rng.random() < self.config.mutation_probability
            if not crossed or mutate:
                child1 = self.mutate(child1) if child1 is not None else None
                child2 = self.mutate(child2) if child2 is not None else None

            child1 = self._evaluate(child1, 1, future_id, mother, father)
            child2 = self._evaluate(child2, 2, future_id, mother, father)

            for child in self._ordered(child1, child2):
                if child is not None and len(offspring) < 2:
                    offspring.append(child)

            if len(offspring) >= 2:
                break

            self.run_after_each_trial()

        if not offspring:
            logger.debug(
                "[Darwin] No offspring for {} after {} trials", future_id, self.config.max_trials
            )
            return None
        if len(offspring) == 1:
            return offspring[0]
        return offspring[0] if offspring[0].fitness <= offspring[1].fitness else offspring[1]

    def cross(self, mother: Optimizable, father: Optimizable, future_id: int) -> Offspring:
        return self.crossover.crossover(mother, father, future_id)

    def mutate(self, individual: Optimizable) -> Optional[Optimizable]:
        mutated = self.mutation.mutate(individual)
        if mutated is not None:
            self.post_mutation(mutated)
        return mutated

    # Hooks for specialised drivers
    def post_crossover(
        self, child1: Optimizable, child2: Optional[Optimizable], future_id: int
    ) -> None:
        pass

    def post_mutation(self, individual: Optimizable) -> None:
        pass

    def run_after_each_trial(self) -> None:
        pass

    def _evaluate(
        self,
        child: Optional[Optimizable],
        which: int,
        future_id: int,
        mother: Optimizable,
        father: Optimizable,
    ) -> Optional[Optimizable]:
        if child is None:
            return None

        if not self.sanity_check.is_sane(child):
            self.statistics.increment_sanity_discards()
            logger.debug("[Darwin] Child {} for {} is insane, discarding", which, future_id)
            return None

        if self.config.write_before_fitness:
            logger.info("[Darwin] Child {} of {} before fitness coming", which, future_id)
            self.writer.write_individual(child)

        evaluated = self.fitness.fitness(child, False)
        evaluated.id = future_id
        evaluated.father_id = father.id
        evaluated.mother_id = mother.id
        return evaluated

    def _ordered(self, child1: Optional[Optimizable], child2: Optional[Optimizable]) -> tuple:
        # consulted even when the crossover gate was skipped
        priority = self.crossover.priority()
        if priority == Priority.NO_PREFERENCE:
            first_one = self.rng.random() < 0.5
        else:
            first_one = priority == Priority.PREFER_FIRST
        return (child1, child2) if first_one else (child2, child1)
