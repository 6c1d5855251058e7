"""Operators composed of other operators.

Three ways of composing children, each available for crossovers and
mutations alike:

* chained - every child in order, each gated by its own probability
* weighted - exactly one child, picked by cumulative probability buckets
* step scheduled - one child per section of the total step budget

Combinators own their children; composition is a tree.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from loguru import logger
import numpy as np

from hybridevo.constants import DEFAULT_PROBABILITY_TOLERANCE, DEFAULT_STEP_TOLERANCE
from hybridevo.exceptions import (
    ProbabilityError,
    ScheduleConfigError,
    ScheduleExhaustedError,
)
from hybridevo.individuals.base import Optimizable
from hybridevo.operators.base import (
    Crossover,
    GeneticOperator,
    Mutation,
    Offspring,
    Priority,
)


def cumulative_buckets(
    probabilities: Sequence[float],
    n_children: int,
    tolerance: float = DEFAULT_PROBABILITY_TOLERANCE,
    family: str = "operators",
) -> np.ndarray:
    """Prefix sums of *probabilities*, validated to end at 1.0."""
    if len(probabilities) != n_children:
        raise ProbabilityError(
            f"Got {len(probabilities)} probabilities for {n_children} {family}"
        )
    if n_children == 0:
        raise ProbabilityError(f"No {family} to choose from")
    probs = np.asarray(probabilities, dtype=np.float64)
    if np.any(probs < 0.0) or np.any(probs > 1.0):
        raise ProbabilityError(f"Probabilities for {family} must lie in [0, 1]: {list(probs)}")
    buckets = np.cumsum(probs)
    if abs(1.0 - buckets[-1]) >= tolerance:
        raise ProbabilityError(
            f"Probabilities for {family} do not add up to 1.0 (100%) within {tolerance}. "
            f"Is: {buckets[-1]}"
        )
    return buckets


def select_bucket(buckets: np.ndarray, draw: float) -> int:
    """Index of the first bucket containing *draw*.

    A draw beyond the last bucket (rounding in the prefix sums) falls back to
    the last index.
    """
    for i, edge in enumerate(buckets):
        if draw <= edge:
            return i
    logger.debug("[select_bucket] Draw {} beyond last bucket {}, using last", draw, buckets[-1])
    return len(buckets) - 1


def step_offsets(
    total_steps: int,
    percentages: Sequence[float],
    n_children: int,
    tolerance: int = DEFAULT_STEP_TOLERANCE,
    family: str = "operators",
) -> np.ndarray:
    """Cumulative end offsets of each scheduled section.

    Section ``i`` covers ``ceil(total_steps * percentages[i])`` steps. The sum
    of all sections must lie within ``tolerance`` steps of ``total_steps``.
    """
    if len(percentages) != n_children:
        raise ScheduleConfigError(
            f"Mismatch in length of percentages ({len(percentages)}) and {family} ({n_children})"
        )
    if n_children == 0:
        raise ScheduleConfigError(f"No {family} to schedule")
    ends = []
    acc = 0
    for perc in percentages:
        if perc < 0.0:
            raise ScheduleConfigError(f"Negative percentage {perc} in scheduled {family}")
        # rounding first keeps e.g. 100 * 0.3 from becoming 31 steps
        acc += math.ceil(round(total_steps * perc, 9))
        ends.append(acc)
    if acc < total_steps - tolerance:
        raise ScheduleConfigError(
            f"Too little percent specified in scheduled {family}: {acc} of {total_steps} steps"
        )
    if acc > total_steps + tolerance:
        raise ScheduleConfigError(
            f"Too many percent specified in scheduled {family}: {acc} of {total_steps} steps"
        )
    return np.asarray(ends, dtype=np.int64)


def _describe_children(title: str, children: Sequence[GeneticOperator], labels: Sequence[str]) -> str:
    lines = [title]
    for label, child in zip(labels, children):
        lines.append(f"\t{label}\t{child.describe()}")
    return "\n".join(lines)


class _ChainMixin:
    children: List[GeneticOperator]
    probabilities: List[float]
    rng: np.random.Generator

    def _init_chain(self, children, probabilities, rng) -> None:
        if len(children) != len(probabilities):
            raise ProbabilityError(
                f"Got {len(probabilities)} probabilities for {len(children)} chained operators"
            )
        for p in probabilities:
            if not 0.0 <= p <= 1.0:
                raise ProbabilityError(f"Chain probability {p} outside [0, 1]")
        self.children = list(children)
        self.probabilities = [float(p) for p in probabilities]
        self.rng = rng

    def _gates(self):
        # one draw per child, always in child order
        for child, prob in zip(self.children, self.probabilities):
            yield child, self.rng.random() < prob

    def describe(self) -> str:
        return _describe_children(
            f"chained {self._family}",
            self.children,
            [f"{p * 100:g}%" for p in self.probabilities],
        )


class ChainedCrossover(_ChainMixin, Crossover):
    """Applies every crossover in order to the running pair of children."""

    _family = "crossover"

    def __init__(
        self,
        crossovers: Sequence[Crossover],
        probabilities: Sequence[float],
        rng: np.random.Generator,
    ):
        self._init_chain(crossovers, probabilities, rng)

    def crossover(
        self, mother: Optimizable, father: Optimizable, future_id: int
    ) -> Offspring:
        children: Offspring = (mother.copy(), father.copy())
        for xover, applied in self._gates():
            if not applied:
                continue
            if children[0] is None or children[1] is None:
                # an earlier stage failed, nothing left to cross
                return None, None
            children = xover.crossover(children[0], children[1], future_id)
        return children


class ChainedMutation(_ChainMixin, Mutation):
    """Applies every mutation in order to a running copy of the individual."""

    _family = "mutation"

    def __init__(
        self,
        mutations: Sequence[Mutation],
        probabilities: Sequence[float],
        rng: np.random.Generator,
    ):
        self._init_chain(mutations, probabilities, rng)

    def mutate(self, individual: Optimizable) -> Optional[Optimizable]:
        mutated: Optional[Optimizable] = individual.copy()
        for mutation, applied in self._gates():
            if applied and mutated is not None:
                mutated = mutation.mutate(mutated)
        return mutated


class _WeightedMixin:
    children: List[GeneticOperator]
    buckets: np.ndarray
    rng: np.random.Generator

    def _init_weighted(self, children, probabilities, rng, tolerance) -> None:
        self.buckets = cumulative_buckets(
            probabilities, len(children), tolerance, family=self._family
        )
        self.children = list(children)
        self.rng = rng

    def _pick(self) -> int:
        return select_bucket(self.buckets, self.rng.random())

    def describe(self) -> str:
        shares = np.diff(self.buckets, prepend=0.0)
        return _describe_children(
            f"weighted {self._family}",
            self.children,
            [f"{s * 100:g}% of" for s in shares],
        )


class WeightedCrossover(_WeightedMixin, Crossover):
    """Picks exactly one crossover per call according to its probability."""

    _family = "crossover"

    def __init__(
        self,
        crossovers: Sequence[Crossover],
        probabilities: Sequence[float],
        rng: np.random.Generator,
        tolerance: float = DEFAULT_PROBABILITY_TOLERANCE,
    ):
        self._init_weighted(crossovers, probabilities, rng, tolerance)
        self.last_selected = 0

    def crossover(
        self, mother: Optimizable, father: Optimizable, future_id: int
    ) -> Offspring:
        self.last_selected = self._pick()
        return self.children[self.last_selected].crossover(mother, father, future_id)

    def priority(self) -> Priority:
        return self.children[self.last_selected].priority()


class WeightedMutation(_WeightedMixin, Mutation):
    """Picks exactly one mutation per call according to its probability."""

    _family = "mutation"

    def __init__(
        self,
        mutations: Sequence[Mutation],
        probabilities: Sequence[float],
        rng: np.random.Generator,
        tolerance: float = DEFAULT_PROBABILITY_TOLERANCE,
    ):
        self._init_weighted(mutations, probabilities, rng, tolerance)

    def mutate(self, individual: Optimizable) -> Optional[Optimizable]:
        return self.children[self._pick()].mutate(individual)


class _ScheduledMixin:
    children: List[GeneticOperator]
    total_steps: int
    offsets: np.ndarray
    tolerance: int

    def _init_scheduled(self, total_steps, children, percentages, tolerance) -> None:
        self.offsets = step_offsets(
            total_steps, percentages, len(children), tolerance, family=self._family
        )
        self.total_steps = total_steps
        self.children = list(children)
        self.tolerance = tolerance
        logger.info(
            "[{}] Sections end at steps {} of {}",
            type(self).__name__,
            self.offsets.tolist(),
            total_steps,
        )

    def index_for(self, step: int) -> int:
        """Child responsible for *step*."""
        for i, end in enumerate(self.offsets):
            if step < end:
                return i
        # rounding of the sections may leave the last one a few steps short
        if step < max(int(self.offsets[-1]), self.total_steps) + self.tolerance:
            return len(self.children) - 1
        raise ScheduleExhaustedError(
            f"Step {step} beyond the {self.total_steps} steps scheduled for this {self._family}. "
            "Apparently doing more steps than initially anticipated?"
        )

    def describe(self) -> str:
        return _describe_children(
            f"step scheduled {self._family}",
            self.children,
            [f"until step {end}" for end in self.offsets],
        )


class StepScheduledCrossover(_ScheduledMixin, Crossover):
    """Switches crossover depending on the step the offspring is created in."""

    _family = "crossover"

    def __init__(
        self,
        total_steps: int,
        crossovers: Sequence[Crossover],
        percentages: Sequence[float],
        tolerance: int = DEFAULT_STEP_TOLERANCE,
    ):
        self._init_scheduled(total_steps, crossovers, percentages, tolerance)
        self.last_selected = 0
        rngs = [c.rng for c in crossovers if c.rng is not None]
        self.rng = rngs[0] if rngs else None

    def crossover(
        self, mother: Optimizable, father: Optimizable, future_id: int
    ) -> Offspring:
        self.last_selected = self.index_for(future_id)
        return self.children[self.last_selected].crossover(mother, father, future_id)

    def priority(self) -> Priority:
        return self.children[self.last_selected].priority()


class StepScheduledMutation(_ScheduledMixin, Mutation):
    """Switches mutation depending on the step the individual belongs to."""

    _family = "mutation"

    def __init__(
        self,
        total_steps: int,
        mutations: Sequence[Mutation],
        percentages: Sequence[float],
        tolerance: int = DEFAULT_STEP_TOLERANCE,
    ):
        self._init_scheduled(total_steps, mutations, percentages, tolerance)
        rngs = [m.rng for m in mutations if m.rng is not None]
        self.rng = rngs[0] if rngs else None

    def mutate(self, individual: Optimizable) -> Optional[Optimizable]:
        return self.children[self.index_for(individual.id)].mutate(individual)
