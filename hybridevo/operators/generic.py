"""Problem-independent leaf operators working on plain genomes."""

from __future__ import annotations

from typing import Optional, Sequence

from loguru import logger
import numpy as np

from hybridevo.exceptions import ConfigurationError
from hybridevo.individuals.base import ContinuousProblem, Optimizable
from hybridevo.operators.base import Crossover, Mutation, Offspring

_GAUSS_MAX_TRIES = 1000


class NoCrossover(Crossover):
    """Hands back untouched copies of both parents."""

    def describe(self) -> str:
        return "no crossover"

    def crossover(
        self, mother: Optimizable, father: Optimizable, future_id: int
    ) -> Offspring:
        return mother.copy(), father.copy()


class NoMutation(Mutation):
    def describe(self) -> str:
        return "no mutation"

    def mutate(self, individual: Optimizable) -> Optional[Optimizable]:
        return individual.copy()


class MutationAsCrossover(Crossover):
    """Uses a mutation on each parent in place of a real crossover."""

    def __init__(self, mutation: Mutation):
        self.mutation = mutation
        self.rng = mutation.rng

    def describe(self) -> str:
        return f"mutation as crossover: {self.mutation.describe()}"

    def crossover(
        self, mother: Optimizable, father: Optimizable, future_id: int
    ) -> Offspring:
        return self.mutation.mutate(mother.copy()), self.mutation.mutate(father.copy())


class NPointCrossover(Crossover):
    """n-point crossover: genome segments alternate between the parents.

    The first segment always comes from the child's own parent; every cut
    point flips the source for all following genes.
    """

    def __init__(self, rng: np.random.Generator, number_of_cuts: int = 1):
        if number_of_cuts < 0:
            raise ConfigurationError(
                f"Number of cuts must be non-negative, got {number_of_cuts}"
            )
        self.rng = rng
        self.number_of_cuts = number_of_cuts

    def describe(self) -> str:
        return f"n-point crossover, cuts: {self.number_of_cuts}"

    def crossover(
        self, mother: Optimizable, father: Optimizable, future_id: int
    ) -> Offspring:
        child1 = mother.copy()
        child2 = father.copy()
        genome1 = np.asarray(child1.get_genome_copy())
        genome2 = np.asarray(child2.get_genome_copy())

        if len(genome1) != len(genome2):
            logger.debug(
                "[NPointCrossover] Genome lengths differ ({} vs {})",
                len(genome1),
                len(genome2),
            )
            return None, None

        length = len(genome1)
        if self.number_of_cuts >= length:
            logger.warning(
                "[NPointCrossover] {} cuts requested for a genome of length {}",
                self.number_of_cuts,
                length,
            )
            return None, None

        cuts = self.rng.choice(length, size=self.number_of_cuts, replace=False)
        swapped = _swap_mask(length, cuts)

        tmp = genome1[swapped]
        genome1[swapped] = genome2[swapped]
        genome2[swapped] = tmp
        child1.set_genome(genome1)
        child2.set_genome(genome2)
        return child1, child2


class GaussianCutCrossover(Crossover):
    """Single-cut crossover with the cut drawn around the genome centre.

    ``gauss_width`` is the standard deviation relative to half the genome
    length; all genes from the cut point on are exchanged.
    """

    def __init__(self, rng: np.random.Generator, gauss_width: float = 0.3):
        if gauss_width <= 0.0:
            raise ConfigurationError(f"Gauss width must be positive, got {gauss_width}")
        self.rng = rng
        self.gauss_width = gauss_width

    def describe(self) -> str:
        return f"gaussian cut crossover, width: {self.gauss_width}"

    def crossover(
        self, mother: Optimizable, father: Optimizable, future_id: int
    ) -> Offspring:
        child1 = mother.copy()
        child2 = father.copy()
        genome1 = np.asarray(child1.get_genome_copy())
        genome2 = np.asarray(child2.get_genome_copy())

        if len(genome1) != len(genome2) or len(genome1) == 0:
            return None, None

        cut = int(gauss_in_bounds(self.rng, 0.0, float(len(genome1)), self.gauss_width))

        tail = genome1[cut:].copy()
        genome1[cut:] = genome2[cut:]
        genome2[cut:] = tail
        child1.set_genome(genome1)
        child2.set_genome(genome2)
        return child1, child2


class BoundedMutation(Mutation):
    """Resamples genes uniformly within per-gene bounds.

    ``single`` mode redraws exactly one gene, ``multi`` mode a random subset.
    """

    MODES = ("single", "multi")

    def __init__(
        self,
        rng: np.random.Generator,
        lower: Sequence[float],
        upper: Sequence[float],
        mode: str = "single",
    ):
        if mode not in self.MODES:
            raise ConfigurationError(f"Unknown bounded mutation mode '{mode}'")
        lower_arr = np.asarray(lower, dtype=np.float64)
        upper_arr = np.asarray(upper, dtype=np.float64)
        if lower_arr.shape != upper_arr.shape:
            raise ConfigurationError("Lower and upper bounds differ in length")
        if np.any(upper_arr < lower_arr):
            raise ConfigurationError("Upper bounds must not be below lower bounds")
        self.rng = rng
        self.mode = mode
        self.lower = lower_arr
        self.upper = upper_arr

    def describe(self) -> str:
        return f"bounded mutation, mode: {self.mode}"

    def mutate(self, individual: Optimizable) -> Optional[Optimizable]:
        if not isinstance(individual, ContinuousProblem):
            raise TypeError(
                f"Bounded mutation needs a continuous individual, got {type(individual).__name__}"
            )
        mutant = individual.copy()
        params = mutant.get_genome_as_double()
        dims = len(params)
        if dims != len(self.lower):
            raise ValueError(
                f"Genome has {dims} genes but bounds cover {len(self.lower)}"
            )

        if self.mode == "single":
            spots = np.array([self.rng.integers(dims)])
        else:
            count = int(self.rng.integers(dims))
            spots = np.sort(self.rng.choice(dims, size=count, replace=False))

        for loc in spots:
            d = self.rng.random()
            params[loc] = d * (self.upper[loc] - self.lower[loc]) + self.lower[loc]

        mutant.set_genome(params)
        return mutant


def gauss_in_bounds(
    rng: np.random.Generator, low: float, high: float, width: float
) -> float:
    """Normal draw centred in [low, high], rejected until it lands inside."""
    mid = (high - low) / 2 + low
    std = abs(width * (high - low) / 2)
    for _ in range(_GAUSS_MAX_TRIES):
        d = rng.normal(mid, std)
        if low <= d <= high:
            return d
    logger.warning("[gauss_in_bounds] No draw within bounds, using midpoint {}", mid)
    return mid


def _swap_mask(length: int, cuts: np.ndarray) -> np.ndarray:
    # gene i is swapped iff an odd number of cuts lie strictly before it
    indicator = np.zeros(length, dtype=np.int64)
    indicator[cuts] = 1
    before = np.cumsum(indicator) - indicator
    return before % 2 == 1
