from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from hybridevo.evolution.fitness import FitnessFunction
from hybridevo.exceptions import ConfigurationError
from hybridevo.individuals.base import ContinuousProblem


class BoundedInitializer:
    """Seeds continuous individuals uniformly within per-gene bounds."""

    def __init__(
        self,
        rng: np.random.Generator,
        lower: Sequence[float],
        upper: Sequence[float],
        fitness: Optional[FitnessFunction] = None,
    ):
        self.lower = np.asarray(lower, dtype=np.float64)
        self.upper = np.asarray(upper, dtype=np.float64)
        if self.lower.shape != self.upper.shape:
            raise ConfigurationError("Lower and upper bounds differ in length")
        if np.any(self.upper < self.lower):
            raise ConfigurationError("Upper bounds must not be below lower bounds")
        self.rng = rng
        self.fitness = fitness

    def initialize_only(self, reference: ContinuousProblem, future_id: int) -> ContinuousProblem:
        """Random genome, no fitness evaluation."""
        init = reference.copy()
        d = self.rng.random(len(self.lower))
        init.set_genome(d * (self.upper - self.lower) + self.lower)
        init.id = future_id
        return init

    def initialize(self, reference: ContinuousProblem, future_id: int) -> ContinuousProblem:
        """Random genome, evaluated if a fitness function was given."""
        init = self.initialize_only(reference, future_id)
        if self.fitness is None:
            return init
        evaluated = self.fitness.fitness(init, False)
        evaluated.id = future_id
        return evaluated
