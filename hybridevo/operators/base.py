from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Optional, Tuple

import numpy as np

from hybridevo.individuals.base import Optimizable
from hybridevo.utils.rng import clone_with_rng

Offspring = Tuple[Optional[Optimizable], Optional[Optimizable]]


class Priority(IntEnum):
    """Which crossover child fills the last free offspring slot."""

    NO_PREFERENCE = -1
    PREFER_FIRST = 0
    PREFER_SECOND = 1


class GeneticOperator(ABC):
    """Common base of crossover and mutation operators.

    Operators are stateless across calls except for their parameters and the
    random generator handle in ``self.rng`` (``None`` for deterministic ones).
    """

    rng: Optional[np.random.Generator] = None

    @abstractmethod
    def describe(self) -> str:
        """Human-readable one-line (or indented multi-line) identification."""

    def copy(self, rng: Optional[np.random.Generator] = None) -> GeneticOperator:
        """Deep copy for another worker, optionally re-seated on *rng*.

        Every node of a composed operator tree that shares this operator's
        generator switches to *rng* in the copy.
        """
        return clone_with_rng(self, self.rng, rng)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()!r})"


class Crossover(GeneticOperator):
    """Binary operator producing up to two offspring from two parents."""

    @abstractmethod
    def crossover(
        self, mother: Optimizable, father: Optimizable, future_id: int
    ) -> Offspring:
        """Cross *mother* and *father*.

        Parents are never modified. A ``None`` first child signals that the
        crossover failed for this pair.
        """

    def priority(self) -> Priority:
        """Preference between the two children of the most recent call."""
        return Priority.NO_PREFERENCE


class Mutation(GeneticOperator):
    """Unary operator perturbing one individual."""

    @abstractmethod
    def mutate(self, individual: Optimizable) -> Optional[Optimizable]:
        """Return the mutated individual, or ``None`` if mutation failed."""
