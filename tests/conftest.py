"""
Shared fixtures: scripted random draws, small individuals, simple backends.
"""

from __future__ import annotations

from collections import deque
import sys
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hybridevo.individuals import ContinuousIndividual  # noqa: E402
from hybridevo.operators.base import Crossover, Mutation, Offspring, Priority  # noqa: E402
from hybridevo.problems import QuadraticBackend  # noqa: E402


class ScriptedRng:
    """Stand-in for ``numpy.random.Generator`` replaying queued draws.

    ``random()`` pops from *draws*; running out is a test bug and raises.
    ``integers`` / ``choice`` / ``normal`` pop from their own queues and fall
    back to a seeded generator when those are empty.
    """

    def __init__(
        self,
        draws: Iterable[float] = (),
        integers: Iterable[int] = (),
        seed: int = 0,
    ):
        self.draws = deque(draws)
        self.ints = deque(integers)
        self.fallback = np.random.default_rng(seed)
        self.calls = 0

    def push(self, *draws: float) -> None:
        self.draws.extend(draws)

    def random(self, size: Optional[int] = None):
        if size is not None:
            return self.fallback.random(size)
        self.calls += 1
        if not self.draws:
            raise AssertionError("ScriptedRng ran out of random() draws")
        return self.draws.popleft()

    def integers(self, *args, **kwargs):
        if self.ints:
            return self.ints.popleft()
        return self.fallback.integers(*args, **kwargs)

    def choice(self, *args, **kwargs):
        return self.fallback.choice(*args, **kwargs)

    def normal(self, *args, **kwargs):
        return self.fallback.normal(*args, **kwargs)


class TaggingCrossover(Crossover):
    """Returns copies of the parents with a tag added to every gene."""

    def __init__(self, tag: float, priority: Priority = Priority.NO_PREFERENCE):
        self.tag = tag
        self._priority = priority
        self.calls = 0

    def describe(self) -> str:
        return f"tagging crossover {self.tag}"

    def crossover(self, mother, father, future_id) -> Offspring:
        self.calls += 1
        c1, c2 = mother.copy(), father.copy()
        c1.set_genome(c1.genome + self.tag)
        c2.set_genome(c2.genome + self.tag)
        return c1, c2

    def priority(self) -> Priority:
        return self._priority


class FailingCrossover(Crossover):
    def describe(self) -> str:
        return "always failing crossover"

    def crossover(self, mother, father, future_id) -> Offspring:
        return None, None


class TaggingMutation(Mutation):
    def __init__(self, tag: float):
        self.tag = tag
        self.calls = 0

    def describe(self) -> str:
        return f"tagging mutation {self.tag}"

    def mutate(self, individual):
        self.calls += 1
        mutant = individual.copy()
        mutant.set_genome(mutant.genome + self.tag)
        return mutant


@pytest.fixture
def scripted_rng():
    return ScriptedRng()


@pytest.fixture
def mother():
    return ContinuousIndividual(id=1, genome=[0.0, 0.0, 0.0, 0.0], fitness=4.0)


@pytest.fixture
def father():
    return ContinuousIndividual(id=2, genome=[1.0, 1.0, 1.0, 1.0], fitness=2.0)


@pytest.fixture
def quadratic_backend():
    return QuadraticBackend(center=[1.0, -2.0, 0.5])
