from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class PopulationView(Protocol):
    """Read-only view on a fitness-sorted population (rank 0 is the best)."""

    def fitness_at(self, rank: int) -> float: ...

    def size(self) -> int: ...


class SortedFitnessList:
    """Minimal :class:`PopulationView` over a list of fitness values."""

    def __init__(self, fitnesses: Sequence[float] = ()):
        self._fitnesses = sorted(float(f) for f in fitnesses)

    def add(self, fitness: float) -> None:
        self._fitnesses.append(float(fitness))
        self._fitnesses.sort()

    def fitness_at(self, rank: int) -> float:
        return self._fitnesses[rank]

    def size(self) -> int:
        return len(self._fitnesses)
