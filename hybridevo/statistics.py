from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, Field, computed_field


class StatisticsSink(Protocol):
    """Counters fed by the reproduction step and the local optimizations.

    Purely observational: nothing in hybridevo reads them back.
    """

    def increment_trials(self) -> None: ...

    def increment_crossover_failures(self) -> None: ...

    def increment_sanity_discards(self) -> None: ...

    def increment_fitness_evaluations(self) -> None: ...

    def increment_gradient_evaluations(self) -> None: ...

    def increment_local_optimizations(self) -> None: ...

    def increment_prescreen_rejections(self) -> None: ...


class ReproductionStatistics(BaseModel):
    """In-memory counters (one instance per worker)."""

    trials: int = Field(default=0, description="Reproduction trials started")
    crossover_failures: int = Field(
        default=0, description="Trials aborted because the crossover failed"
    )
    sanity_discards: int = Field(
        default=0, description="Children discarded by the sanity check"
    )
    fitness_evaluations: int = Field(
        default=0, description="Single fitness evaluations"
    )
    gradient_evaluations: int = Field(
        default=0, description="Fitness plus gradient evaluations"
    )
    local_optimizations: int = Field(
        default=0, description="Full local optimizations started"
    )
    prescreen_rejections: int = Field(
        default=0, description="Candidates rejected by prescreening"
    )

    @computed_field
    @property
    def sanity_discard_rate(self) -> float:
        """Fraction of trials that lost a child to the sanity check."""
        return self.sanity_discards / max(1, self.trials)

    def increment_trials(self) -> None:
        self.trials += 1

    def increment_crossover_failures(self) -> None:
        self.crossover_failures += 1

    def increment_sanity_discards(self) -> None:
        self.sanity_discards += 1

    def increment_fitness_evaluations(self) -> None:
        self.fitness_evaluations += 1

    def increment_gradient_evaluations(self) -> None:
        self.gradient_evaluations += 1

    def increment_local_optimizations(self) -> None:
        self.local_optimizations += 1

    def increment_prescreen_rejections(self) -> None:
        self.prescreen_rejections += 1

    def merge(self, other: ReproductionStatistics) -> ReproductionStatistics:
        """Sum of two workers' counters."""
        return ReproductionStatistics(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in type(self).model_fields
            }
        )

    def to_dict(self) -> dict[str, int | float]:
        return self.model_dump()
