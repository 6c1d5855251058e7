from __future__ import annotations

from pydantic import BaseModel, Field


class ReproductionConfig(BaseModel):
    """Configuration options controlling a single reproduction step."""

    crossover_probability: float = Field(
        default=1.0, ge=0.0, le=1.0, description="Chance to cross the parents"
    )
    mutation_probability: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Chance to mutate crossed children (uncrossed ones are always mutated)",
    )
    max_trials: int = Field(
        default=10, gt=0, description="Trials before giving up on this step"
    )
    write_before_fitness: bool = Field(
        default=False,
        description="Hand every sane child to the writer before its fitness is evaluated",
    )
