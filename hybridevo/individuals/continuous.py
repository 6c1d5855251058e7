from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from hybridevo.constants import NON_CONVERGED_FITNESS
from hybridevo.individuals.base import ContinuousProblem


class ContinuousIndividual(BaseModel, ContinuousProblem):
    """A real-valued genome with fitness and lineage."""

    id: int = Field(default=0, description="Step number the individual was created in")
    father_id: Optional[int] = Field(default=None, description="ID of the father")
    mother_id: Optional[int] = Field(default=None, description="ID of the mother")
    fitness: float = Field(
        default=NON_CONVERGED_FITNESS, description="Fitness value, lower is better"
    )
    genome: np.ndarray = Field(description="Real-valued genome")

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    @field_validator("genome", mode="before")
    @classmethod
    def validate_genome(cls, v: Any) -> np.ndarray:
        arr = np.array(v, dtype=np.float64)
        if arr.ndim != 1:
            raise ValueError(f"Genome must be one-dimensional, got shape {arr.shape}")
        return arr

    def get_genome_copy(self) -> np.ndarray:
        return self.genome.copy()

    def get_genome_as_double(self) -> np.ndarray:
        return self.genome.copy()

    def set_genome(self, genome: Sequence[float]) -> None:
        self.genome = np.array(genome, dtype=np.float64)

    def copy(self) -> ContinuousIndividual:
        return self.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self.genome)
