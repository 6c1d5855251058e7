from __future__ import annotations

from pydantic import BaseModel, Field

from hybridevo.constants import NON_CONVERGED_FITNESS


class LocalOptFactoryConfig(BaseModel):
    """Defaults for local optimizations built from strings."""

    max_iterations: int = Field(
        default=1000, gt=0, description="Iteration limit unless overridden by maxiter="
    )
    convergence_threshold: float = Field(
        default=1e-8, gt=0, description="Convergence threshold unless overridden by convthresh="
    )
    non_converged_fitness: float = Field(
        default=NON_CONVERGED_FITNESS,
        description="Fitness marking a failed optimization; also the default chain cutoff",
    )
