from __future__ import annotations

from pydantic import BaseModel, Field

from hybridevo.constants import DEFAULT_PROBABILITY_TOLERANCE, DEFAULT_STEP_TOLERANCE


class OperatorFactoryConfig(BaseModel):
    """Settings shared by all operators an OperatorFactory builds."""

    total_steps: int = Field(
        gt=0, description="Total number of reproduction steps of the run"
    )
    probability_tolerance: float = Field(
        default=DEFAULT_PROBABILITY_TOLERANCE,
        gt=0,
        description="Allowed deviation of weighted probabilities from 1.0",
    )
    step_tolerance: int = Field(
        default=DEFAULT_STEP_TOLERANCE,
        ge=0,
        description="Allowed deviation of scheduled sections from total_steps",
    )
