from hybridevo.operators.base import (
    Crossover,
    GeneticOperator,
    Mutation,
    Offspring,
    Priority,
)
from hybridevo.operators.combinators import (
    ChainedCrossover,
    ChainedMutation,
    StepScheduledCrossover,
    StepScheduledMutation,
    WeightedCrossover,
    WeightedMutation,
)
from hybridevo.operators.config import OperatorFactoryConfig
from hybridevo.operators.factory import OperatorFactory
from hybridevo.operators.generic import (
    BoundedMutation,
    GaussianCutCrossover,
    MutationAsCrossover,
    NoCrossover,
    NoMutation,
    NPointCrossover,
)

__all__ = [
    "BoundedMutation",
    "ChainedCrossover",
    "ChainedMutation",
    "Crossover",
    "GaussianCutCrossover",
    "GeneticOperator",
    "Mutation",
    "MutationAsCrossover",
    "NoCrossover",
    "NoMutation",
    "NPointCrossover",
    "Offspring",
    "OperatorFactory",
    "OperatorFactoryConfig",
    "Priority",
    "StepScheduledCrossover",
    "StepScheduledMutation",
    "WeightedCrossover",
    "WeightedMutation",
]
