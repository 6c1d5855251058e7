from hybridevo.individuals.base import ContinuousProblem, Optimizable
from hybridevo.individuals.continuous import ContinuousIndividual

__all__ = ["ContinuousIndividual", "ContinuousProblem", "Optimizable"]
