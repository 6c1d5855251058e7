from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from loguru import logger
import numpy as np

from hybridevo.individuals.base import ContinuousProblem, Optimizable


class SanityCheck(ABC):
    """Validity predicate applied to a candidate before its fitness is evaluated."""

    @abstractmethod
    def is_sane(self, individual: Optimizable) -> bool: ...


class AlwaysSane(SanityCheck):
    def is_sane(self, individual: Optimizable) -> bool:
        return True


class BoundsSanityCheck(SanityCheck):
    """Rejects genomes with non-finite values or genes outside the bounds."""

    def __init__(
        self,
        lower: Optional[Sequence[float]] = None,
        upper: Optional[Sequence[float]] = None,
    ):
        self.lower = None if lower is None else np.asarray(lower, dtype=np.float64)
        self.upper = None if upper is None else np.asarray(upper, dtype=np.float64)

    def is_sane(self, individual: Optimizable) -> bool:
        if not isinstance(individual, ContinuousProblem):
            return True
        genome = individual.get_genome_as_double()
        if not np.all(np.isfinite(genome)):
            logger.debug("[BoundsSanityCheck] Individual {} has non-finite genes", individual.id)
            return False
        if self.lower is not None and np.any(genome < self.lower):
            return False
        if self.upper is not None and np.any(genome > self.upper):
            return False
        return True
