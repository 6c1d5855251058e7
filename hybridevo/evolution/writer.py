from __future__ import annotations

from abc import ABC, abstractmethod

from loguru import logger

from hybridevo.individuals.base import Optimizable


class IndividualWriter(ABC):
    """Receives candidates for tracing before their fitness is evaluated."""

    @abstractmethod
    def write_individual(self, individual: Optimizable) -> None: ...


class NullIndividualWriter(IndividualWriter):
    def write_individual(self, individual: Optimizable) -> None:
        pass


class LoggingIndividualWriter(IndividualWriter):
    """Emits candidates through loguru at the configured level."""

    def __init__(self, level: str = "INFO"):
        self.level = level

    def write_individual(self, individual: Optimizable) -> None:
        logger.log(
            self.level,
            "[IndividualWriter] Candidate {} (mother={}, father={}): {}",
            individual.id,
            individual.mother_id,
            individual.father_id,
            individual.get_genome_copy(),
        )
