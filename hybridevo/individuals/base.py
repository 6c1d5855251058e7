from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

import numpy as np


class Optimizable(ABC):
    """Contract for anything the global optimization can evolve.

    Implementations expose the following plain attributes:

    * ``id`` - step number the individual was produced in
    * ``father_id`` / ``mother_id`` - ids of the parents (``None`` for seeds)
    * ``fitness`` - scalar objective, lower is better

    and a genome of homogeneous elements accessible by value.
    """

    @abstractmethod
    def get_genome_copy(self) -> Sequence[Any]:
        """Return the genome as a fresh sequence, safe to modify."""

    @abstractmethod
    def set_genome(self, genome: Sequence[Any]) -> None:
        """Replace the genome by (a copy of) *genome*."""

    @abstractmethod
    def copy(self) -> Optimizable:
        """Return an independent copy sharing no mutable genome storage."""


class ContinuousProblem(Optimizable):
    """An optimizable whose genome can be viewed as real numbers."""

    @abstractmethod
    def get_genome_as_double(self) -> np.ndarray:
        """Return the genome as a new float64 array."""
