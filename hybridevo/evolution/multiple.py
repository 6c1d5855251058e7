from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger
import numpy as np

from hybridevo.constants import DEFAULT_PROBABILITY_TOLERANCE
from hybridevo.evolution.darwin import GlobalOptimization
from hybridevo.individuals.base import Optimizable
from hybridevo.operators.combinators import cumulative_buckets, select_bucket


class WeightedGlobalOptimization(GlobalOptimization):
    """Delegates each reproduction step to one of several drivers."""

    def __init__(
        self,
        optimizations: Sequence[GlobalOptimization],
        probabilities: Sequence[float],
        rng: np.random.Generator,
        tolerance: float = DEFAULT_PROBABILITY_TOLERANCE,
    ):
        self.buckets = cumulative_buckets(
            probabilities, len(optimizations), tolerance, family="global optimizations"
        )
        self.optimizations: List[GlobalOptimization] = list(optimizations)
        self.rng = rng
        logger.info(
            "[WeightedGlobalOptimization] {} drivers, buckets {}",
            len(self.optimizations),
            self.buckets.tolist(),
        )

    def describe(self) -> str:
        shares = np.diff(self.buckets, prepend=0.0)
        lines = ["WEIGHTED GLOBAL OPTIMIZATIONS"]
        for share, opt in zip(shares, self.optimizations):
            lines.append(f"{share * 100:g} %\t{opt.describe()}")
        return "\n\n".join(lines)

    def global_optimization(
        self, future_id: int, mother: Optimizable, father: Optimizable
    ) -> Optional[Optimizable]:
        chosen = self.optimizations[select_bucket(self.buckets, self.rng.random())]
        return chosen.global_optimization(future_id, mother, father)
