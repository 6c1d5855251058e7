from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from loguru import logger
import numpy as np

from hybridevo.exceptions import ConfigurationError, OperatorConfigError
from hybridevo.operators import grammar
from hybridevo.operators.base import Crossover, Mutation
from hybridevo.operators.combinators import (
    ChainedCrossover,
    ChainedMutation,
    StepScheduledCrossover,
    StepScheduledMutation,
    WeightedCrossover,
    WeightedMutation,
)
from hybridevo.operators.config import OperatorFactoryConfig
from hybridevo.operators.generic import (
    BoundedMutation,
    GaussianCutCrossover,
    MutationAsCrossover,
    NoCrossover,
    NoMutation,
    NPointCrossover,
)

__all__ = ["OperatorFactory"]


class OperatorFactory:
    """Translates operator strings into (nested) crossover and mutation trees.

    Resolution order for every (sub-)string: the problem-specific hooks
    :meth:`specialized_crossover` / :meth:`specialized_mutation` first, then
    the generic vocabulary below. Subclasses override the hooks to add or
    shadow operators without touching the generic grammar.

    Generic crossovers::

        nocrossover | noxover
        multiple:P1%X1|P2%X2...          weighted alternative, P in percent
        chained:P1%X1|P2%X2...           chain, each P an application chance
        changingxover:P1%[X1]P2%[X2]...  step scheduled, P share of all steps
        mutationasxover:M
        portugal:nocuts=N
        germany:gausswidth=W

    Generic mutations::

        nomutation
        multiple: / chained: / changingmut:   as above
        bounded:mode=single|multi,lower=l1/l2/..,upper=u1/u2/..

    Sub-specifications containing separators are enclosed in brackets.
    """

    def __init__(self, rng: np.random.Generator, config: OperatorFactoryConfig):
        self.rng = rng
        self.config = config

    # ------------------------------------------------------------------
    # Hooks for problem-specific vocabularies
    # ------------------------------------------------------------------
    def specialized_crossover(self, spec: str) -> Optional[Crossover]:
        return None

    def specialized_mutation(self, spec: str) -> Optional[Mutation]:
        return None

    # ------------------------------------------------------------------
    # Crossovers
    # ------------------------------------------------------------------
    def get_crossover(self, spec: str) -> Crossover:
        spec = grammar.unwrap(spec)

        special = self.specialized_crossover(spec)
        if special is not None:
            logger.debug("[OperatorFactory] Specialized crossover for '{}'", spec)
            return special

        logger.debug("[OperatorFactory] No specialized crossover for '{}', trying generic ones", spec)

        if grammar.matches(spec, "nocrossover", "noxover"):
            return NoCrossover()
        if spec.startswith("multiple:"):
            probs, xovers = self.get_crossovers_and_probabilities(
                grammar.strip_prefix(spec, "multiple:")
            )
            return WeightedCrossover(
                xovers, probs, self.rng, tolerance=self.config.probability_tolerance
            )
        if spec.startswith("chained:"):
            probs, xovers = self.get_crossovers_and_probabilities(
                grammar.strip_prefix(spec, "chained:")
            )
            return ChainedCrossover(xovers, probs, self.rng)
        if spec.startswith("mutationasxover:"):
            return MutationAsCrossover(
                self.get_mutation(grammar.strip_prefix(spec, "mutationasxover:"))
            )
        if spec.startswith("changingxover:"):
            entries = grammar.parse_scheduled_list(
                grammar.strip_prefix(spec, "changingxover:"), "crossover"
            )
            return StepScheduledCrossover(
                self.config.total_steps,
                [self.get_crossover(sub) for _, sub in entries],
                [perc for perc, _ in entries],
                tolerance=self.config.step_tolerance,
            )
        if spec.startswith("portugal:"):
            return self._portugal(grammar.strip_prefix(spec, "portugal:"))
        if spec.startswith("germany:"):
            return self._germany(grammar.strip_prefix(spec, "germany:"))

        raise OperatorConfigError(
            "crossover", spec, "unknown crossover (neither specialized nor generic)"
        )

    def get_crossovers_and_probabilities(
        self, spec: str
    ) -> Tuple[List[float], List[Crossover]]:
        entries = grammar.parse_weighted_list(spec, "crossover")
        if not entries:
            raise OperatorConfigError("crossover", spec, "empty operator list")
        return [p for p, _ in entries], [self.get_crossover(sub) for _, sub in entries]

    def _portugal(self, options: str) -> Crossover:
        cuts = 1
        for token in grammar.tokenize_third_level(options):
            if token.startswith("nocuts="):
                cuts = grammar.int_token("nocuts=", token, "crossover (portugal)")
                if cuts < 0:
                    raise OperatorConfigError(
                        "crossover (portugal)", token, "number of cuts must be non-negative"
                    )
            else:
                raise OperatorConfigError("crossover (portugal)", token)
        return NPointCrossover(self.rng, number_of_cuts=cuts)

    def _germany(self, options: str) -> Crossover:
        width = 0.3
        for token in grammar.tokenize_third_level(options):
            if token.startswith("gausswidth="):
                width = grammar.float_token("gausswidth=", token, "crossover (germany)")
            else:
                raise OperatorConfigError("crossover (germany)", token)
        try:
            return GaussianCutCrossover(self.rng, gauss_width=width)
        except ConfigurationError as exc:
            raise OperatorConfigError("crossover (germany)", options, str(exc)) from exc

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def get_mutation(self, spec: str) -> Mutation:
        spec = grammar.unwrap(spec)

        special = self.specialized_mutation(spec)
        if special is not None:
            logger.debug("[OperatorFactory] Specialized mutation for '{}'", spec)
            return special

        logger.debug("[OperatorFactory] No specialized mutation for '{}', trying generic ones", spec)

        if grammar.matches(spec, "nomutation"):
            return NoMutation()
        if spec.startswith("multiple:"):
            probs, muts = self.get_mutations_and_probabilities(
                grammar.strip_prefix(spec, "multiple:")
            )
            return WeightedMutation(
                muts, probs, self.rng, tolerance=self.config.probability_tolerance
            )
        if spec.startswith("chained:"):
            probs, muts = self.get_mutations_and_probabilities(
                grammar.strip_prefix(spec, "chained:")
            )
            return ChainedMutation(muts, probs, self.rng)
        if spec.startswith("changingmut:"):
            entries = grammar.parse_scheduled_list(
                grammar.strip_prefix(spec, "changingmut:"), "mutation"
            )
            return StepScheduledMutation(
                self.config.total_steps,
                [self.get_mutation(sub) for _, sub in entries],
                [perc for perc, _ in entries],
                tolerance=self.config.step_tolerance,
            )
        if spec.startswith("bounded:"):
            return self._bounded(grammar.strip_prefix(spec, "bounded:"))

        raise OperatorConfigError(
            "mutation", spec, "unknown mutation (neither specialized nor generic)"
        )

    def get_mutations_and_probabilities(
        self, spec: str
    ) -> Tuple[List[float], List[Mutation]]:
        entries = grammar.parse_weighted_list(spec, "mutation")
        if not entries:
            raise OperatorConfigError("mutation", spec, "empty operator list")
        return [p for p, _ in entries], [self.get_mutation(sub) for _, sub in entries]

    def _bounded(self, options: str) -> Mutation:
        family = "mutation (bounded)"
        mode = "single"
        lower: Sequence[float] | None = None
        upper: Sequence[float] | None = None
        for token in grammar.tokenize_third_level(options):
            if token.startswith("mode="):
                mode = grammar.string_token("mode=", token).lower()
            elif token.startswith("lower="):
                lower = grammar.float_list_token("lower=", token, family)
            elif token.startswith("upper="):
                upper = grammar.float_list_token("upper=", token, family)
            else:
                raise OperatorConfigError(family, token)
        if lower is None or upper is None:
            raise OperatorConfigError(family, options, "lower= and upper= are required, got")
        try:
            return BoundedMutation(self.rng, lower, upper, mode=mode)
        except ConfigurationError as exc:
            raise OperatorConfigError(family, options, str(exc)) from exc
