from __future__ import annotations

from typing import Optional, Tuple

from loguru import logger

from hybridevo.evolution.config import ReproductionConfig
from hybridevo.evolution.darwin import Darwin, GlobalOptimization
from hybridevo.evolution.fitness import FitnessFunction
from hybridevo.evolution.multiple import WeightedGlobalOptimization
from hybridevo.evolution.sanity import SanityCheck
from hybridevo.evolution.writer import IndividualWriter
from hybridevo.exceptions import OperatorConfigError
from hybridevo.operators import grammar
from hybridevo.operators.factory import OperatorFactory
from hybridevo.statistics import StatisticsSink

_FAMILY = "global optimization"


class GlobalOptimizationFactory:
    """Builds reproduction drivers from strings.

    Syntax::

        xover(<crossover>) mutation(<mutation>)
        multiple:P1%[xover(..) mutation(..)]|P2%[...]

    Operator strings are handed to the :class:`OperatorFactory`, so its
    specialized vocabulary applies inside ``xover(...)`` and ``mutation(...)``.
    """

    def __init__(
        self,
        operators: OperatorFactory,
        sanity_check: SanityCheck,
        fitness: FitnessFunction,
        config: Optional[ReproductionConfig] = None,
        writer: Optional[IndividualWriter] = None,
        statistics: Optional[StatisticsSink] = None,
    ):
        self.operators = operators
        self.sanity_check = sanity_check
        self.fitness = fitness
        self.config = config or ReproductionConfig()
        self.writer = writer
        self.statistics = statistics

    def translate(self, spec: str) -> GlobalOptimization:
        spec = grammar.unwrap(spec)
        if spec.startswith("multiple:"):
            entries = grammar.parse_weighted_list(grammar.strip_prefix(spec, "multiple:"), _FAMILY)
            if not entries:
                raise OperatorConfigError(_FAMILY, spec, "empty driver list")
            return WeightedGlobalOptimization(
                [self.translate(sub) for _, sub in entries],
                [p for p, _ in entries],
                self.operators.rng,
                tolerance=self.operators.config.probability_tolerance,
            )

        xover_spec, mutation_spec = self._split_driver(spec)
        crossover = self.operators.get_crossover(xover_spec)
        mutation = self.operators.get_mutation(mutation_spec)

        darwin = Darwin(
            crossover,
            mutation,
            self.sanity_check,
            self.fitness.copy(),
            self.operators.rng,
            config=self.config,
            writer=self.writer,
            statistics=self.statistics,
        )
        logger.info("[GlobalOptimizationFactory] Built driver:\n{}", darwin.describe())
        return darwin

    @staticmethod
    def _split_driver(spec: str) -> Tuple[str, str]:
        xover_spec, rest = _call_argument(spec.strip(), "xover", spec)
        mutation_spec, rest = _call_argument(rest, "mutation", spec)
        if rest:
            raise OperatorConfigError(_FAMILY, rest, "trailing input")
        return xover_spec, mutation_spec


def _call_argument(text: str, name: str, whole: str) -> Tuple[str, str]:
    """``name(arg) rest`` -> ``(arg, rest)``, honouring nested brackets."""
    text = text.strip()
    opener = f"{name}("
    if not text.startswith(opener):
        raise OperatorConfigError(
            _FAMILY, whole, "syntax is 'xover(...) mutation(...)', not met by"
        )
    depth = 0
    for i in range(len(opener) - 1, len(text)):
        if text[i] in "([":
            depth += 1
        elif text[i] in ")]":
            depth -= 1
            if depth == 0:
                return text[len(opener):i].strip(), text[i + 1:].strip()
    raise OperatorConfigError(_FAMILY, whole, "unbalanced parentheses in")
