from __future__ import annotations

from typing import Dict, Mapping, Optional

from loguru import logger

from hybridevo.exceptions import LocalOptConfigError, OperatorConfigError
from hybridevo.locopt.backend import FitnessBackend
from hybridevo.locopt.base import LocalOptimization
from hybridevo.locopt.config import LocalOptFactoryConfig
from hybridevo.locopt.population import PopulationView
from hybridevo.locopt.scipy_opt import ScipyLocalOptimization
from hybridevo.locopt.wrappers import (
    AbsolutePrescreeningLocalOptimization,
    ChainedLocalOptimization,
    NoLocalOptimization,
    RelativePrescreeningLocalOptimization,
)
from hybridevo.operators import grammar
from hybridevo.statistics import ReproductionStatistics, StatisticsSink

__all__ = ["LocalOptimizationFactory"]


class LocalOptimizationFactory:
    """Builds local optimizations from strings.

    Generic forms::

        none:backend=NAME
        scipy:method=L-BFGS-B;maxiter=N;convthresh=X;backend=NAME
        chained:[LOCOPT1]|[LOCOPT2]...
        absprescreen:cutoff=X;backend=NAME|LOCOPT
        relprescreen:maxperc=P;backend=NAME|LOCOPT

    Backend names are looked up via :meth:`specialized_backend` first, then in
    the *backends* mapping. Every built optimization gets its own copy of the
    backend. ``relprescreen`` needs a population view.
    """

    def __init__(
        self,
        backends: Optional[Mapping[str, FitnessBackend]] = None,
        config: Optional[LocalOptFactoryConfig] = None,
        population: Optional[PopulationView] = None,
        statistics: Optional[StatisticsSink] = None,
    ):
        self.backends: Dict[str, FitnessBackend] = dict(backends or {})
        self.config = config or LocalOptFactoryConfig()
        self.population = population
        self.statistics = statistics if statistics is not None else ReproductionStatistics()

    # Hooks for problem-specific vocabularies
    def specialized_local_optimization(self, spec: str) -> Optional[LocalOptimization]:
        return None

    def specialized_backend(self, name: str) -> Optional[FitnessBackend]:
        return None

    def get_backend(self, name: str) -> FitnessBackend:
        name = name.strip()
        backend = self.specialized_backend(name)
        if backend is None:
            backend = self.backends.get(name)
        if backend is None:
            raise LocalOptConfigError(
                f"Unknown backend '{name}', known are: {sorted(self.backends)}"
            )
        return backend.copy()

    def build(self, spec: str) -> LocalOptimization:
        spec = grammar.unwrap(spec)

        special = self.specialized_local_optimization(spec)
        if special is not None:
            logger.debug("[LocalOptimizationFactory] Specialized local optimization for '{}'", spec)
            return special

        try:
            locopt = self._generic(spec)
        except OperatorConfigError as exc:
            raise LocalOptConfigError(str(exc)) from exc
        logger.info("[LocalOptimizationFactory] Built:\n{}", locopt.describe())
        return locopt

    def _generic(self, spec: str) -> LocalOptimization:
        if spec.startswith("none:"):
            backend = None
            for opt in grammar.tokenize_second_level(grammar.strip_prefix(spec, "none:")):
                if opt.startswith("backend="):
                    backend = self.get_backend(grammar.string_token("backend=", opt))
                else:
                    raise LocalOptConfigError(f"Unknown option '{opt}' in single point only")
            return NoLocalOptimization(self._require(backend, spec), statistics=self.statistics)

        if spec.startswith("scipy:"):
            return self._scipy(grammar.strip_prefix(spec, "scipy:"), spec)

        if spec.startswith("chained:"):
            stages = [
                self.build(sub)
                for sub in grammar.tokenize_first_level(grammar.strip_prefix(spec, "chained:"))
            ]
            if not stages:
                raise LocalOptConfigError(f"No stages in chained local optimization '{spec}'")
            return ChainedLocalOptimization(
                stages, cutoff=self.config.non_converged_fitness, statistics=self.statistics
            )

        if spec.startswith("absprescreen:"):
            options, inner = self._split_prescreen(grammar.strip_prefix(spec, "absprescreen:"), spec)
            cutoff = self.config.non_converged_fitness
            backend = None
            for opt in grammar.tokenize_second_level(options):
                if opt.startswith("cutoff="):
                    cutoff = grammar.float_token("cutoff=", opt, "absprescreen")
                elif opt.startswith("backend="):
                    backend = self.get_backend(grammar.string_token("backend=", opt))
                else:
                    raise LocalOptConfigError(f"Unknown option '{opt}' in absolute prescreening")
            return AbsolutePrescreeningLocalOptimization(
                self.build(inner), self._require(backend, spec), cutoff, statistics=self.statistics
            )

        if spec.startswith("relprescreen:"):
            if self.population is None:
                raise LocalOptConfigError(
                    "Relative prescreening needs a population view shared with the optimizer"
                )
            options, inner = self._split_prescreen(grammar.strip_prefix(spec, "relprescreen:"), spec)
            max_perc = None
            backend = None
            for opt in grammar.tokenize_second_level(options):
                if opt.startswith("maxperc="):
                    max_perc = grammar.float_token("maxperc=", opt, "relprescreen")
                elif opt.startswith("backend="):
                    backend = self.get_backend(grammar.string_token("backend=", opt))
                else:
                    raise LocalOptConfigError(f"Unknown option '{opt}' in relative prescreening")
            if max_perc is None or max_perc <= 0.0:
                raise LocalOptConfigError(f"maxperc= must be given and positive in '{spec}'")
            return RelativePrescreeningLocalOptimization(
                self.build(inner),
                self._require(backend, spec),
                self.population,
                max_perc,
                statistics=self.statistics,
            )

        raise LocalOptConfigError(
            f"No local optimization found for input '{spec}'. Tried both specialized and generic ones."
        )

    def _scipy(self, options: str, spec: str) -> LocalOptimization:
        method = "L-BFGS-B"
        max_iter = self.config.max_iterations
        thresh = self.config.convergence_threshold
        backend = None
        for opt in grammar.tokenize_second_level(options):
            if opt.startswith("method="):
                method = grammar.string_token("method=", opt)
            elif opt.startswith("maxiter="):
                max_iter = grammar.int_token("maxiter=", opt, "scipy")
            elif opt.startswith("convthresh="):
                thresh = grammar.float_token("convthresh=", opt, "scipy")
            elif opt.startswith("backend="):
                backend = self.get_backend(grammar.string_token("backend=", opt))
            else:
                raise LocalOptConfigError(f"Unknown option '{opt}' in scipy local optimization")
        if max_iter <= 0:
            raise LocalOptConfigError(f"Maximum iterations must be positive, got {max_iter}")
        if thresh <= 0.0:
            raise LocalOptConfigError(f"Convergence threshold must be positive, got {thresh}")
        return ScipyLocalOptimization(
            self._require(backend, spec),
            method=method,
            max_iterations=max_iter,
            tolerance=thresh,
            statistics=self.statistics,
        )

    @staticmethod
    def _split_prescreen(text: str, spec: str):
        tokens = grammar.tokenize_first_level(text)
        if len(tokens) < 2:
            raise LocalOptConfigError(f"Prescreening needs 'options|inner local optimization': '{spec}'")
        return tokens[0], grammar.FIRST_LEVEL.join(tokens[1:])

    @staticmethod
    def _require(backend: Optional[FitnessBackend], spec: str) -> FitnessBackend:
        if backend is None:
            raise LocalOptConfigError(f"Backend must be given (backend=NAME) in '{spec}'")
        return backend
