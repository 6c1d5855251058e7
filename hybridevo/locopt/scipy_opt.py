from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from loguru import logger
import numpy as np
from scipy.optimize import minimize

from hybridevo.constants import NON_CONVERGED_FITNESS
from hybridevo.exceptions import LocalOptConfigError
from hybridevo.individuals.base import Optimizable
from hybridevo.locopt.backend import Backend, BoundsType, FitnessBackend, supports_history
from hybridevo.locopt.base import AbstractLocalOptimization
from hybridevo.statistics import StatisticsSink

GRADIENT_METHODS = {"l-bfgs-b", "bfgs", "cg", "tnc", "slsqp", "newton-cg", "trust-constr"}
BOUNDED_METHODS = {"l-bfgs-b", "tnc", "slsqp", "powell", "nelder-mead", "trust-constr"}


class ScipyLocalOptimization(AbstractLocalOptimization):
    """Drives ``scipy.optimize.minimize`` through the backend contract.

    Gradient-based methods require a :class:`Backend`. Box bounds are passed
    on when the backend reports boundaries for all coordinates and the method
    supports them. With a history-capable backend the best point seen is
    restored if the optimizer ends up somewhere worse.
    """

    def __init__(
        self,
        backend: FitnessBackend,
        method: str = "L-BFGS-B",
        max_iterations: int = 1000,
        tolerance: float = 1e-8,
        statistics: Optional[StatisticsSink] = None,
    ):
        super().__init__(backend, statistics)
        self.method = method
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.uses_gradient = method.lower() in GRADIENT_METHODS
        if self.uses_gradient and not isinstance(backend, Backend):
            raise LocalOptConfigError(
                f"Method {method} needs gradients, {backend.describe()} only offers fitness"
            )

    def describe(self) -> str:
        return f"scipy {self.method} local optimization using:\n\t{self.backend.describe()}"

    def optimize(self, individual: Optimizable) -> Optimizable:
        work = individual.copy()
        back = self.backend
        x0 = np.array(back.get_active_coordinates(work), dtype=np.float64)
        history = supports_history(back)
        if history:
            back.reset_to_best_point()

        iteration = [0]

        def fun(x: np.ndarray) -> Any:
            if self.uses_gradient:
                self.statistics.increment_gradient_evaluations()
                e, g = back.gradient(x, iteration[0])
                if history:
                    back.remember_point(x, g, e)
                return e, g
            self.statistics.increment_fitness_evaluations()
            e = back.fitness(x, iteration[0])
            if history:
                back.remember_point(x, None, e)
            return e

        def step(*_: Any) -> None:
            iteration[0] += 1

        kwargs: Dict[str, Any] = {}
        bounds = self._bounds(work, x0)
        if bounds is not None:
            kwargs["bounds"] = bounds

        try:
            result = minimize(
                fun,
                x0,
                method=self.method,
                jac=self.uses_gradient,
                tol=self.tolerance,
                callback=step,
                options={"maxiter": self.max_iterations},
                **kwargs,
            )
        except (ValueError, FloatingPointError, np.linalg.LinAlgError) as exc:
            logger.warning("[ScipyLocalOptimization] {} failed for {}: {}", self.method, work.id, exc)
            work.fitness = NON_CONVERGED_FITNESS
            return work

        if not result.success:
            logger.info(
                "[ScipyLocalOptimization] {} did not converge for {}: {}",
                self.method,
                work.id,
                result.message,
            )

        fitness = float(result.fun)
        if not np.isfinite(fitness) or not np.all(np.isfinite(result.x)):
            coords = np.array(result.x, dtype=np.float64)
            back.reset_to_stable(coords)
            fitness = NON_CONVERGED_FITNESS
        else:
            coords = result.x

        back.update_active_coordinates(work, coords)
        work.fitness = fitness

        if history and back.best_fitness < work.fitness:
            logger.debug(
                "[ScipyLocalOptimization] Rolling back {} to best point ({:g} < {:g})",
                work.id,
                back.best_fitness,
                work.fitness,
            )
            back.best_point_into(work)
        return work

    def _bounds(
        self, individual: Optimizable, x0: np.ndarray
    ) -> Optional[Tuple[Tuple[float, float], ...]]:
        back = self.backend
        if back.boundaries_in_representation(individual) != BoundsType.ALL:
            return None
        if self.method.lower() not in BOUNDED_METHODS:
            return None
        lower, upper = back.best_estimate_boundaries(x0)
        if lower is None or upper is None:
            return None
        return tuple(zip(np.asarray(lower, dtype=float), np.asarray(upper, dtype=float)))
