"""
Local optimization strings.
"""

from __future__ import annotations

import pytest

from hybridevo.constants import NON_CONVERGED_FITNESS
from hybridevo.exceptions import LocalOptConfigError
from hybridevo.individuals import ContinuousIndividual
from hybridevo.locopt import (
    AbsolutePrescreeningLocalOptimization,
    ChainedLocalOptimization,
    LocalOptFactoryConfig,
    LocalOptimizationFactory,
    NoLocalOptimization,
    RelativePrescreeningLocalOptimization,
    ScipyLocalOptimization,
    SortedFitnessList,
)
from hybridevo.problems import QuadraticBackend, RastriginBackend


@pytest.fixture
def factory(quadratic_backend):
    return LocalOptimizationFactory(
        backends={"quad": quadratic_backend, "rastrigin": RastriginBackend()},
        config=LocalOptFactoryConfig(max_iterations=250),
    )


def test_none_gets_own_backend_copy(factory, quadratic_backend):
    locopt = factory.build("none:backend=quad")
    assert isinstance(locopt, NoLocalOptimization)
    assert isinstance(locopt.backend, QuadraticBackend)
    assert locopt.backend is not quadratic_backend


def test_scipy_options(factory):
    locopt = factory.build("scipy:method=BFGS;maxiter=50;convthresh=1e-6;backend=rastrigin")
    assert isinstance(locopt, ScipyLocalOptimization)
    assert locopt.method == "BFGS"
    assert locopt.max_iterations == 50
    assert locopt.tolerance == pytest.approx(1e-6)
    assert isinstance(locopt.backend, RastriginBackend)

    defaults = factory.build("scipy:backend=quad")
    assert defaults.method == "L-BFGS-B"
    assert defaults.max_iterations == 250


def test_chained(factory):
    locopt = factory.build("chained:[none:backend=quad]|[scipy:backend=quad]")
    assert isinstance(locopt, ChainedLocalOptimization)
    assert [type(s) for s in locopt.stages] == [NoLocalOptimization, ScipyLocalOptimization]
    assert locopt.cutoff == NON_CONVERGED_FITNESS
    assert isinstance(locopt.backend, QuadraticBackend)


def test_absolute_prescreen_wraps_inner(factory):
    locopt = factory.build(
        "absprescreen:cutoff=50;backend=quad|chained:none:backend=quad|scipy:backend=quad"
    )
    assert isinstance(locopt, AbsolutePrescreeningLocalOptimization)
    assert locopt.cutoff == 50.0
    assert isinstance(locopt.inner, ChainedLocalOptimization)
    assert len(locopt.inner.stages) == 2

    result = locopt.fitness(ContinuousIndividual(genome=[0.0, 0.0, 0.0]))
    assert result.fitness < 1e-8


def test_relative_prescreen_needs_population(quadratic_backend):
    spec = "relprescreen:maxperc=20;backend=quad|none:backend=quad"
    with pytest.raises(LocalOptConfigError, match="population"):
        LocalOptimizationFactory(backends={"quad": quadratic_backend}).build(spec)

    population = SortedFitnessList([0.0, 10.0])
    locopt = LocalOptimizationFactory(
        backends={"quad": quadratic_backend}, population=population
    ).build(spec)
    assert isinstance(locopt, RelativePrescreeningLocalOptimization)
    assert locopt.max_percentage == 20.0
    assert locopt.population is population


@pytest.mark.parametrize(
    "spec",
    [
        "gradientdescent:backend=quad",
        "none:backend=nosuch",
        "none:",
        "none:backend=quad;speed=11",
        "scipy:maxiter=0;backend=quad",
        "scipy:convthresh=abc;backend=quad",
        "absprescreen:cutoff=50;backend=quad",
        "chained:",
    ],
)
def test_malformed_local_optimizations(factory, spec):
    with pytest.raises(LocalOptConfigError):
        factory.build(spec)


def test_specialized_hooks(quadratic_backend):
    class Specialized(LocalOptimizationFactory):
        def specialized_backend(self, name):
            if name == "bowl":
                return QuadraticBackend(center=[0.0])
            return None

        def specialized_local_optimization(self, spec):
            if spec == "magic":
                return NoLocalOptimization(QuadraticBackend(center=[1.0]))
            return None

    factory = Specialized(backends={"quad": quadratic_backend})
    assert isinstance(factory.build("magic"), NoLocalOptimization)
    assert factory.build("none:backend=bowl").backend.center.tolist() == [0.0]


def test_chained_relative_prescreen_copy_keeps_population(quadratic_backend):
    population = SortedFitnessList([1.0, 2.0])
    chain = LocalOptimizationFactory(
        backends={"quad": quadratic_backend}, population=population
    ).build("chained:[relprescreen:maxperc=20;backend=quad|none:backend=quad]")

    clone = chain.copy()

    assert isinstance(clone.stages[0], RelativePrescreeningLocalOptimization)
    assert clone.stages[0] is not chain.stages[0]
    assert clone.stages[0].population is population
