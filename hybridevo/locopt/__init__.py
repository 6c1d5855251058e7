from __future__ import annotations

from hybridevo.locopt.backend import (
    Backend,
    BoundsType,
    ContinuousBackend,
    FitnessBackend,
    FitnessFunctionBackendWrapper,
    HistoryBackend,
    supports_history,
)
from hybridevo.locopt.base import AbstractLocalOptimization, LocalOptimization
from hybridevo.locopt.config import LocalOptFactoryConfig
from hybridevo.locopt.factory import LocalOptimizationFactory
from hybridevo.locopt.population import PopulationView, SortedFitnessList
from hybridevo.locopt.scipy_opt import ScipyLocalOptimization
from hybridevo.locopt.wrappers import (
    AbsolutePrescreeningLocalOptimization,
    ChainedLocalOptimization,
    NoLocalOptimization,
    RelativePrescreeningLocalOptimization,
)
