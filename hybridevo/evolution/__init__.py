from __future__ import annotations

from hybridevo.evolution.config import ReproductionConfig
from hybridevo.evolution.darwin import Darwin, GlobalOptimization
from hybridevo.evolution.factory import GlobalOptimizationFactory
from hybridevo.evolution.fitness import CallableFitness, FitnessFunction
from hybridevo.evolution.initializer import BoundedInitializer
from hybridevo.evolution.multiple import WeightedGlobalOptimization
from hybridevo.evolution.sanity import AlwaysSane, BoundsSanityCheck, SanityCheck
from hybridevo.evolution.writer import (
    IndividualWriter,
    LoggingIndividualWriter,
    NullIndividualWriter,
)
