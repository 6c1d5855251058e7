"""Genetic algorithm engine with composable operators and local optimization."""

__version__ = "0.1.0"
