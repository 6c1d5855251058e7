"""Shared numerical constants."""

# Worst-case fitness assigned to anything that did not converge.
NON_CONVERGED_FITNESS = 1.0e10

DEFAULT_PROBABILITY_TOLERANCE = 1e-3
DEFAULT_STEP_TOLERANCE = 10
