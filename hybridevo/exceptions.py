class HybridEvoError(Exception):
    """Base for all hybridevo exceptions."""

    pass


# High-level families
class ConfigurationError(HybridEvoError):
    """Invalid configuration detected while building components."""

    pass


class EvolutionError(HybridEvoError):
    """Evolution process failures."""

    pass


class BackendError(HybridEvoError):
    """Local-optimization backend contract violations."""

    pass


# Configuration subtypes
class OperatorConfigError(ConfigurationError):
    """Raised when an operator string cannot be translated."""

    def __init__(self, family: str, token: str, reason: str = "unknown token"):
        self.family = family
        self.token = token
        super().__init__(f"{reason} '{token}' in {family}")


class ProbabilityError(ConfigurationError):
    """Probabilities outside [0, 1] or not summing up to 1.0."""

    pass


class ScheduleConfigError(ConfigurationError):
    """Step-scheduled operator set up with inconsistent percentages."""

    pass


class LocalOptConfigError(ConfigurationError):
    """Local optimization string cannot be translated."""

    pass


# Evolution subtypes
class ScheduleExhaustedError(EvolutionError):
    """More reproduction steps were requested than the schedule anticipated."""

    pass
