"""
Custom exception hierarchy for the Diagonal Hyperband Scheduler.
"""

class HyperbandError(Exception):
    """Base exception for all scheduler errors."""
    pass

class ConfigurationError(HyperbandError):
    """Configuration validation failed (R, eta, skip_last, config files)."""
    pass

class InsufficientResultsError(HyperbandError):
    """Fewer training results were available than the round requires."""
    pass

class ExternalExecutionError(HyperbandError):
    """The external Trainer call failed or broke its result contract."""
    pass

class DataValidationError(HyperbandError):
    """Training data validation failed."""
    pass
