"""Exceptions raised by the analysis pipeline."""


class RefcheckError(RuntimeError):
    """Base class for errors that stop an analysis run."""


class AnalysisInputError(RefcheckError):
    """Raised when the tree root cannot be analyzed at all."""


class ConfigError(RefcheckError):
    """Raised when the configuration file or values are invalid."""


class AnalysisCancelled(RefcheckError):
    """Raised when a run is cancelled before it completes."""


__all__ = ["AnalysisCancelled", "AnalysisInputError", "ConfigError", "RefcheckError"]
