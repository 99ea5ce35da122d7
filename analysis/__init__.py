"""Repository reference analysis: unused files and broken references."""

from .config import AnalysisConfig, load_config
from .errors import AnalysisCancelled, AnalysisInputError, ConfigError, RefcheckError
from .orchestrator import analyze
from .result import REASON_NO_REFERENCES, REASON_UNREACHABLE, AnalysisResult

__all__ = [
    "AnalysisCancelled",
    "AnalysisConfig",
    "AnalysisInputError",
    "AnalysisResult",
    "ConfigError",
    "REASON_NO_REFERENCES",
    "REASON_UNREACHABLE",
    "RefcheckError",
    "analyze",
    "load_config",
]
