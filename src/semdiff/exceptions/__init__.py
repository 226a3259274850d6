"""Exception hierarchy for semdiff."""

from .analysis import (
    AnalysisError,
    WorkerCrashError,
    WorkerError,
    WorkerTimeoutError,
)
from .base import SemdiffError
from .config import ConfigFileError, ConfigurationError, InvalidConfigError

__all__ = [
    "SemdiffError",
    "AnalysisError",
    "WorkerError",
    "WorkerTimeoutError",
    "WorkerCrashError",
    "ConfigurationError",
    "ConfigFileError",
    "InvalidConfigError",
]
