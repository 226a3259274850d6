"""
semdiff - Semantic change classifier for TypeScript / React code review gates.

Compares the base and head versions of changed files, classifies what
changed (signatures, calls, types, imports, hooks, markup, control flow,
...) with a severity, and decides whether the change set needs tests.
"""

__version__ = "0.1.0"

from .aggregator import analyze_new_file, detect_semantic_changes
from .config import DEFAULT_CONFIG, AnalyzerConfig, load_config
from .exceptions import SemdiffError
from .kinds import ChangeKind, Severity
from .models import AnalysisReport, ChangeRecord, FileDiffInput
from .retrieval import ContentSource, GitContentSource, InMemoryContentSource
from .runner import SemanticAnalysisRunner

__all__ = [
    "AnalysisReport",
    "AnalyzerConfig",
    "ChangeKind",
    "ChangeRecord",
    "ContentSource",
    "DEFAULT_CONFIG",
    "FileDiffInput",
    "GitContentSource",
    "InMemoryContentSource",
    "SemanticAnalysisRunner",
    "SemdiffError",
    "Severity",
    "analyze_new_file",
    "detect_semantic_changes",
    "load_config",
]
