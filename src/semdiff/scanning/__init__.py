"""Parsing and structural extraction for TypeScript / TSX / JavaScript sources."""

from .extractor import StructuralExtractor, cyclomatic_complexity
from .source_model import SourceModel
from .syntax import (
    ANONYMOUS,
    FILE_START,
    CallSite,
    FunctionSite,
    ImportSite,
    Span,
    StructuralModel,
    TypeSite,
)
from .treesitter_parser import DIALECTS, TreeSitterParser, dialect_for_path, get_parser

__all__ = [
    "ANONYMOUS",
    "DIALECTS",
    "FILE_START",
    "CallSite",
    "FunctionSite",
    "ImportSite",
    "SourceModel",
    "Span",
    "StructuralExtractor",
    "StructuralModel",
    "TreeSitterParser",
    "TypeSite",
    "cyclomatic_complexity",
    "dialect_for_path",
    "get_parser",
]
