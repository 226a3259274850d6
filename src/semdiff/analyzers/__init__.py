"""Category analyzers: each diffs two structural models into change records.

Core analyzers (functions, calls, types, imports) always run. The others
are structural analyzers that the aggregator may skip when their change
kind group is disabled.
"""

from .base import Analyzer, file_record, make_record
from .calls import CallSiteAnalyzer, SideEffectCallAnalyzer, pair_calls
from .complexity import FileComplexityAnalyzer, SpreadAnalyzer
from .control_flow import (
    ComparisonOperatorAnalyzer,
    ConditionalAnalyzer,
    LogicalOperatorAnalyzer,
    LoopAnalyzer,
    TernaryAnalyzer,
)
from .data_flow import DestructuringAnalyzer, PromiseAnalyzer, VariableAssignmentAnalyzer
from .error_handling import ThrowAnalyzer, TryCatchAnalyzer
from .exports import ExportAnalyzer
from .functions import FunctionSurfaceAnalyzer
from .hooks import HookAnalyzer, StateManagementAnalyzer
from .imports import ImportStructureAnalyzer
from .jsx import JsxAnalyzer
from .mutations import ArrayMutationAnalyzer, ObjectMutationAnalyzer
from .shapes import ClassAnalyzer, InterfaceAnalyzer, VariableAnalyzer
from .types import TypeDefinitionAnalyzer

CORE_ANALYZER_NAMES = frozenset({"functions", "calls", "types", "imports"})


def get_core_analyzers() -> list:
    return [
        FunctionSurfaceAnalyzer(),
        CallSiteAnalyzer(),
        TypeDefinitionAnalyzer(),
        ImportStructureAnalyzer(),
    ]


def get_structural_analyzers() -> list:
    """Structural analyzers in reporting order."""
    return [
        ExportAnalyzer(),
        ClassAnalyzer(),
        InterfaceAnalyzer(),
        VariableAnalyzer(),
        HookAnalyzer(),
        StateManagementAnalyzer(),
        JsxAnalyzer(),
        SideEffectCallAnalyzer(),
        ArrayMutationAnalyzer(),
        ObjectMutationAnalyzer(),
        PromiseAnalyzer(),
        TernaryAnalyzer(),
        ConditionalAnalyzer(),
        LoopAnalyzer(),
        ComparisonOperatorAnalyzer(),
        LogicalOperatorAnalyzer(),
        ThrowAnalyzer(),
        TryCatchAnalyzer(),
        DestructuringAnalyzer(),
        VariableAssignmentAnalyzer(),
        SpreadAnalyzer(),
        FileComplexityAnalyzer(),
    ]


def get_default_analyzers() -> list:
    """All analyzers, core first, in a fixed order."""
    return get_core_analyzers() + get_structural_analyzers()


__all__ = [
    "Analyzer",
    "ArrayMutationAnalyzer",
    "CallSiteAnalyzer",
    "ClassAnalyzer",
    "ComparisonOperatorAnalyzer",
    "ConditionalAnalyzer",
    "CORE_ANALYZER_NAMES",
    "DestructuringAnalyzer",
    "ExportAnalyzer",
    "FileComplexityAnalyzer",
    "FunctionSurfaceAnalyzer",
    "HookAnalyzer",
    "ImportStructureAnalyzer",
    "InterfaceAnalyzer",
    "JsxAnalyzer",
    "LogicalOperatorAnalyzer",
    "LoopAnalyzer",
    "ObjectMutationAnalyzer",
    "PromiseAnalyzer",
    "SideEffectCallAnalyzer",
    "SpreadAnalyzer",
    "StateManagementAnalyzer",
    "TernaryAnalyzer",
    "ThrowAnalyzer",
    "TryCatchAnalyzer",
    "TypeDefinitionAnalyzer",
    "VariableAnalyzer",
    "VariableAssignmentAnalyzer",
    "file_record",
    "get_core_analyzers",
    "get_default_analyzers",
    "get_structural_analyzers",
    "make_record",
    "pair_calls",
]
