"""Closed vocabulary of change kinds and severity levels.

Kind tags are emitted verbatim in JSON, machine lines and CI annotations,
so their string values are stable identifiers.
"""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Risk level attached to every change record."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"unknown severity '{value}' (expected low/medium/high)")


_SEVERITY_RANK = {Severity.LOW: 1, Severity.MEDIUM: 2, Severity.HIGH: 3}


class ChangeKind(str, Enum):
    """Every category of semantic change the detector can report."""

    ARRAY_MUTATION = "arrayMutation"
    ASYNC_AWAIT_ADDED = "asyncAwaitAdded"
    ASYNC_AWAIT_REMOVED = "asyncAwaitRemoved"
    CLASS_STRUCTURE_CHANGED = "classStructureChanged"
    COMPARISON_OPERATOR_CHANGED = "comparisonOperatorChanged"
    COMPONENT_REFERENCE_CHANGED = "componentReferenceChanged"
    COMPONENT_STRUCTURE_CHANGED = "componentStructureChanged"
    CONDITIONAL_ADDED = "conditionalAdded"
    CONDITIONAL_MODIFIED = "conditionalModified"
    CONDITIONAL_REMOVED = "conditionalRemoved"
    DESTRUCTURING_ADDED = "destructuringAdded"
    DESTRUCTURING_REMOVED = "destructuringRemoved"
    EFFECT_ADDED = "effectAdded"
    EFFECT_REMOVED = "effectRemoved"
    EVENT_HANDLER_CHANGED = "eventHandlerChanged"
    EXPORT_ADDED = "exportAdded"
    EXPORT_REMOVED = "exportRemoved"
    EXPORT_SIGNATURE_CHANGED = "exportSignatureChanged"
    FUNCTION_ADDED = "functionAdded"
    FUNCTION_CALL_ADDED = "functionCallAdded"
    FUNCTION_CALL_CHANGED = "functionCallChanged"
    FUNCTION_CALL_MODIFIED = "functionCallModified"
    FUNCTION_CALL_REMOVED = "functionCallRemoved"
    FUNCTION_COMPLEXITY_CHANGED = "functionComplexityChanged"
    FUNCTION_REMOVED = "functionRemoved"
    FUNCTION_SIGNATURE_CHANGED = "functionSignatureChanged"
    HOOK_ADDED = "hookAdded"
    HOOK_DEPENDENCY_CHANGED = "hookDependencyChanged"
    HOOK_REMOVED = "hookRemoved"
    IMPORT_ADDED = "importAdded"
    IMPORT_REMOVED = "importRemoved"
    IMPORT_STRUCTURE_CHANGED = "importStructureChanged"
    INTERFACE_MODIFIED = "interfaceModified"
    JSX_ELEMENT_ADDED = "jsxElementAdded"
    JSX_ELEMENT_REMOVED = "jsxElementRemoved"
    JSX_LOGIC_ADDED = "jsxLogicAdded"
    JSX_PROPS_CHANGED = "jsxPropsChanged"
    LOGICAL_OPERATOR_CHANGED = "logicalOperatorChanged"
    LOOP_ADDED = "loopAdded"
    LOOP_MODIFIED = "loopModified"
    LOOP_REMOVED = "loopRemoved"
    OBJECT_MUTATION = "objectMutation"
    PROMISE_ADDED = "promiseAdded"
    PROMISE_REMOVED = "promiseRemoved"
    SIDE_EFFECT_IMPORT_ADDED = "sideEffectImportAdded"
    SPREAD_OPERATOR_ADDED = "spreadOperatorAdded"
    SPREAD_OPERATOR_REMOVED = "spreadOperatorRemoved"
    STATE_MANAGEMENT_CHANGED = "stateManagementChanged"
    TERNARY_ADDED = "ternaryAdded"
    TERNARY_REMOVED = "ternaryRemoved"
    THROW_ADDED = "throwAdded"
    THROW_REMOVED = "throwRemoved"
    TRY_CATCH_ADDED = "tryCatchAdded"
    TRY_CATCH_MODIFIED = "tryCatchModified"
    TYPE_DEFINITION_CHANGED = "typeDefinitionChanged"
    VARIABLE_ASSIGNMENT_CHANGED = "variableAssignmentChanged"
    VARIABLE_DECLARATION_CHANGED = "variableDeclarationChanged"

    @property
    def is_removal(self) -> bool:
        """Removal kinds are anchored in the base version of the file."""
        return self.value.endswith("Removed")

    @classmethod
    def parse(cls, value: str | ChangeKind) -> ChangeKind:
        if isinstance(value, ChangeKind):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"unknown change kind '{value}'")


ALL_CHANGE_KINDS: tuple[ChangeKind, ...] = tuple(ChangeKind)
