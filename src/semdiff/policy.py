"""Configuration resolver: effective severity, enablement and test policy.

Change kinds are organised in groups that can be switched on and off as a
unit. A kind that belongs to no group is always enabled unless it is listed
in ``disabled_change_kinds``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Iterable, Optional

from .kinds import ChangeKind, Severity
from .models import ChangeRecord

if TYPE_CHECKING:
    from .config import AnalyzerConfig

K = ChangeKind

CHANGE_KIND_GROUPS: dict[str, tuple[ChangeKind, ...]] = {
    "core-structural": (
        K.FUNCTION_ADDED,
        K.FUNCTION_REMOVED,
        K.FUNCTION_SIGNATURE_CHANGED,
        K.CLASS_STRUCTURE_CHANGED,
        K.EXPORT_ADDED,
        K.EXPORT_REMOVED,
        K.EXPORT_SIGNATURE_CHANGED,
        K.INTERFACE_MODIFIED,
    ),
    "data-flow": (
        K.VARIABLE_DECLARATION_CHANGED,
        K.VARIABLE_ASSIGNMENT_CHANGED,
        K.DESTRUCTURING_ADDED,
        K.DESTRUCTURING_REMOVED,
        K.ARRAY_MUTATION,
        K.OBJECT_MUTATION,
    ),
    "control-flow": (
        K.CONDITIONAL_ADDED,
        K.CONDITIONAL_MODIFIED,
        K.CONDITIONAL_REMOVED,
        K.LOOP_ADDED,
        K.LOOP_MODIFIED,
        K.LOOP_REMOVED,
        K.LOGICAL_OPERATOR_CHANGED,
        K.COMPARISON_OPERATOR_CHANGED,
        K.TERNARY_ADDED,
        K.TERNARY_REMOVED,
    ),
    "react-hooks": (K.HOOK_ADDED, K.HOOK_REMOVED, K.HOOK_DEPENDENCY_CHANGED),
    "jsx-rendering": (
        K.JSX_ELEMENT_ADDED,
        K.JSX_ELEMENT_REMOVED,
        K.JSX_PROPS_CHANGED,
        K.COMPONENT_REFERENCE_CHANGED,
        K.COMPONENT_STRUCTURE_CHANGED,
    ),
    "jsx-logic": (K.JSX_LOGIC_ADDED, K.EVENT_HANDLER_CHANGED),
    "imports-exports": (
        K.IMPORT_ADDED,
        K.IMPORT_REMOVED,
        K.IMPORT_STRUCTURE_CHANGED,
        K.SIDE_EFFECT_IMPORT_ADDED,
    ),
    "async-patterns": (
        K.ASYNC_AWAIT_ADDED,
        K.ASYNC_AWAIT_REMOVED,
        K.PROMISE_ADDED,
        K.PROMISE_REMOVED,
        K.EFFECT_ADDED,
        K.EFFECT_REMOVED,
    ),
    "type-system": (K.TYPE_DEFINITION_CHANGED,),
    "side-effects": (
        K.FUNCTION_CALL_ADDED,
        K.FUNCTION_CALL_CHANGED,
        K.FUNCTION_CALL_MODIFIED,
        K.FUNCTION_CALL_REMOVED,
    ),
    "complexity": (
        K.FUNCTION_COMPLEXITY_CHANGED,
        K.SPREAD_OPERATOR_ADDED,
        K.SPREAD_OPERATOR_REMOVED,
    ),
    "error-handling": (K.THROW_ADDED, K.THROW_REMOVED, K.TRY_CATCH_ADDED, K.TRY_CATCH_MODIFIED),
}

ALL_GROUPS: tuple[str, ...] = tuple(CHANGE_KIND_GROUPS)

_H, _M, _L = Severity.HIGH, Severity.MEDIUM, Severity.LOW

DEFAULT_CHANGE_SEVERITIES: dict[ChangeKind, Severity] = {
    # Always worth a test
    K.FUNCTION_SIGNATURE_CHANGED: _H,
    K.EXPORT_REMOVED: _H,
    K.EXPORT_SIGNATURE_CHANGED: _H,
    K.HOOK_DEPENDENCY_CHANGED: _H,
    K.FUNCTION_CALL_ADDED: _H,
    K.CLASS_STRUCTURE_CHANGED: _H,
    K.INTERFACE_MODIFIED: _H,
    K.CONDITIONAL_ADDED: _H,
    K.CONDITIONAL_MODIFIED: _H,
    K.LOOP_ADDED: _H,
    K.LOOP_MODIFIED: _H,
    K.FUNCTION_COMPLEXITY_CHANGED: _H,
    # Usually worth a test
    K.FUNCTION_ADDED: _M,
    K.EXPORT_ADDED: _M,
    K.FUNCTION_REMOVED: _M,
    K.HOOK_ADDED: _M,
    K.HOOK_REMOVED: _M,
    K.VARIABLE_ASSIGNMENT_CHANGED: _M,
    K.ARRAY_MUTATION: _M,
    K.OBJECT_MUTATION: _M,
    K.CONDITIONAL_REMOVED: _M,
    K.LOOP_REMOVED: _M,
    K.FUNCTION_CALL_CHANGED: _M,
    K.FUNCTION_CALL_MODIFIED: _M,
    K.FUNCTION_CALL_REMOVED: _M,
    K.ASYNC_AWAIT_ADDED: _M,
    K.ASYNC_AWAIT_REMOVED: _M,
    K.PROMISE_ADDED: _M,
    K.PROMISE_REMOVED: _M,
    K.THROW_ADDED: _M,
    K.THROW_REMOVED: _M,
    K.TRY_CATCH_ADDED: _M,
    K.TRY_CATCH_MODIFIED: _M,
    K.LOGICAL_OPERATOR_CHANGED: _M,
    K.COMPARISON_OPERATOR_CHANGED: _M,
    K.TYPE_DEFINITION_CHANGED: _M,
    K.SIDE_EFFECT_IMPORT_ADDED: _M,
    K.STATE_MANAGEMENT_CHANGED: _M,
    # Often cosmetic, context dependent
    K.IMPORT_ADDED: _L,
    K.IMPORT_REMOVED: _L,
    K.IMPORT_STRUCTURE_CHANGED: _L,
    K.VARIABLE_DECLARATION_CHANGED: _L,
    K.DESTRUCTURING_ADDED: _L,
    K.DESTRUCTURING_REMOVED: _L,
    K.TERNARY_ADDED: _L,
    K.TERNARY_REMOVED: _L,
    K.SPREAD_OPERATOR_ADDED: _L,
    K.SPREAD_OPERATOR_REMOVED: _L,
    K.EFFECT_ADDED: _L,
    K.EFFECT_REMOVED: _L,
    # Markup
    K.JSX_ELEMENT_ADDED: _L,
    K.JSX_ELEMENT_REMOVED: _L,
    K.JSX_PROPS_CHANGED: _L,
    K.JSX_LOGIC_ADDED: _M,
    K.COMPONENT_REFERENCE_CHANGED: _M,
    K.COMPONENT_STRUCTURE_CHANGED: _L,
    K.EVENT_HANDLER_CHANGED: _L,
}

_GROUP_BY_KIND: dict[ChangeKind, str] = {
    kind: group for group, kinds in CHANGE_KIND_GROUPS.items() for kind in kinds
}


def get_change_kinds_in_group(group: str) -> tuple[ChangeKind, ...]:
    """Return the kinds belonging to ``group`` (empty for unknown groups)."""
    return CHANGE_KIND_GROUPS.get(group, ())


def get_group_for_change_kind(kind: ChangeKind) -> Optional[str]:
    return _GROUP_BY_KIND.get(ChangeKind.parse(kind))


def is_group_enabled(group: str, config: AnalyzerConfig) -> bool:
    """Disabled groups win; a non-empty enabled list acts as an allowlist."""
    groups = config.change_kind_groups
    if group in groups.disabled:
        return False
    if groups.enabled:
        return group in groups.enabled
    return True


def is_change_kind_enabled(kind: ChangeKind, config: AnalyzerConfig) -> bool:
    kind = ChangeKind.parse(kind)
    if kind in config.disabled_change_kinds:
        return False
    group = _GROUP_BY_KIND.get(kind)
    if group is None:
        return True
    return is_group_enabled(group, config)


def get_default_severity(kind: ChangeKind) -> Severity:
    return DEFAULT_CHANGE_SEVERITIES[ChangeKind.parse(kind)]


def get_effective_severity(kind: ChangeKind, config: AnalyzerConfig) -> Severity:
    """Severity for ``kind`` in the absence of analyzer-specific evidence."""
    kind = ChangeKind.parse(kind)
    override = config.severity_overrides.get(kind)
    if override is not None:
        return override
    return DEFAULT_CHANGE_SEVERITIES[kind]


def _is_markup_kind(kind: ChangeKind) -> bool:
    value = kind.value.lower()
    return "jsx" in value or "component" in value


def resolve_record_severity(record: ChangeRecord, config: AnalyzerConfig) -> Severity:
    """Final severity of an analyzer-produced record.

    Analyzers assign severities from the evidence they see; only an
    explicit override or the low-severity markup switch replaces them.
    """
    if config.jsx.treat_as_low_severity and _is_markup_kind(record.kind):
        return Severity.LOW
    override = config.severity_overrides.get(record.kind)
    if override is not None:
        return override
    return record.severity


def apply_policy(records: Iterable[ChangeRecord], config: AnalyzerConfig) -> list[ChangeRecord]:
    """Drop disabled kinds and apply severity rules, preserving order."""
    out: list[ChangeRecord] = []
    for record in records:
        if not is_change_kind_enabled(record.kind, config):
            continue
        severity = resolve_record_severity(record, config)
        if severity is not record.severity:
            record = replace(record, severity=severity)
        out.append(record)
    return out


def should_require_tests_for_change(
    kind: ChangeKind, severity: Severity, config: AnalyzerConfig
) -> bool:
    """Always/never lists first, then the severity floor, else high only."""
    kind = ChangeKind.parse(kind)
    rules = config.test_requirements
    if kind in rules.always_require_tests:
        return True
    if kind in rules.never_require_tests:
        return False
    if rules.minimum_severity_for_tests is not None:
        return Severity.parse(severity).rank >= rules.minimum_severity_for_tests.rank
    return Severity.parse(severity) is Severity.HIGH


def requires_tests(records: Iterable[ChangeRecord], config: AnalyzerConfig) -> bool:
    return any(should_require_tests_for_change(r.kind, r.severity, config) for r in records)
