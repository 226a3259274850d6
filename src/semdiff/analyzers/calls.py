"""Call-site and side-effect call analyzers."""

from __future__ import annotations

import re
from typing import Optional

from ..heuristics import (
    matches_any,
    multiset_equal,
    ordered_equal,
    pair_by,
    pair_unique,
    resolve_dependency_list,
    suffix_path,
)
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.extractor import HOOK_PATTERN
from ..scanning.syntax import CallSite, StructuralModel
from .base import make_record

_UNDEFINED_ARGUMENT = re.compile(r"^(?:undefined|void\s*0)$")

# Base and head calls closer than this are treated as the same site.
SIDE_EFFECT_LINE_WINDOW = 2


def _call_text(call: CallSite) -> str:
    return f"{call.callee}({', '.join(call.arguments)})"


def _label(call: CallSite) -> str:
    if call.is_new:
        return "NewExpression"
    if call.is_tagged_template:
        return "TaggedTemplateExpression"
    return "CallExpression"


def hook_dependency_detail(name: str) -> str:
    """Shared with HookAnalyzer so the two reports collapse on dedup."""
    return f"Hook dependency array changed for '{name}'"


def format_dependencies(deps: Optional[list[str]]) -> str:
    if deps is None:
        return "(none)"
    return f"[{', '.join(deps)}]"


def dependencies_of(model: StructuralModel, call: CallSite) -> Optional[list[str]]:
    """Resolved dependency list of a hook call; None when no list is passed."""
    if call.dependency_ref is None or model.source is None:
        return None
    return resolve_dependency_list(model.source, call.dependency_ref)


def pair_calls(
    base: list[CallSite], head: list[CallSite]
) -> tuple[list[tuple[CallSite, CallSite]], list[CallSite], list[CallSite]]:
    """Pair calls across versions; each call is claimed by the first pass that matches it.

    1. callee text occurring exactly once on each side
    2. normalized path (``obj?.m`` == ``obj.m?.`` == ``obj["m"]``), identical
       arguments first, then first-fit
    3. path without its leading segment with identical arguments
       (a renamed receiver)
    """
    pairs, base_rest, head_rest = pair_unique(base, head, key=lambda c: c.callee)

    more, base_rest, head_rest = pair_by(
        base_rest, head_rest, key=lambda c: (c.normalized_callee, c.arguments)
    )
    pairs += more
    more, base_rest, head_rest = pair_by(base_rest, head_rest, key=lambda c: c.normalized_callee)
    pairs += more
    more, base_rest, head_rest = pair_by(
        base_rest, head_rest, key=lambda c: (suffix_path(c.normalized_callee), c.arguments)
    )
    pairs += more
    return pairs, base_rest, head_rest


class CallSiteAnalyzer:
    """Diffs call and ``new`` expressions."""

    name = "calls"
    group = "side-effects"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        pairs, removed, added = pair_calls(list(base.calls), list(head.calls))

        records: list[ChangeRecord] = []
        for b, m in pairs:
            records.extend(self._compare(base, head, b, m, params))

        for call in removed:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_CALL_REMOVED,
                    params,
                    call.span,
                    f"Function call '{call.callee}' was removed",
                    _label(call),
                    severity=Severity.MEDIUM,
                    context=f"Removed call: {_call_text(call)}",
                )
            )
        for call in added:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_CALL_ADDED,
                    params,
                    call.span,
                    f"Function call '{call.callee}' was added",
                    _label(call),
                    severity=Severity.MEDIUM,
                    context=f"New call: {_call_text(call)}",
                )
            )
        return records

    def _compare(
        self,
        base: StructuralModel,
        head: StructuralModel,
        b: CallSite,
        m: CallSite,
        params: DiffParams,
    ) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        label = _label(m)
        name = b.callee

        if b.is_new != m.is_new:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_CALL_CHANGED,
                    params,
                    m.span,
                    f"Constructor vs function call changed for '{name}'",
                    label,
                    severity=Severity.HIGH,
                    context=(
                        f"Call kind changed: {'new ' if b.is_new else ''}{name} -> "
                        f"{'new ' if m.is_new else ''}{name}"
                    ),
                )
            )

        if HOOK_PATTERN.match(m.simple_name):
            before = dependencies_of(base, b)
            after = dependencies_of(head, m)
            if before != after:
                records.append(
                    make_record(
                        ChangeKind.HOOK_DEPENDENCY_CHANGED,
                        params,
                        m.span,
                        hook_dependency_detail(m.callee),
                        label,
                        severity=Severity.HIGH,
                        context=(
                            f"Before deps: {format_dependencies(before)}\n"
                            f"After deps: {format_dependencies(after)}"
                        ),
                    )
                )

        if (b.is_tagged_template or m.is_tagged_template) and b.template_text != m.template_text:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_CALL_MODIFIED,
                    params,
                    m.span,
                    f"Tagged template invocation changed for '{name}'",
                    label,
                    severity=Severity.MEDIUM,
                    context="Template literal contents changed",
                )
            )

        if b.argument_count == m.argument_count:
            if not ordered_equal(b.arguments, m.arguments) and multiset_equal(
                b.arguments, m.arguments
            ):
                records.append(
                    make_record(
                        ChangeKind.FUNCTION_CALL_MODIFIED,
                        params,
                        m.span,
                        f"Function call '{name}' argument order changed",
                        label,
                        severity=Severity.LOW,
                        context=f"Before: {_call_text(b)}\nAfter: {_call_text(m)}",
                    )
                )
            return records

        if b.argument_count > m.argument_count:
            tail = b.arguments[m.argument_count :]
            if all(_UNDEFINED_ARGUMENT.match(arg) for arg in tail):
                return records
            severity = Severity.HIGH
        else:
            severity = Severity.MEDIUM
        records.append(
            make_record(
                ChangeKind.FUNCTION_CALL_MODIFIED,
                params,
                m.span,
                f"Function call '{name}' argument count changed "
                f"({b.argument_count} -> {m.argument_count})",
                label,
                severity=severity,
                context=f"Before: {_call_text(b)}\nAfter: {_call_text(m)}",
            )
        )
        return records


class SideEffectCallAnalyzer:
    """New calls into configured side-effect paths (logging, network, analytics)."""

    name = "side-effects"
    group = "side-effects"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        patterns = params.config.side_effect_callees
        if not patterns:
            return []

        base_lines: dict[str, list[int]] = {}
        for call in base.calls:
            base_lines.setdefault(call.normalized_callee, []).append(call.span.start_line)

        records: list[ChangeRecord] = []
        for call in head.calls:
            path = call.normalized_callee
            if not matches_any(path, patterns):
                continue
            nearby = base_lines.get(path, ())
            if any(abs(line - call.span.start_line) <= SIDE_EFFECT_LINE_WINDOW for line in nearby):
                continue
            records.append(
                make_record(
                    ChangeKind.FUNCTION_CALL_ADDED,
                    params,
                    call.span,
                    f"Side effect call added: {path}",
                    _label(call),
                    severity=Severity.HIGH,
                    context=_call_text(call),
                )
            )
        return records
