"""React hook usage and state management."""

from __future__ import annotations

from typing import Optional

from ..heuristics import bucket_by, pop_match
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import HookSite, StructuralModel
from .base import make_record
from .calls import dependencies_of, format_dependencies, hook_dependency_detail

_LABEL = "CallExpression"

STATE_HOOKS = ("useState", "useReducer")


def _hook_key(hook: HookSite) -> str:
    return f"{hook.hook_type}:{hook.name}"


def _unordered(deps: Optional[list[str]]) -> Optional[list[str]]:
    return None if deps is None else sorted(deps)


def _was(deps: Optional[list[str]]) -> Optional[str]:
    return f"dependencies were {format_dependencies(deps)}" if deps else None


class HookAnalyzer:
    """Pairs hooks by type and name; dependency order is not significant here."""

    name = "hooks"
    group = "react-hooks"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        buckets = bucket_by(base.hooks, _hook_key)
        base_has_state = any(h.hook_type == "useState" for h in base.hooks)

        for hook in head.hooks:
            before = pop_match(buckets, _hook_key(hook))
            if before is not None:
                old_deps = dependencies_of(base, before.call)
                new_deps = dependencies_of(head, hook.call)
                if _unordered(old_deps) != _unordered(new_deps):
                    records.append(
                        make_record(
                            ChangeKind.HOOK_DEPENDENCY_CHANGED,
                            params,
                            hook.span,
                            hook_dependency_detail(hook.name),
                            _LABEL,
                            severity=Severity.HIGH,
                            context=(
                                f"Before deps: {format_dependencies(old_deps)}\n"
                                f"After deps: {format_dependencies(new_deps)}"
                            ),
                        )
                    )
                continue

            if hook.hook_type == "useState" and base_has_state:
                continue
            if hook.hook_type == "useEffect":
                records.append(
                    make_record(
                        ChangeKind.EFFECT_ADDED,
                        params,
                        hook.span,
                        "Effect added via useEffect",
                        _LABEL,
                        severity=Severity.MEDIUM,
                    )
                )
            else:
                records.append(
                    make_record(
                        ChangeKind.HOOK_ADDED,
                        params,
                        hook.span,
                        f"React hook added: {hook.name}",
                        _LABEL,
                        severity=Severity.MEDIUM,
                    )
                )

        for bucket in buckets.values():
            for hook in bucket:
                deps = dependencies_of(base, hook.call)
                if hook.hook_type == "useEffect":
                    records.append(
                        make_record(
                            ChangeKind.EFFECT_REMOVED,
                            params,
                            hook.span,
                            "Effect removed: useEffect call missing",
                            _LABEL,
                            severity=Severity.HIGH,
                            context=_was(deps),
                        )
                    )
                else:
                    records.append(
                        make_record(
                            ChangeKind.HOOK_REMOVED,
                            params,
                            hook.span,
                            f"React hook removed: {hook.name}",
                            _LABEL,
                            severity=Severity.MEDIUM,
                            context=_was(deps),
                        )
                    )
        return records


class StateManagementAnalyzer:
    """One record when the number of state hooks changes."""

    name = "state-management"
    group = None

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        labels: list[str] = []
        anchor: Optional[HookSite] = None
        for hook_type in STATE_HOOKS:
            before = base.hooks_of_type(hook_type)
            after = head.hooks_of_type(hook_type)
            if len(before) == len(after):
                continue
            labels.append(f"{hook_type}: {len(before)} -> {len(after)}")
            anchor = after[0] if len(after) > len(before) else before[0]

        if anchor is None:
            return []
        return [
            make_record(
                ChangeKind.STATE_MANAGEMENT_CHANGED,
                params,
                anchor.span,
                f"State management hooks changed: {', '.join(labels)}",
                _LABEL,
                severity=Severity.HIGH,
            )
        ]
