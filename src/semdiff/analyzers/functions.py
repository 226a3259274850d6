"""Function surface: added, removed, renamed and re-signed functions.

Functions are matched by identity key (name, enclosing context, static
flag and visibility). For matched pairs the caller-visible surface is
compared: return type, per-parameter shape, destructured keys, generic
parameters, overload count and the async flag. Parameter names and
default values are not part of the surface.
"""

from __future__ import annotations

from ..heuristics import pair_by, similarity
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import FunctionSite, StructuralModel
from .base import make_record

RENAME_SIMILARITY = 0.7
COMPLEXITY_DELTA = 3


def _label(fn: FunctionSite) -> str:
    if fn.name.endswith(".constructor"):
        return "Constructor"
    if fn.context_type in ("class", "interface"):
        return "MethodDeclaration"
    return "FunctionDeclaration"


def _where(fn: FunctionSite) -> str:
    if fn.container and fn.context_type != "global":
        return f" in {fn.context_type} '{fn.container}'"
    return ""


def _generic_surface(fn: FunctionSite) -> tuple[tuple[str, str], ...]:
    return tuple((tp.constraint, tp.default) for tp in fn.type_parameters)


class FunctionSurfaceAnalyzer:
    """Diffs named functions, methods and function-valued bindings."""

    name = "functions"
    group = "core-structural"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        base_fns = [f for f in base.functions if not f.is_anonymous]
        head_fns = [f for f in head.functions if not f.is_anonymous]

        pairs, removed, added = pair_by(base_fns, head_fns, key=lambda f: f.identity)

        records: list[ChangeRecord] = []
        for b, m in pairs:
            records.extend(self._compare(b, m, params))

        if len(removed) == 1 and len(added) == 1:
            rename = self._rename(removed[0], added[0], params)
            if rename is not None:
                records.append(rename)
                return records

        for fn in removed:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_REMOVED,
                    params,
                    fn.span,
                    f"Function '{fn.name}' was removed",
                    _label(fn),
                    severity=Severity.HIGH,
                    context=fn.signature,
                )
            )
        for fn in added:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_ADDED,
                    params,
                    fn.span,
                    f"Function '{fn.name}' was added{_where(fn)}",
                    _label(fn),
                    severity=Severity.MEDIUM,
                    context=fn.signature,
                )
            )
        return records

    def _rename(self, old: FunctionSite, new: FunctionSite, params: DiffParams):
        if similarity(old.body_text, new.body_text) > RENAME_SIMILARITY:
            return make_record(
                ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                params,
                new.span,
                f"Function '{old.name}' was likely renamed to '{new.name}'",
                _label(new),
                severity=Severity.MEDIUM,
                context=f"{old.signature} -> {new.signature}",
            )
        if len(old.parameters) != len(new.parameters):
            return make_record(
                ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                params,
                new.span,
                f"Function signature changed with rename from '{old.name}' to '{new.name}'",
                _label(new),
                severity=Severity.HIGH,
                context=f"{old.signature} -> {new.signature}",
            )
        return None

    def _compare(self, b: FunctionSite, m: FunctionSite, params: DiffParams) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        label = _label(m)

        base_shape = (b.return_type, tuple(p.shape for p in b.parameters))
        head_shape = (m.return_type, tuple(p.shape for p in m.parameters))
        if base_shape != head_shape:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                    params,
                    m.span,
                    f"Function signature changed: '{m.name}'",
                    label,
                    severity=Severity.HIGH,
                    context=f"{b.signature} -> {m.signature}",
                )
            )

        records.extend(self._destructuring(b, m, params))

        if _generic_surface(b) != _generic_surface(m):
            records.append(
                make_record(
                    ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                    params,
                    m.span,
                    f"Generic constraints changed for '{m.name}'",
                    label,
                    severity=Severity.HIGH,
                    context=f"{b.signature} -> {m.signature}",
                )
            )

        if b.overloads != m.overloads:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                    params,
                    m.span,
                    f"Function overload signatures changed for '{m.name}'",
                    label,
                    severity=Severity.HIGH,
                    context=f"Overload count changed: {b.overloads} -> {m.overloads}",
                )
            )

        if not b.is_async and m.is_async:
            records.append(
                make_record(
                    ChangeKind.ASYNC_AWAIT_ADDED,
                    params,
                    m.span,
                    f"Function '{m.name}' became async",
                    label,
                    severity=Severity.MEDIUM,
                )
            )
        elif b.is_async and not m.is_async:
            records.append(
                make_record(
                    ChangeKind.ASYNC_AWAIT_REMOVED,
                    params,
                    b.span,
                    f"Function '{b.name}' is no longer async",
                    _label(b),
                    severity=Severity.MEDIUM,
                )
            )

        if abs(m.complexity - b.complexity) > COMPLEXITY_DELTA:
            records.append(
                make_record(
                    ChangeKind.FUNCTION_COMPLEXITY_CHANGED,
                    params,
                    m.span,
                    f"Complexity of '{m.name}' changed from {b.complexity} to {m.complexity}",
                    label,
                    severity=Severity.MEDIUM,
                )
            )
        return records

    def _destructuring(
        self, b: FunctionSite, m: FunctionSite, params: DiffParams
    ) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        for i, (bp, mp) in enumerate(zip(b.parameters, m.parameters)):
            if bp.destructured is None or mp.destructured is None:
                continue
            before, after = set(bp.destructured), set(mp.destructured)
            for key in sorted(before - after):
                records.append(
                    make_record(
                        ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                        params,
                        m.span,
                        f"Destructured property '{key}' removed in '{m.name}'",
                        "Parameter",
                        severity=Severity.HIGH,
                        context=f"Param {i}: key '{key}' removed",
                    )
                )
            for key in sorted(after - before):
                records.append(
                    make_record(
                        ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                        params,
                        m.span,
                        f"Destructured property '{key}' added in '{m.name}'",
                        "Parameter",
                        severity=Severity.MEDIUM,
                        context=f"Param {i}: key '{key}' added",
                    )
                )
        return records
