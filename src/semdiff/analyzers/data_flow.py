"""Destructuring declarations, reassignments and promise-valued returns."""

from __future__ import annotations

from ..heuristics import bucket_by, pair_located, pop_match
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import StructuralModel
from .base import make_record


class DestructuringAnalyzer:
    name = "destructuring"
    group = "data-flow"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        buckets = bucket_by(base.destructurings, lambda d: (d.kind, d.key))
        records: list[ChangeRecord] = []
        for site in head.destructurings:
            if pop_match(buckets, (site.kind, site.key)) is not None:
                continue
            records.append(
                make_record(
                    ChangeKind.DESTRUCTURING_ADDED,
                    params,
                    site.span,
                    f"Destructuring added: {site.pattern} from {site.initializer}",
                    "VariableDeclaration",
                )
            )
        for bucket in buckets.values():
            for site in bucket:
                records.append(
                    make_record(
                        ChangeKind.DESTRUCTURING_REMOVED,
                        params,
                        site.span,
                        f"Destructuring removed: {site.pattern} from {site.initializer}",
                        "VariableDeclaration",
                    )
                )
        return records


class VariableAssignmentAnalyzer:
    """Same assignee at the same position, new right-hand side."""

    name = "assignments"
    group = "data-flow"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        pairs, _, _ = pair_located(
            base.assignments, head.assignments, content=lambda a: (a.target, a.value)
        )
        return [
            make_record(
                ChangeKind.VARIABLE_ASSIGNMENT_CHANGED,
                params,
                after.span,
                f"Assignment updated for {after.target}: {before.value} -> {after.value}",
                "BinaryExpression",
                severity=Severity.MEDIUM,
            )
            for before, after in pairs
            if before.target == after.target and before.value != after.value
        ]


class PromiseAnalyzer:
    name = "promises"
    group = "async-patterns"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        pairs, removed, added = pair_located(
            base.returns, head.returns, content=lambda r: (r.text, r.returns_promise)
        )
        gained = [after for before, after in pairs if after.returns_promise and not before.returns_promise]
        gained += [r for r in added if r.returns_promise]
        lost = [before for before, after in pairs if before.returns_promise and not after.returns_promise]
        lost += [r for r in removed if r.returns_promise]

        records = [
            make_record(
                ChangeKind.PROMISE_ADDED,
                params,
                r.span,
                "Return value now resolves a Promise",
                "ReturnStatement",
                severity=Severity.MEDIUM,
            )
            for r in gained
        ]
        records += [
            make_record(
                ChangeKind.PROMISE_REMOVED,
                params,
                r.span,
                "Promise return removed",
                "ReturnStatement",
                severity=Severity.MEDIUM,
            )
            for r in lost
        ]
        return records
