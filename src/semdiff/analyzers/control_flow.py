"""Control flow: conditionals, loops, ternaries and operators."""

from __future__ import annotations

from ..heuristics import pair_by, pair_located
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import OperatorSite, StructuralModel
from .base import make_record


class ConditionalAnalyzer:
    """If statements fingerprinted by scope and branch bodies.

    Same fingerprint with another condition is a modification; the
    condition text alone never pairs two statements.
    """

    name = "conditionals"
    group = "control-flow"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        _, base_rest, head_rest = pair_by(
            list(base.conditionals),
            list(head.conditionals),
            key=lambda c: (c.fingerprint, c.condition),
        )
        pairs, removed, added = pair_by(base_rest, head_rest, key=lambda c: c.fingerprint)

        records: list[ChangeRecord] = []
        for before, after in pairs:
            records.append(
                make_record(
                    ChangeKind.CONDITIONAL_MODIFIED,
                    params,
                    after.span,
                    f"Conditional modified in {after.scope}: {before.condition} -> {after.condition}",
                    "IfStatement",
                    severity=Severity.HIGH,
                )
            )
        for site in added:
            records.append(
                make_record(
                    ChangeKind.CONDITIONAL_ADDED,
                    params,
                    site.span,
                    f"Conditional added in {site.scope}: {site.condition}",
                    "IfStatement",
                    severity=Severity.HIGH,
                )
            )
        for site in removed:
            records.append(
                make_record(
                    ChangeKind.CONDITIONAL_REMOVED,
                    params,
                    site.span,
                    f"Conditional removed from {site.scope}: {site.condition}",
                    "IfStatement",
                    severity=Severity.MEDIUM,
                )
            )
        return records


class LoopAnalyzer:
    name = "loops"
    group = "control-flow"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        pairs, removed, added = pair_located(base.loops, head.loops, content=lambda l: l.text)

        records: list[ChangeRecord] = []
        for loop in added:
            records.append(
                make_record(
                    ChangeKind.LOOP_ADDED, params, loop.span, f"Loop added: {loop.kind}", loop.node_label
                )
            )
        for _, loop in pairs:
            records.append(
                make_record(
                    ChangeKind.LOOP_MODIFIED,
                    params,
                    loop.span,
                    f"Loop modified: {loop.kind}",
                    loop.node_label,
                )
            )
        for loop in removed:
            records.append(
                make_record(
                    ChangeKind.LOOP_REMOVED,
                    params,
                    loop.span,
                    f"Loop removed: {loop.kind}",
                    loop.node_label,
                )
            )
        return records


class TernaryAnalyzer:
    name = "ternaries"
    group = "control-flow"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        _, removed, added = pair_located(
            base.ternaries, head.ternaries, content=lambda t: (t.condition, t.when_true, t.when_false)
        )
        records = [
            make_record(
                ChangeKind.TERNARY_ADDED,
                params,
                t.span,
                f"Ternary expression added: condition {t.condition}",
                "ConditionalExpression",
            )
            for t in added
        ]
        records += [
            make_record(
                ChangeKind.TERNARY_REMOVED,
                params,
                t.span,
                f"Ternary expression removed: condition {t.condition}",
                "ConditionalExpression",
            )
            for t in removed
        ]
        return records


class _OperatorAnalyzer:
    """Same operands at the same operator position, different operator."""

    category = ""
    kind = ChangeKind.COMPARISON_OPERATOR_CHANGED
    noun = ""

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        def content(op: OperatorSite) -> tuple[str, str, str]:
            return (op.operator, op.left, op.right)

        pairs, _, _ = pair_located(
            [o for o in base.operators if o.category == self.category],
            [o for o in head.operators if o.category == self.category],
            content=content,
        )
        records: list[ChangeRecord] = []
        for before, after in pairs:
            if before.operator == after.operator:
                continue
            if (before.left, before.right) != (after.left, after.right):
                continue
            records.append(
                make_record(
                    self.kind,
                    params,
                    after.span,
                    f"{self.noun} operator changed from {before.operator} to {after.operator} "
                    f"between {after.left} and {after.right}",
                    "BinaryExpression",
                    severity=Severity.MEDIUM,
                )
            )
        return records


class ComparisonOperatorAnalyzer(_OperatorAnalyzer):
    name = "comparison-operators"
    group = "control-flow"
    category = "comparison"
    kind = ChangeKind.COMPARISON_OPERATOR_CHANGED
    noun = "Comparison"


class LogicalOperatorAnalyzer(_OperatorAnalyzer):
    name = "logical-operators"
    group = "control-flow"
    category = "logical"
    kind = ChangeKind.LOGICAL_OPERATOR_CHANGED
    noun = "Logical"
