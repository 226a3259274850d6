"""In-place mutation of arrays and object properties."""

from __future__ import annotations

from collections import Counter

from ..heuristics import bucket_by, pop_match
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import StructuralModel
from .base import make_record


class ArrayMutationAnalyzer:
    """Reports mutator calls (``push``, ``splice``, ...) beyond the base count per target."""

    name = "array-mutations"
    group = "data-flow"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        remaining = Counter(m.key for m in base.array_mutations)
        records: list[ChangeRecord] = []
        for mutation in head.array_mutations:
            if remaining[mutation.key] > 0:
                remaining[mutation.key] -= 1
                continue
            records.append(
                make_record(
                    ChangeKind.ARRAY_MUTATION,
                    params,
                    mutation.span,
                    f"Array mutation added via {mutation.key}()",
                    "CallExpression",
                    severity=Severity.MEDIUM,
                )
            )
        return records


class ObjectMutationAnalyzer:
    name = "object-mutations"
    group = "data-flow"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        buckets = bucket_by(base.object_mutations, lambda m: (m.target, m.operator))
        records: list[ChangeRecord] = []
        for mutation in head.object_mutations:
            if pop_match(buckets, (mutation.target, mutation.operator)) is not None:
                continue
            records.append(
                make_record(
                    ChangeKind.OBJECT_MUTATION,
                    params,
                    mutation.span,
                    f"Object property mutated: {mutation.target}",
                    "BinaryExpression",
                    severity=Severity.MEDIUM,
                )
            )
        return records
