"""Spread usage and whole-file cyclomatic complexity."""

from __future__ import annotations

from ..heuristics import bucket_by, pop_match
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import SpreadSite, StructuralModel
from .base import file_record, make_record

FILE_COMPLEXITY_DELTA = 5


def _display(spread: SpreadSite) -> str:
    return f"{{{spread.text}}}" if spread.kind == "object" else spread.text


class SpreadAnalyzer:
    name = "spreads"
    group = "complexity"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        buckets = bucket_by(base.spreads, lambda s: s.key)
        records: list[ChangeRecord] = []
        for spread in head.spreads:
            if pop_match(buckets, spread.key) is not None:
                continue
            records.append(
                make_record(
                    ChangeKind.SPREAD_OPERATOR_ADDED,
                    params,
                    spread.span,
                    f"Spread operator added: {_display(spread)}",
                    "SpreadElement",
                )
            )
        for bucket in buckets.values():
            for spread in bucket:
                records.append(
                    make_record(
                        ChangeKind.SPREAD_OPERATOR_REMOVED,
                        params,
                        spread.span,
                        f"Spread operator removed: {_display(spread)}",
                        "SpreadElement",
                    )
                )
        return records


class FileComplexityAnalyzer:
    name = "file-complexity"
    group = "complexity"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        delta = head.complexity - base.complexity
        if delta <= FILE_COMPLEXITY_DELTA:
            return []
        return [
            file_record(
                ChangeKind.FUNCTION_COMPLEXITY_CHANGED,
                params,
                f"Overall complexity increased significantly (+{delta})",
                severity=Severity.MEDIUM,
                context=f"{base.complexity} -> {head.complexity}",
            )
        ]
