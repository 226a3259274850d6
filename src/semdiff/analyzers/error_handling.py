"""Throw statements and try/catch blocks."""

from __future__ import annotations

from ..heuristics import pair_located
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import StructuralModel
from .base import make_record


def _thrown(text: str) -> str:
    return text[len("throw") :].strip().rstrip(";") if text.startswith("throw") else text


class ThrowAnalyzer:
    name = "throws"
    group = "error-handling"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        _, removed, added = pair_located(base.throws, head.throws, content=lambda t: t.text)
        records: list[ChangeRecord] = []
        for site in added:
            expression = _thrown(site.text)
            records.append(
                make_record(
                    ChangeKind.THROW_ADDED,
                    params,
                    site.span,
                    f"Throw added: {expression}" if expression else "Throw statement added",
                    "ThrowStatement",
                    severity=Severity.HIGH,
                )
            )
        for site in removed:
            expression = _thrown(site.text)
            records.append(
                make_record(
                    ChangeKind.THROW_REMOVED,
                    params,
                    site.span,
                    f"Throw removed: {expression}" if expression else "Throw statement removed",
                    "ThrowStatement",
                    severity=Severity.HIGH,
                )
            )
        return records


class TryCatchAnalyzer:
    name = "try-catch"
    group = "error-handling"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        pairs, _, added = pair_located(
            base.try_statements,
            head.try_statements,
            content=lambda t: (t.try_text, t.catch_text, t.finally_text),
        )
        records = [
            make_record(
                ChangeKind.TRY_CATCH_ADDED,
                params,
                site.span,
                "try/catch block added",
                "TryStatement",
                severity=Severity.MEDIUM,
            )
            for site in added
        ]
        records += [
            make_record(
                ChangeKind.TRY_CATCH_MODIFIED,
                params,
                after.span,
                "try/catch block modified",
                "TryStatement",
                severity=Severity.MEDIUM,
            )
            for _, after in pairs
        ]
        return records
