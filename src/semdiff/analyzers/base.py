"""Analyzer protocol and the record factory every analyzer uses."""

from __future__ import annotations

from typing import Optional, Protocol

from ..kinds import ChangeKind, Severity
from ..models import FILE_LEVEL_LABEL, ChangeRecord, DiffParams
from ..policy import get_default_severity
from ..scanning.syntax import FILE_START, Span, StructuralModel


class Analyzer(Protocol):
    """A category analyzer.

    ``group`` names the change-kind group the analyzer reports into; it is
    None for analyzers that run regardless of group switches.
    """

    name: str
    group: Optional[str]

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]: ...


def make_record(
    kind: ChangeKind,
    params: DiffParams,
    span: Span,
    detail: str,
    node_label: str,
    severity: Optional[Severity] = None,
    context: Optional[str] = None,
) -> ChangeRecord:
    """Build a record; severity defaults to the kind's policy default."""
    return ChangeRecord(
        kind=kind,
        severity=severity if severity is not None else get_default_severity(kind),
        file_path=params.file_path,
        start_line=span.start_line,
        start_column=span.start_column,
        end_line=span.end_line,
        end_column=span.end_column,
        detail=detail,
        node_label=node_label,
        context=context,
    )


def file_record(
    kind: ChangeKind,
    params: DiffParams,
    detail: str,
    severity: Optional[Severity] = None,
    context: Optional[str] = None,
) -> ChangeRecord:
    """A record about the file as a whole, anchored at 1:0."""
    return make_record(kind, params, FILE_START, detail, FILE_LEVEL_LABEL, severity, context)
