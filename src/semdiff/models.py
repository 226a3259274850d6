"""Core data models shared by the analyzers, aggregator and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from .kinds import ChangeKind, Severity

if TYPE_CHECKING:
    from .config import AnalyzerConfig


# Marker for records that describe the whole file rather than a node.
FILE_LEVEL_LABEL = "SourceFile"


@dataclass(frozen=True)
class ChangeRecord:
    """One reported semantic difference.

    Lines are 1-indexed, columns 0-indexed. Removal kinds point into the
    base version, every other kind into the head version.
    """

    kind: ChangeKind
    severity: Severity
    file_path: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    detail: str
    node_label: str
    context: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ChangeKind):
            object.__setattr__(self, "kind", ChangeKind.parse(self.kind))
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, "severity", Severity.parse(self.severity))
        if (self.start_line, self.start_column) > (self.end_line, self.end_column):
            raise ValueError(
                f"change record ends before it starts: "
                f"{self.start_line}:{self.start_column} > {self.end_line}:{self.end_column}"
            )

    @property
    def line(self) -> int:
        return self.start_line

    @property
    def column(self) -> int:
        return self.start_column

    @property
    def is_file_level(self) -> bool:
        return self.node_label == FILE_LEVEL_LABEL

    @property
    def dedup_key(self) -> tuple[str, str, int, int, str]:
        return (self.file_path, self.kind.value, self.start_line, self.start_column, self.detail)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "file": self.file_path,
            "line": self.start_line,
            "column": self.start_column,
            "endLine": self.end_line,
            "endColumn": self.end_column,
            "detail": self.detail,
            "astNode": self.node_label,
        }
        if self.context is not None:
            data["context"] = self.context
        return data


@dataclass(frozen=True)
class LineRange:
    """Inclusive, 1-indexed line range."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"line range ends before it starts: {self.start} > {self.end}")

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end

    def overlaps(self, start: int, end: int) -> bool:
        return self.start <= end and start <= self.end


@dataclass(frozen=True)
class DiffLine:
    line_number: int
    content: str


@dataclass(frozen=True)
class DiffHunk:
    """A contiguous base/head line range pair from a unified diff."""

    file: str
    base_range: LineRange
    head_range: LineRange
    added_lines: tuple[DiffLine, ...] = ()
    removed_lines: tuple[DiffLine, ...] = ()


@dataclass(frozen=True)
class DiffParams:
    """Inputs shared by every analyzer invocation for one file."""

    file_path: str
    config: AnalyzerConfig


@dataclass(frozen=True)
class FileDiffInput:
    """Both versions of one file plus the hunks that scope the result."""

    file_path: str
    base_text: str
    head_text: str
    config: AnalyzerConfig
    hunks: tuple[DiffHunk, ...] = ()


@dataclass(frozen=True)
class AnalysisTask:
    """Unit of work handed to the orchestrator: one file, two refs."""

    file_path: str
    base_ref: str
    head_ref: str
    config: AnalyzerConfig


@dataclass(frozen=True)
class AnalysisResult:
    """Per-file outcome keyed back to the file that produced it."""

    status: str
    file_path: str
    changes: tuple[ChangeRecord, ...] = ()
    error: Optional[str] = None

    @classmethod
    def success(cls, file_path: str, changes: list[ChangeRecord]) -> AnalysisResult:
        return cls(status="success", file_path=file_path, changes=tuple(changes))

    @classmethod
    def failure(cls, file_path: str, error: str) -> AnalysisResult:
        return cls(status="error", file_path=file_path, error=error)

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass
class FailedFile:
    file_path: str
    error: str


@dataclass
class ChangeTypeCount:
    kind: str
    count: int
    max_severity: Severity


@dataclass
class AnalysisReport:
    """Run-level summary of every per-file result."""

    requires_tests: bool
    summary: str
    files_analyzed: int
    total_changes: int
    severity_breakdown: dict[str, int]
    top_change_types: list[ChangeTypeCount]
    critical_changes: list[ChangeRecord]
    changes: list[ChangeRecord]
    failed_files: list[FailedFile] = field(default_factory=list)
    has_react_changes: bool = False
    analysis_time_ms: int = 0

    @property
    def high_severity_changes(self) -> int:
        return self.severity_breakdown.get("high", 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "requiresTests": self.requires_tests,
            "summary": self.summary,
            "filesAnalyzed": self.files_analyzed,
            "totalChanges": self.total_changes,
            "severityBreakdown": dict(self.severity_breakdown),
            "highSeverityChanges": self.high_severity_changes,
            "topChangeTypes": [
                {"kind": t.kind, "count": t.count, "maxSeverity": t.max_severity.value}
                for t in self.top_change_types
            ],
            "criticalChanges": [c.to_dict() for c in self.critical_changes],
            "changes": [c.to_dict() for c in self.changes],
            "failedFiles": [{"filePath": f.file_path, "error": f.error} for f in self.failed_files],
            "hasReactChanges": self.has_react_changes,
            "performance": {"analysisTimeMs": self.analysis_time_ms},
        }
