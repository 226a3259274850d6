"""Run-level analysis: select files, fan out to workers, build the report."""

from __future__ import annotations

import functools
import time
from collections import Counter
from typing import Callable, Iterable, Optional

from .aggregator import analyze_new_file, detect_semantic_changes
from .config import DEFAULT_CONFIG, AnalyzerConfig
from .heuristics import matches_any
from .hunks import build_hunks
from .kinds import Severity
from .logging_config import get_logger
from .models import (
    AnalysisReport,
    AnalysisResult,
    AnalysisTask,
    ChangeRecord,
    ChangeTypeCount,
    FailedFile,
    FileDiffInput,
)
from .orchestrator import TaskPool
from .policy import requires_tests
from .retrieval import ContentSource, GitContentSource

logger = get_logger(__name__)

MAX_CRITICAL_CHANGES = 20

_REACT_MARKERS = ("jsx", "hook", "component")


def analyze_file_task(task: AnalysisTask, source: ContentSource) -> list[ChangeRecord]:
    """Worker handler: fetch both versions of one file and detect its changes.

    A missing base version means the file is new; a missing head version
    means it was deleted, which reports nothing.
    """
    base_text = source.get_content(task.file_path, task.base_ref)
    head_text = source.get_content(task.file_path, task.head_ref)

    if head_text is None:
        if base_text is not None:
            logger.debug(f"{task.file_path}: file deleted")
        return []
    if base_text is None:
        logger.debug(f"{task.file_path}: new file")
        return analyze_new_file(head_text, task.file_path, task.config)

    patch = source.get_patch(task.file_path, task.base_ref, task.head_ref)
    hunks = build_hunks(base_text, head_text, task.file_path, patch)
    return detect_semantic_changes(
        FileDiffInput(
            file_path=task.file_path,
            base_text=base_text,
            head_text=head_text,
            config=task.config,
            hunks=tuple(hunks),
        )
    )


def should_analyze_file(path: str, config: AnalyzerConfig) -> bool:
    return matches_any(path, config.include) and not matches_any(path, config.exclude)


def summarize(changes: list[ChangeRecord], breakdown: dict[str, int], tests_required: bool) -> str:
    if not changes:
        return "No semantic changes detected"
    return ", ".join(
        [
            f"{len(changes)} semantic changes detected",
            f"{breakdown['high']} high-severity",
            f"{breakdown['medium']} medium-severity",
            f"{breakdown['low']} low-severity",
            "Tests required" if tests_required else "No tests required",
        ]
    )


def top_change_types(changes: Iterable[ChangeRecord]) -> list[ChangeTypeCount]:
    """Per-kind counts and worst severity, most frequent first."""
    counts: dict[str, ChangeTypeCount] = {}
    for change in changes:
        entry = counts.get(change.kind.value)
        if entry is None:
            counts[change.kind.value] = ChangeTypeCount(change.kind.value, 1, change.severity)
            continue
        entry.count += 1
        if change.severity.rank > entry.max_severity.rank:
            entry.max_severity = change.severity
    return sorted(counts.values(), key=lambda t: -t.count)


def build_report(
    changes: list[ChangeRecord],
    files_analyzed: int,
    failed_files: list[FailedFile],
    analysis_time_ms: int,
    config: AnalyzerConfig,
) -> AnalysisReport:
    severity_counts = Counter(c.severity.value for c in changes)
    breakdown = {
        s.value: severity_counts.get(s.value, 0) for s in (Severity.HIGH, Severity.MEDIUM, Severity.LOW)
    }
    tests_required = requires_tests(changes, config)
    return AnalysisReport(
        requires_tests=tests_required,
        summary=summarize(changes, breakdown, tests_required),
        files_analyzed=files_analyzed,
        total_changes=len(changes),
        severity_breakdown=breakdown,
        top_change_types=top_change_types(changes),
        critical_changes=[c for c in changes if c.severity is Severity.HIGH][:MAX_CRITICAL_CHANGES],
        changes=changes,
        failed_files=failed_files,
        has_react_changes=any(
            marker in c.kind.value.lower() for c in changes for marker in _REACT_MARKERS
        ),
        analysis_time_ms=analysis_time_ms,
    )


class SemanticAnalysisRunner:
    """Analyze a set of changed files between two refs.

    Usage:
        runner = SemanticAnalysisRunner(load_config(), GitContentSource("."))
        report = runner.analyze(["src/app.tsx"], "main", "HEAD")
    """

    def __init__(
        self,
        config: AnalyzerConfig = DEFAULT_CONFIG,
        source: Optional[ContentSource] = None,
        pool_factory: Callable[..., TaskPool] = TaskPool,
    ):
        self.config = config
        self.source = source if source is not None else GitContentSource()
        self.pool_factory = pool_factory

    def _files_with_diffs(
        self, files: list[str], base_ref: str, head_ref: str, failed: list[FailedFile]
    ) -> list[str]:
        selected: list[str] = []
        for path in files:
            try:
                if self.source.has_diff(path, base_ref, head_ref):
                    selected.append(path)
                else:
                    logger.info(f"Skipping {path} (no diffs)")
            except Exception as e:
                logger.debug(f"Error checking diffs for {path}: {e}")
                failed.append(FailedFile(path, f"Diff check failed: {e}"))
        return selected

    def _make_pool(self) -> TaskPool:
        return self.pool_factory(
            functools.partial(analyze_file_task, source=self.source),
            max_workers=self.config.workers,
            timeout=self.config.timeout_seconds,
            memory_limit_mb=self.config.max_memory_mb if self.config.enforce_memory_limit else None,
        )

    def run_tasks(self, tasks: list[AnalysisTask]) -> list[AnalysisResult]:
        if not tasks:
            return []
        outcomes = self._make_pool().run(tasks, key=lambda t: t.file_path)
        return [
            AnalysisResult.success(o.key, o.payload or [])
            if o.ok
            else AnalysisResult.failure(o.key, o.error or "Unknown analysis error")
            for o in outcomes
        ]

    def analyze(self, files: Iterable[str], base_ref: str, head_ref: str) -> AnalysisReport:
        start = time.monotonic()
        files = list(files)
        logger.info(f"Comparing {base_ref} -> {head_ref} across {len(files)} files")

        candidates = [f for f in files if should_analyze_file(f, self.config)]
        logger.info(f"Filtered down to {len(candidates)} files by include/exclude rules")

        failed: list[FailedFile] = []
        with_diffs = self._files_with_diffs(candidates, base_ref, head_ref, failed)
        tasks = [AnalysisTask(path, base_ref, head_ref, self.config) for path in with_diffs]

        changes: list[ChangeRecord] = []
        files_analyzed = 0
        for result in self.run_tasks(tasks):
            if result.ok:
                logger.info(f"Analyzed {result.file_path}: {len(result.changes)} changes")
                changes.extend(result.changes)
                files_analyzed += 1
            else:
                logger.debug(f"Error analyzing {result.file_path}: {result.error}")
                failed.append(FailedFile(result.file_path, result.error or "Unknown analysis error"))

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"Analysis completed in {elapsed_ms}ms with {len(changes)} changes")
        return build_report(changes, files_analyzed, failed, elapsed_ms, self.config)
