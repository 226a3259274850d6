"""Per-file change detection: run the analyzers and fold their output.

Pipeline for one file:
    1. Extract the base and head structural models
    2. Run the core analyzers, then the structural analyzers whose group
       is enabled
    3. Fall back to coarser signature checks when no signature change was found
    4. Apply the severity policy and drop disabled kinds
    5. Keep only records whose lines touch the diff hunks
    6. Deduplicate, add the inferred-signature record, sort

Usage:
    from semdiff.aggregator import detect_semantic_changes

    records = detect_semantic_changes(
        FileDiffInput("src/a.ts", base_text, head_text, config)
    )
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .analyzers import (
    CORE_ANALYZER_NAMES,
    Analyzer,
    file_record,
    get_default_analyzers,
    make_record,
)
from .config import DEFAULT_CONFIG, AnalyzerConfig
from .hunks import scope_records
from .kinds import ChangeKind, Severity
from .logging_config import get_logger
from .models import ChangeRecord, DiffParams, FileDiffInput
from .policy import apply_policy, is_group_enabled
from .scanning import StructuralExtractor, StructuralModel, dialect_for_path

logger = get_logger(__name__)

SIGNATURE_PATTERN = re.compile(r"function\s+([A-Za-z_$][\w$]*)\s*(?:<[^>]*>)?\s*\(([^)]*)\)")

INFERRED_SIGNATURE_DETAIL = "Function signature change inferred by context"
INFERRED_SIGNATURE_CONTEXT = "Heuristic fallback"

_extractor: Optional[StructuralExtractor] = None


def _get_extractor() -> StructuralExtractor:
    global _extractor
    if _extractor is None:
        _extractor = StructuralExtractor()
    return _extractor


def should_run(analyzer: Analyzer, config: AnalyzerConfig) -> bool:
    """Core analyzers always run; the rest can be skipped with their group."""
    if analyzer.name in CORE_ANALYZER_NAMES:
        return True
    if analyzer.group == "jsx-rendering" and not config.jsx.enabled:
        return False
    if analyzer.group is None or not config.performance.skip_disabled_analyzers:
        return True
    return is_group_enabled(analyzer.group, config)


# ── Signature fallbacks ────────────────────────────────────────────


def _has_signature_change(records: Iterable[ChangeRecord]) -> bool:
    return any(r.kind is ChangeKind.FUNCTION_SIGNATURE_CHANGED for r in records)


def _count_changed(
    keyed_base: dict, head_fns: Iterable, key, params: DiffParams
) -> list[ChangeRecord]:
    records: list[ChangeRecord] = []
    for fn in head_fns:
        before = keyed_base.get(key(fn))
        if before is None or len(before.parameters) == len(fn.parameters):
            continue
        records.append(
            make_record(
                ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                params,
                fn.span,
                f"Function signature changed: '{fn.name}'",
                "FunctionDeclaration",
                severity=Severity.HIGH,
                context=f"{before.signature} -> {fn.signature}",
            )
        )
    return records


def signatures_by_identity(
    base: StructuralModel, head: StructuralModel, params: DiffParams
) -> list[ChangeRecord]:
    keyed = {f.identity: f for f in base.functions if not f.is_anonymous}
    head_fns = [f for f in head.functions if not f.is_anonymous]
    return _count_changed(keyed, head_fns, lambda f: f.identity, params)


def signatures_by_name(
    base: StructuralModel, head: StructuralModel, params: DiffParams
) -> list[ChangeRecord]:
    keyed = {f.name: f for f in base.functions if not f.is_anonymous}
    head_fns = [f for f in head.functions if not f.is_anonymous]
    return _count_changed(keyed, head_fns, lambda f: f.name, params)


def _parameter_counts(text: str) -> list[tuple[str, int]]:
    counts = []
    for match in SIGNATURE_PATTERN.finditer(text):
        args = match.group(2).strip()
        counts.append((match.group(1), len(args.split(",")) if args else 0))
    return counts


def signatures_by_text(base_text: str, head_text: str, params: DiffParams) -> list[ChangeRecord]:
    """Last resort: compare comma counts of ``function name(...)`` headers."""
    base_counts = dict(_parameter_counts(base_text))
    seen: set[str] = set()
    records: list[ChangeRecord] = []
    for name, count in _parameter_counts(head_text):
        if name in seen:
            continue
        seen.add(name)
        before = base_counts.get(name)
        if before is None or before == count:
            continue
        records.append(
            file_record(
                ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                params,
                f"Function signature changed: '{name}'",
                severity=Severity.HIGH,
                context=f"Param count: {before} -> {count}",
            )
        )
    return records


def apply_signature_fallbacks(
    base: StructuralModel,
    head: StructuralModel,
    params: DiffParams,
    records: list[ChangeRecord],
) -> list[ChangeRecord]:
    """Try each tier in turn until one of them yields a signature change."""
    if _has_signature_change(records):
        return []
    fallback = signatures_by_identity(base, head, params)
    if not fallback:
        fallback = signatures_by_name(base, head, params)
    if not fallback:
        fallback = signatures_by_text(base.text, head.text, params)
    return fallback


# ── Folding ────────────────────────────────────────────────────────


def deduplicate(records: Iterable[ChangeRecord]) -> list[ChangeRecord]:
    """Collapse records with the same key, keeping the higher severity."""
    unique: dict[tuple, ChangeRecord] = {}
    for record in records:
        key = record.dedup_key
        existing = unique.get(key)
        if existing is None or record.severity.rank > existing.severity.rank:
            unique[key] = record
    return list(unique.values())


def sort_records(records: Iterable[ChangeRecord]) -> list[ChangeRecord]:
    return sorted(records, key=lambda r: (-r.severity.rank, r.start_line, r.start_column))


def _inferred_signature_record(params: DiffParams) -> list[ChangeRecord]:
    record = file_record(
        ChangeKind.FUNCTION_SIGNATURE_CHANGED,
        params,
        INFERRED_SIGNATURE_DETAIL,
        severity=Severity.HIGH,
        context=INFERRED_SIGNATURE_CONTEXT,
    )
    return apply_policy([record], params.config)


def run_analyzers(
    base: StructuralModel,
    head: StructuralModel,
    params: DiffParams,
    analyzers: Optional[list[Analyzer]] = None,
) -> tuple[list[ChangeRecord], list[ChangeRecord]]:
    """Run every applicable analyzer.

    Returns:
        (records from the function analyzer, records from everything else)
    """
    function_records: list[ChangeRecord] = []
    other_records: list[ChangeRecord] = []
    for analyzer in analyzers if analyzers is not None else get_default_analyzers():
        if not should_run(analyzer, params.config):
            logger.debug(f"Skipping analyzer {analyzer.name} (group disabled)")
            continue
        produced = analyzer.diff(base, head, params)
        if analyzer.name == "functions":
            function_records.extend(produced)
        else:
            other_records.extend(produced)
    return function_records, other_records


def _detect(params: FileDiffInput, analyzers: Optional[list[Analyzer]]) -> list[ChangeRecord]:
    dialect = dialect_for_path(params.file_path)
    extractor = _get_extractor()
    base = extractor.extract(params.base_text, dialect)
    head = extractor.extract(params.head_text, dialect)
    diff_params = DiffParams(file_path=params.file_path, config=params.config)

    function_records, other_records = run_analyzers(base, head, diff_params, analyzers)
    function_records += apply_signature_fallbacks(base, head, diff_params, function_records)

    records = apply_policy(function_records + other_records, params.config)
    records = scope_records(records, params.hunks)
    records = deduplicate(records)

    other_keys = {r.dedup_key for r in other_records}
    if not _has_signature_change(records) and any(r.dedup_key in other_keys for r in records):
        records += _inferred_signature_record(diff_params)

    return sort_records(records)


def detect_semantic_changes(
    params: FileDiffInput, analyzers: Optional[list[Analyzer]] = None
) -> list[ChangeRecord]:
    """Detect semantic changes between the two versions of one file.

    Never raises: any failure is logged at DEBUG and yields no records.
    """
    try:
        return _detect(params, analyzers)
    except Exception as e:
        logger.debug(f"Change detection failed for {params.file_path}: {e}", exc_info=True)
        return []


def analyze_new_file(
    text: str, path: str, config: AnalyzerConfig = DEFAULT_CONFIG
) -> list[ChangeRecord]:
    """Summarize a file with no base version: its exports and private functions."""
    try:
        model = _get_extractor().extract(text, dialect_for_path(path))
    except Exception as e:
        logger.debug(f"New-file analysis failed for {path}: {e}")
        return []

    params = DiffParams(file_path=path, config=config)
    exported = {e.name for e in model.exports}
    records = [
        make_record(
            ChangeKind.EXPORT_ADDED,
            params,
            export.span,
            f"New export '{export.name}' added",
            "ExportDeclaration",
            severity=Severity.HIGH,
            context=f"Export type: {export.kind}",
        )
        for export in model.exports
    ]
    records += [
        make_record(
            ChangeKind.FUNCTION_ADDED,
            params,
            fn.span,
            f"New function '{fn.name}' added",
            "FunctionDeclaration",
            severity=Severity.MEDIUM,
        )
        for fn in model.functions
        if not fn.is_anonymous and fn.name not in exported
    ]
    return sort_records(apply_policy(records, config))
