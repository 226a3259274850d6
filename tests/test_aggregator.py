"""Tests for per-file change detection (aggregator.py)."""

from dataclasses import replace

import pytest

from conftest import make_input

from semdiff.aggregator import (
    INFERRED_SIGNATURE_DETAIL,
    analyze_new_file,
    deduplicate,
    detect_semantic_changes,
    should_run,
    signatures_by_text,
    sort_records,
)
from semdiff.analyzers import CallSiteAnalyzer, HookAnalyzer, JsxAnalyzer
from semdiff.config import DEFAULT_CONFIG, JsxConfig, build_config
from semdiff.hunks import scope_records
from semdiff.kinds import ChangeKind, Severity
from semdiff.models import ChangeRecord, DiffHunk, DiffParams, LineRange


def _record(kind=ChangeKind.FUNCTION_ADDED, severity=Severity.MEDIUM, line=1, column=0, detail="x"):
    return ChangeRecord(
        kind=kind,
        severity=severity,
        file_path="a.ts",
        start_line=line,
        start_column=column,
        end_line=line,
        end_column=column + 1,
        detail=detail,
        node_label="FunctionDeclaration",
    )


def _without_inferred(records):
    return [r for r in records if r.detail != INFERRED_SIGNATURE_DETAIL]


class TestScenarios:
    """End-to-end behaviour on small, realistic edits."""

    def test_added_parameter_is_one_high_signature_change(self):
        base = "export function add(a: number, b: number): number {\n  return a + b;\n}\n"
        head = "export function add(a: number, b: number, c: number): number {\n  return a + b;\n}\n"
        records = detect_semantic_changes(make_input(base, head))
        assert len(records) == 1
        assert records[0].kind is ChangeKind.FUNCTION_SIGNATURE_CHANGED
        assert records[0].severity is Severity.HIGH
        assert records[0].detail == "Function signature changed: 'add'"

    def test_optional_chaining_spellings_are_equivalent(self):
        base = "function run(obj: any) {\n  obj?.m(1);\n}\n"
        head = "function run(obj: any) {\n  obj.m?.(1);\n}\n"
        records = detect_semantic_changes(make_input(base, head))
        call_kinds = {
            ChangeKind.FUNCTION_CALL_ADDED,
            ChangeKind.FUNCTION_CALL_REMOVED,
            ChangeKind.FUNCTION_CALL_MODIFIED,
            ChangeKind.FUNCTION_CALL_CHANGED,
        }
        assert [r for r in records if r.kind in call_kinds] == []

    def test_shadowed_dependency_outer_change_is_ignored(self):
        base = (
            "const deps = [1];\n"
            "function Widget({ a }) {\n"
            "  const deps = [a];\n"
            "  useEffect(() => {}, deps);\n"
            "  return null;\n"
            "}\n"
        )
        head = base.replace("const deps = [1];", "const deps = [1, 2];")
        assert detect_semantic_changes(make_input(base, head, path="src/widget.tsx")) == []

    def test_shadowed_dependency_inner_change_is_reported(self):
        base = (
            "const deps = [1];\n"
            "function Widget({ a, b }) {\n"
            "  const deps = [a];\n"
            "  useEffect(() => {}, deps);\n"
            "  return null;\n"
            "}\n"
        )
        head = base.replace("const deps = [a];", "const deps = [a, b];")
        records = detect_semantic_changes(make_input(base, head, path="src/widget.tsx"))
        hook_records = [r for r in records if r.kind is ChangeKind.HOOK_DEPENDENCY_CHANGED]
        assert len(hook_records) == 1
        assert hook_records[0].severity is Severity.HIGH
        assert hook_records[0].start_line == 4
        assert "[a, b]" in hook_records[0].context

    def test_rename_with_similar_body_is_one_medium_record(self):
        body = (
            "{\n"
            "  let total = 0;\n"
            "  for (const item of items) {\n"
            "    total += item.price * item.quantity;\n"
            "  }\n"
            "  return total;\n"
            "}\n"
        )
        base = "function computeTotal(items: Item[]) " + body
        head = "function calculateTotal(items: Item[]) " + body
        records = detect_semantic_changes(make_input(base, head))
        assert len(records) == 1
        assert records[0].severity is Severity.MEDIUM
        assert records[0].detail == "Function 'computeTotal' was likely renamed to 'calculateTotal'"

    @pytest.mark.parametrize(
        "base, head",
        [
            (
                "function f(a: number) {\n  return a;\n}\n",
                "// helper\nfunction f(a: number) {\n\n    return a;   \n}\n",
            ),
            ("type Status = 'a' | 'b' | 'c';\n", "type Status = 'c' | 'a' | 'b';\n"),
            (
                "import { a, b } from './mod';\nexport const x = a + b;\n",
                "import { b, a } from './mod';\nexport const x = a + b;\n",
            ),
            (
                "function g() {\n  save(item, undefined);\n}\n",
                "function g() {\n  save(item);\n}\n",
            ),
            ("type List = Array<string>;\n", "type List = string[];\n"),
        ],
        ids=["layout", "union-order", "specifier-order", "trailing-undefined", "array-spelling"],
    )
    def test_non_semantic_edits_report_nothing(self, base, head):
        assert detect_semantic_changes(make_input(base, head)) == []

    def test_identical_input_is_idempotent(self):
        base = "export function f(a: string) {\n  console.log(a);\n}\n"
        head = "export function f(a: string, b?: number) {\n  console.log(a);\n  track(b);\n}\n"
        first = detect_semantic_changes(make_input(base, head))
        second = detect_semantic_changes(make_input(base, head))
        assert first == second
        assert first

    def test_unchanged_file_reports_nothing(self):
        text = "export function f(a: string) {\n  if (a) {\n    return 1;\n  }\n  return 2;\n}\n"
        assert detect_semantic_changes(make_input(text, text)) == []


class TestInferredSignatureRecord:
    def test_added_when_only_other_categories_changed(self):
        base = "function f() {\n  return 1;\n}\n"
        head = "function f() {\n  if (flag) {\n    return 2;\n  }\n  return 1;\n}\n"
        records = detect_semantic_changes(make_input(base, head))
        inferred = [r for r in records if r.detail == INFERRED_SIGNATURE_DETAIL]
        assert len(inferred) == 1
        assert inferred[0].kind is ChangeKind.FUNCTION_SIGNATURE_CHANGED
        assert inferred[0].is_file_level
        assert any(r.kind is ChangeKind.CONDITIONAL_ADDED for r in records)

    def test_not_added_when_a_signature_change_exists(self):
        base = "function f(a: number) {\n  return a;\n}\n"
        head = "function f(a: string) {\n  if (a) {\n    return a;\n  }\n  return a;\n}\n"
        records = detect_semantic_changes(make_input(base, head))
        assert INFERRED_SIGNATURE_DETAIL not in [r.detail for r in records]

    def test_not_added_when_disabled_by_policy(self):
        config = build_config({"disabled_change_kinds": ["functionSignatureChanged"]})
        base = "function f() {\n  return 1;\n}\n"
        head = "function f() {\n  if (flag) {\n    return 2;\n  }\n  return 1;\n}\n"
        records = detect_semantic_changes(make_input(base, head, config=config))
        assert all(r.kind is not ChangeKind.FUNCTION_SIGNATURE_CHANGED for r in records)


class TestHunkScoping:
    def test_records_outside_hunks_are_dropped(self):
        base = "function a() {\n  return 1;\n}\nfunction b() {\n  return 2;\n}\n"
        head = "function a(x: number) {\n  return 1;\n}\nfunction b(y: number) {\n  return 2;\n}\n"
        hunk = DiffHunk(file="src/sample.ts", base_range=LineRange(4, 4), head_range=LineRange(4, 4))
        records = detect_semantic_changes(make_input(base, head, hunks=[hunk]))
        assert [r.detail for r in records] == ["Function signature changed: 'b'"]

    def test_removals_are_scoped_by_base_lines(self):
        base = "function keep() {}\n\n\nfunction gone() {}\n"
        head = "function keep() {}\n"
        hunk = DiffHunk(file="src/sample.ts", base_range=LineRange(2, 4), head_range=LineRange(1, 1))
        records = detect_semantic_changes(make_input(base, head, hunks=[hunk]))
        removed = [r for r in records if r.kind is ChangeKind.FUNCTION_REMOVED]
        assert len(removed) == 1
        assert removed[0].start_line == 4


class TestFolding:
    def test_deduplicate_keeps_higher_severity(self):
        low = _record(severity=Severity.LOW)
        high = _record(severity=Severity.HIGH)
        assert deduplicate([low, high]) == [high]
        assert deduplicate([high, low]) == [high]

    def test_deduplicate_keeps_distinct_details(self):
        records = [_record(detail="a"), _record(detail="b")]
        assert len(deduplicate(records)) == 2

    def test_sort_by_severity_then_position(self):
        records = [
            _record(severity=Severity.LOW, line=1),
            _record(severity=Severity.HIGH, line=9),
            _record(severity=Severity.HIGH, line=2, column=4),
            _record(severity=Severity.HIGH, line=2, column=1),
            _record(severity=Severity.MEDIUM, line=3),
        ]
        ordered = sort_records(records)
        assert [(r.severity, r.start_line, r.start_column) for r in ordered] == [
            (Severity.HIGH, 2, 1),
            (Severity.HIGH, 2, 4),
            (Severity.HIGH, 9, 0),
            (Severity.MEDIUM, 3, 0),
            (Severity.LOW, 1, 0),
        ]

    def test_hook_reports_from_two_analyzers_collapse(self):
        base = "function C({ a }) {\n  useMemo(() => a, [a]);\n  return null;\n}\n"
        head = "function C({ a }) {\n  useMemo(() => a, [a, 1]);\n  return null;\n}\n"
        records = detect_semantic_changes(
            make_input(base, head, path="c.tsx"), analyzers=[CallSiteAnalyzer(), HookAnalyzer()]
        )
        hook_records = [r for r in records if r.kind is ChangeKind.HOOK_DEPENDENCY_CHANGED]
        assert len(hook_records) == 1


class TestSignatureFallbacks:
    def test_text_scan_counts_parameters(self):
        params = DiffParams(file_path="a.ts", config=DEFAULT_CONFIG)
        records = signatures_by_text(
            "function load(a, b) {}", "function load(a, b, c) {}", params
        )
        assert len(records) == 1
        assert records[0].context == "Param count: 2 -> 3"
        assert records[0].start_line == 1

    def test_text_scan_record_survives_hunk_scoping(self):
        params = DiffParams(file_path="a.ts", config=DEFAULT_CONFIG)
        records = signatures_by_text(
            "function load(a, b) {}", "function load(a, b, c) {}", params
        )
        assert records[0].is_file_level
        hunk = DiffHunk(file="a.ts", base_range=LineRange(10, 12), head_range=LineRange(10, 12))
        assert scope_records(records, [hunk]) == records

    def test_text_scan_ignores_unchanged_counts(self):
        params = DiffParams(file_path="a.ts", config=DEFAULT_CONFIG)
        assert signatures_by_text("function f(a) {}", "function f(b) {}", params) == []


class TestShouldRun:
    def test_core_analyzers_always_run(self):
        config = build_config({"change_kind_groups": {"disabled": ["side-effects"]}})
        assert should_run(CallSiteAnalyzer(), config)

    def test_disabled_group_is_skipped(self):
        config = build_config({"change_kind_groups": {"disabled": ["react-hooks"]}})
        assert not should_run(HookAnalyzer(), config)

    def test_skip_can_be_turned_off(self):
        config = build_config(
            {
                "change_kind_groups": {"disabled": ["react-hooks"]},
                "performance": {"skip_disabled_analyzers": False},
            }
        )
        assert should_run(HookAnalyzer(), config)

    def test_markup_switch(self):
        config = replace(DEFAULT_CONFIG, jsx=JsxConfig(enabled=False))
        assert not should_run(JsxAnalyzer(), config)


class TestDetectNeverRaises:
    def test_analyzer_failure_yields_empty(self):
        class Broken:
            name = "broken"
            group = None

            def diff(self, base, head, params):
                raise RuntimeError("boom")

        records = detect_semantic_changes(make_input("a();", "b();"), analyzers=[Broken()])
        assert records == []

    def test_unparseable_text_does_not_raise(self):
        records = detect_semantic_changes(make_input("function (((", "function f(a, b) {"))
        assert isinstance(records, list)


class TestAnalyzeNewFile:
    def test_exports_and_private_functions(self):
        text = (
            "export function publicFn(a: number) {\n  return helper(a);\n}\n"
            "function helper(a: number) {\n  return a * 2;\n}\n"
        )
        records = analyze_new_file(text, "src/new.ts")
        by_kind = {r.kind: r for r in records}
        assert by_kind[ChangeKind.EXPORT_ADDED].detail == "New export 'publicFn' added"
        assert by_kind[ChangeKind.EXPORT_ADDED].severity is Severity.HIGH
        assert by_kind[ChangeKind.FUNCTION_ADDED].detail == "New function 'helper' added"
        assert records[0].kind is ChangeKind.EXPORT_ADDED

    def test_empty_file(self):
        assert analyze_new_file("", "src/empty.ts") == []
