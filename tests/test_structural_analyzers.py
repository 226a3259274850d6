"""Tests for the structural analyzers (exports, shapes, hooks, markup, control flow, ...)."""

from dataclasses import replace

from conftest import run_analyzer

from semdiff.analyzers import (
    ArrayMutationAnalyzer,
    ClassAnalyzer,
    ComparisonOperatorAnalyzer,
    ConditionalAnalyzer,
    DestructuringAnalyzer,
    ExportAnalyzer,
    FileComplexityAnalyzer,
    HookAnalyzer,
    InterfaceAnalyzer,
    JsxAnalyzer,
    LogicalOperatorAnalyzer,
    LoopAnalyzer,
    ObjectMutationAnalyzer,
    PromiseAnalyzer,
    SpreadAnalyzer,
    StateManagementAnalyzer,
    TernaryAnalyzer,
    ThrowAnalyzer,
    TryCatchAnalyzer,
    VariableAnalyzer,
    VariableAssignmentAnalyzer,
    get_default_analyzers,
)
from semdiff.config import DEFAULT_CONFIG, JsxConfig
from semdiff.kinds import ChangeKind, Severity


def _kinds(records):
    return [r.kind for r in records]


class TestRegistry:
    def test_names_are_unique(self):
        names = [a.name for a in get_default_analyzers()]
        assert len(names) == len(set(names))

    def test_core_first(self):
        names = [a.name for a in get_default_analyzers()]
        assert names[:4] == ["functions", "calls", "types", "imports"]


class TestExports:
    analyzer = ExportAnalyzer()

    def test_added_and_removed(self):
        records = run_analyzer(
            self.analyzer, "export function a() {}\n", "export function b() {}\n"
        )
        by_kind = {r.kind: r for r in records}
        assert by_kind[ChangeKind.EXPORT_ADDED].detail == "Export added: b (function)"
        assert by_kind[ChangeKind.EXPORT_REMOVED].severity is Severity.HIGH

    def test_kind_change(self):
        [record] = run_analyzer(
            self.analyzer, "export const a = () => 1;\n", "export function a() {}\n"
        )
        assert record.kind is ChangeKind.EXPORT_SIGNATURE_CHANGED
        assert record.context == "variable -> function"

    def test_variable_type_change(self):
        [record] = run_analyzer(
            self.analyzer, "export const limit: number = 1;\n", "export const limit: string = '1';\n"
        )
        assert record.detail == "Export signature changed: limit (number -> string)"
        assert record.severity is Severity.MEDIUM


class TestShapes:
    def test_class_changes(self):
        base = "class A extends B {\n  run() {}\n}\n"
        head = "class A extends C {\n  run() {}\n  stop() {}\n  count = 0;\n}\nclass D {}\n"
        records = run_analyzer(ClassAnalyzer(), base, head)
        details = {r.detail for r in records}
        assert "Class inheritance changed: A" in details
        assert "Method added to class: A.stop" in details
        assert "Property added to class: A.count" in details
        assert "Class added: D" in details

    def test_interface_changes(self):
        base = "interface I { a: string }\n"
        head = "interface I { a: number; b: string; go(): void }\n"
        records = run_analyzer(InterfaceAnalyzer(), base, head)
        by_detail = {r.detail: r.severity for r in records}
        assert by_detail["Property type changed in interface: I.a"] is Severity.HIGH
        assert by_detail["Property added to interface: I.b"] is Severity.MEDIUM
        assert by_detail["Method added to interface: I.go"] is Severity.HIGH

    def test_variables(self):
        base = "let a: number = 1;\n"
        head = "let a: string = '1';\nconst b = 2;\n"
        records = run_analyzer(VariableAnalyzer(), base, head)
        assert sorted(r.detail for r in records) == ["Variable added: b", "Variable type changed: a"]


class TestHooks:
    analyzer = HookAnalyzer()

    def test_effect_added_and_removed(self):
        base = "function C() {\n  useEffect(() => {}, [a]);\n  return null;\n}\n"
        head = "function C() {\n  return null;\n}\n"
        [removed] = run_analyzer(self.analyzer, base, head, path="c.tsx")
        assert removed.kind is ChangeKind.EFFECT_REMOVED
        assert removed.context == "dependencies were [a]"
        [added] = run_analyzer(self.analyzer, head, base, path="c.tsx")
        assert added.kind is ChangeKind.EFFECT_ADDED

    def test_custom_hook(self):
        records = run_analyzer(self.analyzer, "", "useTheme();\n", path="c.tsx")
        assert [r.detail for r in records] == ["React hook added: useTheme"]

    def test_dependency_order_is_not_a_change(self):
        base = "useMemo(() => a + b, [a, b]);\n"
        head = "useMemo(() => a + b, [b, a]);\n"
        assert run_analyzer(self.analyzer, base, head, path="c.tsx") == []

    def test_extra_state_hook_is_not_a_hook_addition(self):
        base = "function C() {\n  const [a] = useState(1);\n}\n"
        head = "function C() {\n  const [a] = useState(1);\n  const [b] = useState(2);\n}\n"
        assert run_analyzer(self.analyzer, base, head, path="c.tsx") == []

    def test_state_management(self):
        base = "function C() {\n  const [a] = useState(1);\n}\n"
        head = "function C() {\n  const [a] = useState(1);\n  const [b] = useState(2);\n}\n"
        [record] = run_analyzer(StateManagementAnalyzer(), base, head, path="c.tsx")
        assert record.detail == "State management hooks changed: useState: 1 -> 2"
        assert record.start_line == 2


class TestJsx:
    analyzer = JsxAnalyzer()

    def test_props_changed(self):
        base = "const a = <Button size=\"s\" />;\n"
        head = "const a = <Button size=\"l\" />;\n"
        [record] = run_analyzer(self.analyzer, base, head, path="a.tsx")
        assert record.kind is ChangeKind.JSX_PROPS_CHANGED
        assert record.context == 'size="s" -> size="l"'

    def test_component_reference_changed(self):
        base = "const a = <PrimaryButton onClick={go} />;\n"
        head = "const a = <SecondaryButton onClick={go} />;\n"
        [record] = run_analyzer(self.analyzer, base, head, path="a.tsx")
        assert record.detail == "Component reference changed: PrimaryButton -> SecondaryButton"

    def test_elements_added_and_removed(self):
        base = "const a = <div><span /></div>;\n"
        head = "const a = <div><em /></div>;\n"
        records = run_analyzer(self.analyzer, base, head, path="a.tsx")
        assert set(_kinds(records)) == {ChangeKind.JSX_ELEMENT_ADDED, ChangeKind.JSX_ELEMENT_REMOVED}

    def test_component_children(self):
        base = "const a = <Card />;\n"
        head = "const a = <Card>hello</Card>;\n"
        records = run_analyzer(self.analyzer, base, head, path="a.tsx")
        assert ChangeKind.COMPONENT_STRUCTURE_CHANGED in _kinds(records)

    def test_logic_ignored_by_default(self):
        base = "const a = <div>{x}</div>;\n"
        head = "const a = <div>{ready && x}</div>;\n"
        assert run_analyzer(self.analyzer, base, head, path="a.tsx") == []

    def test_logic_reported_when_enabled(self):
        config = replace(DEFAULT_CONFIG, jsx=JsxConfig(ignore_logic_changes=False))
        base = "const a = <div>{x}</div>;\n"
        head = "const a = <div>{ready && x}</div>;\n"
        records = run_analyzer(self.analyzer, base, head, path="a.tsx", config=config)
        assert _kinds(records) == [ChangeKind.JSX_LOGIC_ADDED]

    def test_event_handler_changed(self):
        config = replace(DEFAULT_CONFIG, jsx=JsxConfig(ignore_logic_changes=False))
        base = "const a = <button onClick={save}>s</button>;\n"
        head = "const a = <button onClick={submit}>s</button>;\n"
        records = run_analyzer(self.analyzer, base, head, path="a.tsx", config=config)
        assert ChangeKind.EVENT_HANDLER_CHANGED in _kinds(records)

    def test_disabled(self):
        config = replace(DEFAULT_CONFIG, jsx=JsxConfig(enabled=False))
        records = run_analyzer(
            self.analyzer, "const a = <b />;\n", "const a = <i />;\n", path="a.tsx", config=config
        )
        assert records == []


class TestControlFlow:
    def test_conditional_modified(self):
        base = "function f(a) {\n  if (a > 1) {\n    go();\n  }\n}\n"
        head = "function f(a) {\n  if (a >= 1) {\n    go();\n  }\n}\n"
        [record] = run_analyzer(ConditionalAnalyzer(), base, head)
        assert record.kind is ChangeKind.CONDITIONAL_MODIFIED
        assert record.detail == "Conditional modified in f: a>1 -> a>=1"

    def test_conditional_added_and_removed(self):
        base = "function f(a) {\n  if (a) {\n    x();\n  }\n}\n"
        head = "function f(a) {\n  if (b) {\n    y();\n  }\n}\n"
        records = run_analyzer(ConditionalAnalyzer(), base, head)
        assert set(_kinds(records)) == {ChangeKind.CONDITIONAL_ADDED, ChangeKind.CONDITIONAL_REMOVED}

    def test_moved_loop_is_not_a_change(self):
        base = "for (const x of xs) { use(x); }\n"
        head = "\n\nfor (const x of xs) { use(x); }\n"
        assert run_analyzer(LoopAnalyzer(), base, head) == []

    def test_loop_modified_added_removed(self):
        base = "while (a) { step(); }\n"
        head = "while (a) { step(); step(); }\ndo { tick(); } while (b);\n"
        records = run_analyzer(LoopAnalyzer(), base, head)
        assert sorted(r.detail for r in records) == ["Loop added: do...while", "Loop modified: while"]
        records = run_analyzer(LoopAnalyzer(), "while (a) {}\n", "")
        assert [r.detail for r in records] == ["Loop removed: while"]

    def test_ternary(self):
        records = run_analyzer(TernaryAnalyzer(), "const v = a;\n", "const v = a ? 1 : 2;\n")
        assert [r.detail for r in records] == ["Ternary expression added: condition a"]

    def test_comparison_operator(self):
        [record] = run_analyzer(ComparisonOperatorAnalyzer(), "ok = a == b;\n", "ok = a === b;\n")
        assert record.detail == "Comparison operator changed from == to === between a and b"

    def test_logical_operator(self):
        [record] = run_analyzer(LogicalOperatorAnalyzer(), "v = a || b;\n", "v = a ?? b;\n")
        assert record.kind is ChangeKind.LOGICAL_OPERATOR_CHANGED

    def test_operator_with_other_operands_is_silent(self):
        assert run_analyzer(ComparisonOperatorAnalyzer(), "ok = a == b;\n", "ok = a === c;\n") == []


class TestErrorHandling:
    def test_throw_added_and_removed(self):
        base = "function f() {\n  throw new Error('a');\n}\n"
        head = "function f() {\n  log();\n  throw new TypeError('b');\n}\n"
        records = run_analyzer(ThrowAnalyzer(), base, head)
        assert sorted(r.detail for r in records) == [
            "Throw added: new TypeError('b')",
            "Throw removed: new Error('a')",
        ]

    def test_try_catch(self):
        base = "try { a(); } catch (e) { log(e); }\n"
        head = "try { a(); } catch (e) { report(e); }\ntry { b(); } finally { c(); }\n"
        records = run_analyzer(TryCatchAnalyzer(), base, head)
        assert sorted(r.detail for r in records) == ["try/catch block added", "try/catch block modified"]


class TestDataFlow:
    def test_array_mutation_beyond_base_count(self):
        base = "items.push(a);\n"
        head = "items.push(a);\nitems.push(b);\nother.sort();\n"
        records = run_analyzer(ArrayMutationAnalyzer(), base, head)
        assert sorted(r.detail for r in records) == [
            "Array mutation added via items.push()",
            "Array mutation added via other.sort()",
        ]

    def test_object_mutation(self):
        records = run_analyzer(ObjectMutationAnalyzer(), "", "user.name = 'x';\n")
        assert [r.detail for r in records] == ["Object property mutated: user.name"]

    def test_destructuring(self):
        records = run_analyzer(
            DestructuringAnalyzer(), "const { a } = props;\n", "const { a, b } = props;\n"
        )
        assert set(_kinds(records)) == {ChangeKind.DESTRUCTURING_ADDED, ChangeKind.DESTRUCTURING_REMOVED}

    def test_reassignment(self):
        base = "let a;\na = 1;\n"
        head = "let a;\na = 2;\n"
        [record] = run_analyzer(VariableAssignmentAnalyzer(), base, head)
        assert record.detail == "Assignment updated for a: 1 -> 2"

    def test_promise_return(self):
        base = "function f() {\n  return value;\n}\n"
        head = "function f() {\n  return Promise.resolve(value);\n}\n"
        [record] = run_analyzer(PromiseAnalyzer(), base, head)
        assert record.kind is ChangeKind.PROMISE_ADDED
        [record] = run_analyzer(PromiseAnalyzer(), head, base)
        assert record.kind is ChangeKind.PROMISE_REMOVED


class TestComplexity:
    def test_spreads(self):
        records = run_analyzer(SpreadAnalyzer(), "f(...a);\n", "f(...b);\nconst o = { ...c };\n")
        assert sorted(r.detail for r in records) == [
            "Spread operator added: ...b",
            "Spread operator added: {...c}",
            "Spread operator removed: ...a",
        ]

    def test_file_complexity_increase_only(self):
        simple = "function f(a) { return a; }\n"
        branchy = "function f(a) {\n" + "".join(f"  if (a === {i}) return {i};\n" for i in range(8)) + "}\n"
        [record] = run_analyzer(FileComplexityAnalyzer(), simple, branchy)
        assert record.is_file_level
        assert record.severity is Severity.MEDIUM
        assert run_analyzer(FileComplexityAnalyzer(), branchy, simple) == []
