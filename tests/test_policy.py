"""Tests for change kinds, groups, severity policy and the test gate."""

import pytest

from semdiff.config import DEFAULT_CONFIG, build_config
from semdiff.kinds import ALL_CHANGE_KINDS, ChangeKind, Severity
from semdiff.models import ChangeRecord
from semdiff.policy import (
    ALL_GROUPS,
    DEFAULT_CHANGE_SEVERITIES,
    apply_policy,
    get_change_kinds_in_group,
    get_effective_severity,
    get_group_for_change_kind,
    is_change_kind_enabled,
    is_group_enabled,
    requires_tests,
    should_require_tests_for_change,
)


def _record(kind, severity):
    return ChangeRecord(
        kind=kind,
        severity=severity,
        file_path="a.tsx",
        start_line=3,
        start_column=2,
        end_line=3,
        end_column=10,
        detail="detail",
        node_label="CallExpression",
    )


class TestKinds:
    def test_every_kind_has_a_default_severity(self):
        assert set(DEFAULT_CHANGE_SEVERITIES) == set(ALL_CHANGE_KINDS)

    def test_parse(self):
        assert ChangeKind.parse("hookAdded") is ChangeKind.HOOK_ADDED
        assert Severity.parse("High") is Severity.HIGH
        with pytest.raises(ValueError):
            ChangeKind.parse("nope")
        with pytest.raises(ValueError):
            Severity.parse("severe")

    def test_rank(self):
        assert Severity.HIGH.rank > Severity.MEDIUM.rank > Severity.LOW.rank

    def test_removal_kinds(self):
        assert ChangeKind.FUNCTION_REMOVED.is_removal
        assert ChangeKind.EFFECT_REMOVED.is_removal
        assert not ChangeKind.FUNCTION_ADDED.is_removal

    def test_kinds_belong_to_at_most_one_group(self):
        seen = {}
        for group in ALL_GROUPS:
            for kind in get_change_kinds_in_group(group):
                assert kind not in seen, f"{kind} in {seen.get(kind)} and {group}"
                seen[kind] = group

    def test_ungrouped_kind(self):
        assert get_group_for_change_kind(ChangeKind.STATE_MANAGEMENT_CHANGED) is None
        assert get_group_for_change_kind("hookAdded") == "react-hooks"
        assert get_change_kinds_in_group("unknown") == ()


class TestEnablement:
    def test_jsx_logic_disabled_by_default(self):
        assert not is_group_enabled("jsx-logic", DEFAULT_CONFIG)
        assert not is_change_kind_enabled(ChangeKind.JSX_LOGIC_ADDED, DEFAULT_CONFIG)
        assert is_change_kind_enabled(ChangeKind.HOOK_ADDED, DEFAULT_CONFIG)

    def test_allowlist(self):
        config = build_config({"change_kind_groups": {"enabled": ["react-hooks"], "disabled": []}})
        assert is_group_enabled("react-hooks", config)
        assert not is_group_enabled("control-flow", config)

    def test_empty_allowlist_enables_everything_not_disabled(self):
        config = build_config({"change_kind_groups": {"enabled": [], "disabled": ["complexity"]}})
        assert is_group_enabled("jsx-logic", config)
        assert not is_group_enabled("complexity", config)

    def test_disabled_wins_over_enabled(self):
        config = build_config(
            {"change_kind_groups": {"enabled": ["react-hooks"], "disabled": ["react-hooks"]}}
        )
        assert not is_group_enabled("react-hooks", config)

    def test_ungrouped_kind_is_enabled_unless_listed(self):
        config = build_config({"disabled_change_kinds": ["stateManagementChanged"]})
        assert is_change_kind_enabled(ChangeKind.STATE_MANAGEMENT_CHANGED, DEFAULT_CONFIG)
        assert not is_change_kind_enabled(ChangeKind.STATE_MANAGEMENT_CHANGED, config)


class TestSeverityPolicy:
    def test_effective_severity_override(self):
        config = build_config({"severity_overrides": {"importAdded": "high"}})
        assert get_effective_severity(ChangeKind.IMPORT_ADDED, config) is Severity.HIGH
        assert get_effective_severity(ChangeKind.IMPORT_ADDED, DEFAULT_CONFIG) is Severity.LOW

    def test_apply_policy_keeps_analyzer_severity(self):
        record = _record(ChangeKind.FUNCTION_CALL_ADDED, Severity.MEDIUM)
        assert apply_policy([record], DEFAULT_CONFIG) == [record]

    def test_apply_policy_override(self):
        config = build_config({"severity_overrides": {"functionCallAdded": "low"}})
        [record] = apply_policy([_record(ChangeKind.FUNCTION_CALL_ADDED, Severity.HIGH)], config)
        assert record.severity is Severity.LOW

    def test_markup_as_low(self):
        config = build_config({"jsx": {"treat_as_low_severity": True}})
        records = apply_policy(
            [
                _record(ChangeKind.COMPONENT_REFERENCE_CHANGED, Severity.MEDIUM),
                _record(ChangeKind.HOOK_ADDED, Severity.MEDIUM),
            ],
            config,
        )
        assert [r.severity for r in records] == [Severity.LOW, Severity.MEDIUM]

    def test_apply_policy_drops_disabled(self):
        records = [
            _record(ChangeKind.JSX_LOGIC_ADDED, Severity.MEDIUM),
            _record(ChangeKind.HOOK_ADDED, Severity.MEDIUM),
        ]
        assert [r.kind for r in apply_policy(records, DEFAULT_CONFIG)] == [ChangeKind.HOOK_ADDED]


class TestTestGate:
    def test_always_list(self):
        assert should_require_tests_for_change(
            ChangeKind.HOOK_DEPENDENCY_CHANGED, Severity.LOW, DEFAULT_CONFIG
        )

    def test_never_list(self):
        assert not should_require_tests_for_change(
            ChangeKind.EVENT_HANDLER_CHANGED, Severity.HIGH, DEFAULT_CONFIG
        )

    def test_high_only_by_default(self):
        assert should_require_tests_for_change(ChangeKind.LOOP_ADDED, "high", DEFAULT_CONFIG)
        assert not should_require_tests_for_change(ChangeKind.LOOP_ADDED, "medium", DEFAULT_CONFIG)

    def test_minimum_severity(self):
        config = build_config({"test_requirements": {"minimum_severity_for_tests": "medium"}})
        assert should_require_tests_for_change(ChangeKind.IMPORT_REMOVED, Severity.MEDIUM, config)
        assert not should_require_tests_for_change(ChangeKind.IMPORT_ADDED, Severity.LOW, config)

    def test_requires_tests(self):
        assert not requires_tests([], DEFAULT_CONFIG)
        assert not requires_tests([_record(ChangeKind.IMPORT_ADDED, Severity.LOW)], DEFAULT_CONFIG)
        assert requires_tests(
            [
                _record(ChangeKind.IMPORT_ADDED, Severity.LOW),
                _record(ChangeKind.CONDITIONAL_ADDED, Severity.HIGH),
            ],
            DEFAULT_CONFIG,
        )


class TestChangeRecord:
    def test_coerces_strings(self):
        record = _record("hookAdded", "medium")
        assert record.kind is ChangeKind.HOOK_ADDED
        assert record.severity is Severity.MEDIUM

    def test_rejects_inverted_span(self):
        with pytest.raises(ValueError):
            ChangeRecord(
                kind=ChangeKind.HOOK_ADDED,
                severity=Severity.LOW,
                file_path="a.ts",
                start_line=5,
                start_column=0,
                end_line=4,
                end_column=0,
                detail="d",
                node_label="CallExpression",
            )

    def test_to_dict(self):
        data = _record(ChangeKind.HOOK_ADDED, Severity.MEDIUM).to_dict()
        assert data["kind"] == "hookAdded"
        assert data["line"] == 3
        assert data["column"] == 2
        assert data["astNode"] == "CallExpression"
        assert "context" not in data
