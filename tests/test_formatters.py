"""Tests for report formatters."""

import json

import pytest

from semdiff.config import DEFAULT_CONFIG
from semdiff.formatters import (
    GithubFormatter,
    JsonFormatter,
    MachineFormatter,
    RichFormatter,
    get_formatter,
    render_console,
    render_github_actions,
    render_json,
    render_machine,
    write_github_output,
)
from semdiff.formatters.github_formatter import escape_annotation
from semdiff.formatters.machine_formatter import escape_field
from semdiff.kinds import ChangeKind, Severity
from semdiff.models import ChangeRecord, FailedFile
from semdiff.runner import build_report


@pytest.fixture
def report():
    changes = [
        ChangeRecord(
            kind=ChangeKind.HOOK_DEPENDENCY_CHANGED,
            severity=Severity.HIGH,
            file_path="src/app.tsx",
            start_line=4,
            start_column=2,
            end_line=4,
            end_column=30,
            detail="Hook dependency array changed for 'useEffect'",
            node_label="CallExpression",
            context="Before deps: [a]\nAfter deps: [a, b]",
        ),
        ChangeRecord(
            kind=ChangeKind.IMPORT_ADDED,
            severity=Severity.LOW,
            file_path="src/app.tsx",
            start_line=1,
            start_column=0,
            end_line=1,
            end_column=20,
            detail="Import added: ./util",
            node_label="ImportDeclaration",
        ),
    ]
    return build_report(changes, 1, [FailedFile("src/bad.ts", "Worker timed out after 100ms")], 42, DEFAULT_CONFIG)


class TestEscaping:
    def test_machine_fields(self):
        assert escape_field("a:b\nc\rd") == "a\\:b\\nc\\rd"
        assert escape_field(None) == ""

    def test_annotation(self):
        assert escape_annotation("a::b\nc") == "a%3A%3Ab%0Ac"
        assert escape_annotation("a:b") == "a:b"


class TestMachine:
    def test_lines(self, report):
        lines = render_machine(report).splitlines()
        assert lines[0] == "SUMMARY:true:1:2:1:0:1"
        assert lines[1] == (
            "CHANGE:src/app.tsx:4:2:high:hookDependencyChanged:"
            "Hook dependency array changed for 'useEffect':CallExpression:"
            "Before deps\\: [a]\\nAfter deps\\: [a, b]"
        )
        assert lines[2] == "CHANGE:src/app.tsx:1:0:low:importAdded:Import added\\: ./util:ImportDeclaration:"
        assert lines[3] == "FAILED:src/bad.ts:Worker timed out after 100ms"
        assert lines[4] == "PERFORMANCE:42"
        assert lines[5].startswith("CHANGETYPE:")

    def test_formatter_class(self, report):
        assert MachineFormatter().format(report) == render_machine(report)


class TestGithub:
    def test_annotations(self, report):
        first, second = render_github_actions(report).splitlines()
        assert first == (
            "::error file=src/app.tsx,line=4,title=hookDependencyChanged::"
            "Hook dependency array changed for 'useEffect'"
        )
        assert second.startswith("::notice file=src/app.tsx,line=1,")

    def test_write_output_from_env(self, tmp_path, monkeypatch):
        target = tmp_path / "out.txt"
        monkeypatch.setenv("GITHUB_OUTPUT", str(target))
        assert write_github_output(True)
        assert write_github_output(False)
        assert target.read_text() == "requires-tests=true\nrequires-tests=false\n"

    def test_write_output_without_target(self, monkeypatch):
        monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
        assert not write_github_output(True)

    def test_write_output_unwritable(self, tmp_path):
        assert not write_github_output(True, str(tmp_path / "missing" / "out.txt"))

    def test_formatter_class(self, report):
        assert GithubFormatter().format(report) == render_github_actions(report)


class TestJson:
    def test_round_trips_through_json(self, report):
        data = json.loads(render_json(report))
        assert data["requiresTests"] is True
        assert data["totalChanges"] == 2
        assert data["changes"][0]["context"].startswith("Before deps")
        assert "context" not in data["changes"][1]
        assert JsonFormatter().format(report) == render_json(report)


class TestConsole:
    def test_render(self, report):
        text = render_console(report)
        assert "Analysis Results" in text
        assert "hookDependencyChanged" in text
        assert "src/bad.ts" in text
        assert "Tests required: Yes" in text

    def test_empty_report(self):
        text = RichFormatter().format(build_report([], 0, [], 0, DEFAULT_CONFIG))
        assert "Total changes: 0" in text
        assert "Changes" not in text


class TestRegistry:
    def test_known(self):
        assert isinstance(get_formatter("json"), JsonFormatter)
        assert isinstance(get_formatter("github-actions"), GithubFormatter)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown formatter"):
            get_formatter("xml")
