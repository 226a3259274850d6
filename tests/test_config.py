"""Tests for configuration loading and validation."""

import os

import pytest

from semdiff.config import (
    DEFAULT_CONFIG,
    AnalyzerConfig,
    ChangeKindGroups,
    JsxConfig,
    build_config,
    load_config,
)
from semdiff.exceptions import ConfigFileError, ConfigurationError, InvalidConfigError
from semdiff.kinds import ChangeKind, Severity


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with an empty home and working directory and no SEMDIFF_* variables."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("SEMDIFF_"):
            monkeypatch.delenv(key)
    return work


class TestDefaults:
    def test_default_values(self):
        assert DEFAULT_CONFIG.timeout_ms == 120_000
        assert DEFAULT_CONFIG.timeout_seconds == 120.0
        assert DEFAULT_CONFIG.workers is None
        assert "**/*.tsx" in DEFAULT_CONFIG.include
        assert "node_modules/**" in DEFAULT_CONFIG.exclude
        assert DEFAULT_CONFIG.change_kind_groups.disabled == ("jsx-logic",)

    def test_lists_become_tuples(self):
        config = AnalyzerConfig(include=["**/*.ts"])
        assert config.include == ("**/*.ts",)

    def test_severity_overrides_are_parsed(self):
        config = AnalyzerConfig(severity_overrides={"importAdded": "HIGH"})
        assert config.severity_overrides == {ChangeKind.IMPORT_ADDED: Severity.HIGH}


class TestValidation:
    def test_timeout_must_be_positive(self):
        with pytest.raises(InvalidConfigError):
            AnalyzerConfig(timeout_ms=0)

    def test_workers_must_be_positive(self):
        with pytest.raises(InvalidConfigError):
            AnalyzerConfig(workers=0)

    def test_unknown_change_kind(self):
        with pytest.raises(InvalidConfigError):
            AnalyzerConfig(disabled_change_kinds=["somethingNew"])

    def test_unknown_severity(self):
        with pytest.raises(InvalidConfigError):
            AnalyzerConfig(severity_overrides={"importAdded": "critical"})

    def test_unknown_group(self):
        with pytest.raises(InvalidConfigError):
            ChangeKindGroups(disabled=["not-a-group"])

    def test_handler_threshold(self):
        with pytest.raises(InvalidConfigError):
            JsxConfig(event_handler_complexity_threshold=0)

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            build_config({"no_such_option": 1})

    def test_unknown_nested_key(self):
        with pytest.raises(ConfigurationError):
            build_config({"jsx": {"no_such_option": True}})

    def test_nested_section_must_be_table(self):
        with pytest.raises(InvalidConfigError):
            build_config({"jsx": "yes"})


class TestLoadConfig:
    def test_no_sources_gives_defaults(self, isolated):
        assert load_config() == DEFAULT_CONFIG

    def test_project_file(self, isolated):
        (isolated / "semdiff.toml").write_text(
            'timeout_ms = 5000\n[jsx]\ntreat_as_low_severity = true\n'
        )
        config = load_config()
        assert config.timeout_ms == 5000
        assert config.jsx.treat_as_low_severity is True
        assert config.jsx.enabled is True

    def test_explicit_file_overrides_project_file(self, isolated, tmp_path):
        (isolated / "semdiff.toml").write_text("timeout_ms = 5000\nworkers = 2\n")
        explicit = tmp_path / "ci.toml"
        explicit.write_text("timeout_ms = 9000\n")
        config = load_config(explicit)
        assert config.timeout_ms == 9000
        assert config.workers == 2

    def test_missing_explicit_file(self, isolated, tmp_path):
        with pytest.raises(ConfigFileError):
            load_config(tmp_path / "missing.toml")

    def test_malformed_toml(self, isolated):
        (isolated / "semdiff.toml").write_text("timeout_ms = = 1\n")
        with pytest.raises(ConfigFileError):
            load_config()

    def test_env_var(self, isolated, monkeypatch):
        monkeypatch.setenv("SEMDIFF_TIMEOUT_MS", "2500")
        monkeypatch.setenv("SEMDIFF_ENFORCE_MEMORY_LIMIT", "yes")
        config = load_config()
        assert config.timeout_ms == 2500
        assert config.enforce_memory_limit is True

    def test_invalid_env_var(self, isolated, monkeypatch):
        monkeypatch.setenv("SEMDIFF_WORKERS", "many")
        with pytest.raises(InvalidConfigError):
            load_config()

    def test_overrides_win_and_none_is_ignored(self, isolated, monkeypatch):
        monkeypatch.setenv("SEMDIFF_TIMEOUT_MS", "2500")
        config = load_config(timeout_ms=100, workers=None)
        assert config.timeout_ms == 100
        assert config.workers is None

    def test_test_requirements_table(self, isolated):
        (isolated / "semdiff.toml").write_text(
            "[test_requirements]\n"
            'always_require_tests = ["importAdded"]\n'
            'minimum_severity_for_tests = "medium"\n'
        )
        rules = load_config().test_requirements
        assert rules.always_require_tests == (ChangeKind.IMPORT_ADDED,)
        assert rules.minimum_severity_for_tests is Severity.MEDIUM
