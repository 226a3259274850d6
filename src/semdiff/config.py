"""Configuration loading and management for semdiff.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in AnalyzerConfig)
    2. Global config (~/.semdiff.toml)
    3. Project config (./semdiff.toml)
    4. Explicit config file
    5. Environment variables (SEMDIFF_* prefix, scalar fields only)
    6. Keyword overrides (typically CLI flags)

Nested tables are merged key by key, so a project file that only sets
``[jsx] treat_as_low_severity = true`` keeps every other JSX default.

Example:
    >>> config = load_config(timeout_ms=30000)
    >>> config.timeout_ms
    30000
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional, get_type_hints

from .exceptions import ConfigFileError, ConfigurationError, InvalidConfigError
from .kinds import ChangeKind, Severity
from .policy import ALL_GROUPS

ENV_PREFIX = "SEMDIFF_"
PROJECT_CONFIG_NAME = "semdiff.toml"
GLOBAL_CONFIG_NAME = ".semdiff.toml"


def _as_tuple(value: Any, key: str) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    raise InvalidConfigError(key, value, "expected a list")


def _as_kinds(values: Any, key: str) -> tuple[ChangeKind, ...]:
    try:
        return tuple(ChangeKind.parse(v) for v in _as_tuple(values, key))
    except ValueError as e:
        raise InvalidConfigError(key, values, str(e))


def _as_groups(values: Any, key: str) -> tuple[str, ...]:
    groups = _as_tuple(values, key)
    unknown = [g for g in groups if g not in ALL_GROUPS]
    if unknown:
        raise InvalidConfigError(key, unknown, f"unknown group(s); known: {', '.join(ALL_GROUPS)}")
    return groups


@dataclass(frozen=True)
class ChangeKindGroups:
    """Group switches. ``disabled`` takes precedence over ``enabled``.

    A non-empty ``enabled`` list is an allowlist; an empty one enables every
    group that is not explicitly disabled.
    """

    enabled: tuple[str, ...] = tuple(g for g in ALL_GROUPS if g != "jsx-logic")
    disabled: tuple[str, ...] = ("jsx-logic",)

    def __post_init__(self) -> None:
        object.__setattr__(self, "enabled", _as_groups(self.enabled, "change_kind_groups.enabled"))
        object.__setattr__(
            self, "disabled", _as_groups(self.disabled, "change_kind_groups.disabled")
        )


@dataclass(frozen=True)
class JsxConfig:
    """Markup analysis switches."""

    enabled: bool = True
    ignore_logic_changes: bool = True
    treat_as_low_severity: bool = False
    event_handler_complexity_threshold: int = 3

    def __post_init__(self) -> None:
        if self.event_handler_complexity_threshold < 1:
            raise InvalidConfigError(
                "jsx.event_handler_complexity_threshold",
                self.event_handler_complexity_threshold,
                "must be at least 1",
            )


@dataclass(frozen=True)
class PerformanceConfig:
    skip_disabled_analyzers: bool = True
    enable_early_exit: bool = True


@dataclass(frozen=True)
class TestRequirements:
    """Which change kinds force a "tests required" verdict."""

    __test__ = False  # not a pytest test class

    always_require_tests: tuple[ChangeKind, ...] = (
        ChangeKind.FUNCTION_SIGNATURE_CHANGED,
        ChangeKind.EXPORT_REMOVED,
        ChangeKind.HOOK_DEPENDENCY_CHANGED,
        ChangeKind.CLASS_STRUCTURE_CHANGED,
    )
    never_require_tests: tuple[ChangeKind, ...] = (
        ChangeKind.JSX_LOGIC_ADDED,
        ChangeKind.EVENT_HANDLER_CHANGED,
    )
    minimum_severity_for_tests: Optional[Severity] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "always_require_tests",
            _as_kinds(self.always_require_tests, "test_requirements.always_require_tests"),
        )
        object.__setattr__(
            self,
            "never_require_tests",
            _as_kinds(self.never_require_tests, "test_requirements.never_require_tests"),
        )
        if self.minimum_severity_for_tests is not None:
            try:
                severity = Severity.parse(self.minimum_severity_for_tests)
            except ValueError as e:
                raise InvalidConfigError(
                    "test_requirements.minimum_severity_for_tests",
                    self.minimum_severity_for_tests,
                    str(e),
                )
            object.__setattr__(self, "minimum_severity_for_tests", severity)


@dataclass(frozen=True)
class AnalyzerConfig:
    """Configuration for one analysis run.

    Loaded once, merged over defaults and handed immutably to every
    analyzer invocation (and copied into every worker process).

    Attributes:
        File selection:
            include: Glob patterns a file must match to be analyzed
            exclude: Glob patterns that remove a file from analysis

        Side effects:
            side_effect_callees: Glob patterns of dotted call paths treated
                as side-effectful (``console.*``, ``fetch``, ...)
            side_effect_modules: Glob patterns of modules whose import is
                itself a side effect

        Policy:
            change_kind_groups: Group allowlist / denylist
            severity_overrides: Per-kind severity replacing the analyzer's
            disabled_change_kinds: Kinds dropped regardless of group
            test_requirements: Rules deciding the "tests required" verdict
            jsx: Markup analysis switches

        Execution:
            timeout_ms: Per-file worker timeout
            workers: Pool size (None = logical CPU count)
            max_memory_mb: Address-space cap per worker
            enforce_memory_limit: Apply ``max_memory_mb`` (POSIX only)

        CI:
            test_globs: Patterns identifying test files
            bypass_labels: Pull-request labels that waive the test gate
    """

    include: tuple[str, ...] = ("**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx")
    exclude: tuple[str, ...] = (
        "node_modules/**",
        "**/*.test.*",
        "**/*.spec.*",
        "**/*.d.ts",
        "dist/**",
        "build/**",
    )
    side_effect_callees: tuple[str, ...] = (
        "console.*",
        "fetch",
        "*.api.*",
        "*.service.*",
        "track*",
        "log*",
        "analytics.*",
        "gtag",
        "dataLayer.*",
    )
    side_effect_modules: tuple[str, ...] = ()
    test_globs: tuple[str, ...] = ("**/*.test.*", "**/*.spec.*")
    bypass_labels: tuple[str, ...] = ("skip-tests", "docs-only", "trivial")

    timeout_ms: int = 120_000
    workers: Optional[int] = None
    max_memory_mb: int = 512
    enforce_memory_limit: bool = False

    change_kind_groups: ChangeKindGroups = field(default_factory=ChangeKindGroups)
    severity_overrides: Mapping[ChangeKind, Severity] = field(default_factory=dict)
    disabled_change_kinds: tuple[ChangeKind, ...] = ()
    jsx: JsxConfig = field(default_factory=JsxConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    test_requirements: TestRequirements = field(default_factory=TestRequirements)

    def __post_init__(self) -> None:
        """Normalize list fields to tuples and validate values."""
        for name in (
            "include",
            "exclude",
            "side_effect_callees",
            "side_effect_modules",
            "test_globs",
            "bypass_labels",
        ):
            object.__setattr__(self, name, _as_tuple(getattr(self, name), name))

        object.__setattr__(
            self,
            "disabled_change_kinds",
            _as_kinds(self.disabled_change_kinds, "disabled_change_kinds"),
        )

        overrides: dict[ChangeKind, Severity] = {}
        for kind, severity in dict(self.severity_overrides).items():
            try:
                overrides[ChangeKind.parse(kind)] = Severity.parse(severity)
            except ValueError as e:
                raise InvalidConfigError(f"severity_overrides.{kind}", severity, str(e))
        object.__setattr__(self, "severity_overrides", overrides)

        if self.timeout_ms < 1:
            raise InvalidConfigError("timeout_ms", self.timeout_ms, "must be at least 1")
        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.max_memory_mb < 16:
            raise InvalidConfigError("max_memory_mb", self.max_memory_mb, "must be at least 16")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


DEFAULT_CONFIG = AnalyzerConfig()

_NESTED_SECTIONS = {
    "change_kind_groups": ChangeKindGroups,
    "jsx": JsxConfig,
    "performance": PerformanceConfig,
    "test_requirements": TestRequirements,
}


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> AnalyzerConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored

    Returns:
        Validated AnalyzerConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing, or a
            value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / GLOBAL_CONFIG_NAME
    if global_config.exists():
        _deep_merge(merged, _load_toml_file(global_config))

    project_config = Path.cwd() / PROJECT_CONFIG_NAME
    if project_config.exists():
        _deep_merge(merged, _load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigFileError(config_file, "file not found")
        _deep_merge(merged, _load_toml_file(config_file))

    _deep_merge(merged, _load_env_vars())
    _deep_merge(merged, {k: v for k, v in overrides.items() if v is not None})

    return build_config(merged)


def build_config(data: Mapping[str, Any]) -> AnalyzerConfig:
    """Build a validated config from a plain (TOML-shaped) mapping."""
    data = dict(data)
    for section, cls in _NESTED_SECTIONS.items():
        value = data.pop(section, None)
        if value is None:
            continue
        if isinstance(value, cls):
            data[section] = value
        elif isinstance(value, Mapping):
            try:
                data[section] = cls(**value)
            except TypeError as e:
                raise ConfigurationError(f"Invalid [{section}] config: {e}")
        else:
            raise InvalidConfigError(section, value, "expected a table")

    try:
        return AnalyzerConfig(**data)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _deep_merge(target: dict[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in source.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, Mapping):
            _deep_merge(existing, value)
        elif isinstance(value, Mapping):
            target[key] = _deep_merge({}, value)
        else:
            target[key] = value
    return target


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from SEMDIFF_* environment variables.

    Supported environment variables:
        SEMDIFF_TIMEOUT_MS: int
        SEMDIFF_WORKERS: int
        SEMDIFF_MAX_MEMORY_MB: int
        SEMDIFF_ENFORCE_MEMORY_LIMIT: bool (true/false/1/0)

    Returns:
        Dict of field_name -> parsed_value for any SEMDIFF_* vars found.
    """
    type_hints = get_type_hints(AnalyzerConfig)

    result: dict[str, Any] = {}

    for f in fields(AnalyzerConfig):
        env_key = f"{ENV_PREFIX}{f.name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(f.name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[f.name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns:
        Parsed value, or None for types not settable from the environment

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str:
        return value

    # Lists and nested tables are too complex for env vars
    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigFileError: If TOML support is missing or parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigFileError(
                path,
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli",
            )

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(path, str(e))
