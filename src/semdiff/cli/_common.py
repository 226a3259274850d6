"""Shared CLI helpers."""

import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import AnalyzerConfig, load_config

console = Console()
err_console = Console(stderr=True)


def resolve_config(
    config: Optional[Path] = None,
    timeout_ms: Optional[int] = None,
    workers: Optional[int] = None,
) -> AnalyzerConfig:
    """Build the analyzer config from CLI options."""
    overrides = {}
    if timeout_ms is not None:
        overrides["timeout_ms"] = timeout_ms
    if workers is not None:
        overrides["workers"] = workers
    return load_config(config_file=config, **overrides)


def parse_file_list(files: Optional[str], read_stdin: bool) -> list[str]:
    """Comma-separated ``--files`` plus newline-separated paths from stdin."""
    paths: list[str] = []
    if files:
        paths.extend(p.strip() for p in files.split(","))
    if read_stdin:
        paths.extend(line.strip() for line in sys.stdin)
    seen: set[str] = set()
    unique: list[str] = []
    for path in paths:
        if path and path not in seen:
            seen.add(path)
            unique.append(path)
    return unique
