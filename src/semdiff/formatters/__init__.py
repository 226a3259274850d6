"""Output formatters for semdiff reports."""

from .base import BaseFormatter
from .github_formatter import GithubFormatter, render_github_actions, write_github_output
from .json_formatter import JsonFormatter, render_json
from .machine_formatter import MachineFormatter, render_machine
from .rich_formatter import RichFormatter, render_console

OUTPUT_FORMATS = ("console", "json", "machine", "github-actions")


def get_formatter(name: str) -> BaseFormatter:
    """Get a formatter instance by name.

    Args:
        name: One of "console", "json", "machine", "github-actions"

    Raises:
        ValueError: If name is not recognized
    """
    formatters = {
        "console": RichFormatter,
        "json": JsonFormatter,
        "machine": MachineFormatter,
        "github-actions": GithubFormatter,
    }
    cls = formatters.get(name)
    if cls is None:
        raise ValueError(f"Unknown formatter: {name!r}. Choose from: {', '.join(OUTPUT_FORMATS)}")
    return cls()


__all__ = [
    "BaseFormatter",
    "GithubFormatter",
    "JsonFormatter",
    "MachineFormatter",
    "OUTPUT_FORMATS",
    "RichFormatter",
    "get_formatter",
    "render_console",
    "render_github_actions",
    "render_json",
    "render_machine",
    "write_github_output",
]
