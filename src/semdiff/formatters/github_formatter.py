"""GitHub Actions formatter: workflow-command annotations and step outputs."""

import os
import re
from typing import Optional

from ..kinds import Severity
from ..logging_config import get_logger
from ..models import AnalysisReport, ChangeRecord
from .base import BaseFormatter

logger = get_logger(__name__)

ANNOTATION_LEVELS = {
    Severity.LOW: "notice",
    Severity.MEDIUM: "warning",
    Severity.HIGH: "error",
}

_NEWLINE = re.compile(r"\r?\n")


def escape_annotation(text: str) -> str:
    """Escape the command separator and newlines; nothing else is touched."""
    return _NEWLINE.sub("%0A", text.replace("::", "%3A%3A"))


def format_annotation(change: ChangeRecord) -> str:
    level = ANNOTATION_LEVELS[change.severity]
    return (
        f"::{level} file={change.file_path},line={change.line},"
        f"title={escape_annotation(change.kind.value)}::{escape_annotation(change.detail)}"
    )


def render_github_actions(report: AnalysisReport) -> str:
    return "\n".join(format_annotation(c) for c in report.changes)


def write_github_output(requires_tests: bool, output_path: Optional[str] = None) -> bool:
    """Append ``requires-tests=true|false`` to ``$GITHUB_OUTPUT``.

    Returns:
        True if the flag was written
    """
    path = output_path or os.environ.get("GITHUB_OUTPUT")
    if not path:
        return False
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"requires-tests={str(requires_tests).lower()}\n")
    except OSError as e:
        logger.warning(f"Cannot write GitHub output to {path}: {e}")
        return False
    return True


class GithubFormatter(BaseFormatter):
    """Output GitHub Actions ``::error`` / ``::warning`` / ``::notice`` annotations."""

    def format(self, report: AnalysisReport) -> str:
        return render_github_actions(report)
