"""Colon-separated line output for sed/awk style consumers.

Line shapes:
    SUMMARY:<requires_tests>:<files>:<total>:<high>:<medium>:<low>
    CHANGE:<file>:<line>:<column>:<severity>:<kind>:<detail>:<node>:<context>
    FAILED:<file>:<error>
    PERFORMANCE:<analysis_time_ms>
    CHANGETYPE:<kind>:<count>:<max_severity>

Colons, newlines and carriage returns inside fields are backslash-escaped.
"""

from typing import Optional

from ..models import AnalysisReport
from .base import BaseFormatter

MAX_CHANGE_TYPES = 10


def escape_field(value: Optional[object]) -> str:
    if value is None:
        return ""
    return str(value).replace(":", "\\:").replace("\n", "\\n").replace("\r", "\\r")


def render_machine(report: AnalysisReport) -> str:
    breakdown = report.severity_breakdown
    lines = [
        ":".join(
            [
                "SUMMARY",
                str(report.requires_tests).lower(),
                str(report.files_analyzed),
                str(report.total_changes),
                str(breakdown.get("high", 0)),
                str(breakdown.get("medium", 0)),
                str(breakdown.get("low", 0)),
            ]
        )
    ]
    for c in report.changes:
        fields = [
            escape_field(c.file_path),
            str(c.line),
            str(c.column),
            c.severity.value,
            escape_field(c.kind.value),
            escape_field(c.detail),
            escape_field(c.node_label),
            escape_field(c.context),
        ]
        lines.append("CHANGE:" + ":".join(fields))
    for failed in report.failed_files:
        lines.append(f"FAILED:{escape_field(failed.file_path)}:{escape_field(failed.error)}")
    lines.append(f"PERFORMANCE:{report.analysis_time_ms}")
    for t in report.top_change_types[:MAX_CHANGE_TYPES]:
        lines.append(f"CHANGETYPE:{escape_field(t.kind)}:{t.count}:{t.max_severity.value}")
    return "\n".join(lines)


class MachineFormatter(BaseFormatter):
    def format(self, report: AnalysisReport) -> str:
        return render_machine(report)
