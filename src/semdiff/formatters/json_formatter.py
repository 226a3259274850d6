"""JSON formatter for semdiff."""

import json

from ..models import AnalysisReport
from .base import BaseFormatter


def render_json(report: AnalysisReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


class JsonFormatter(BaseFormatter):
    """Render the report as indented JSON."""

    def format(self, report: AnalysisReport) -> str:
        return render_json(report)
