"""Base formatter interface for semdiff report rendering."""

from abc import ABC, abstractmethod

from ..models import AnalysisReport


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, report: AnalysisReport) -> str:
        """Return the formatted string representation of the report."""

    def render(self, report: AnalysisReport) -> None:
        """Write the report to stdout."""
        print(self.format(report))
