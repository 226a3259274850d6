"""Rich terminal formatter for semdiff."""

import io

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..kinds import Severity
from ..models import AnalysisReport
from .base import BaseFormatter

MAX_LISTED_CHANGES = 50
MAX_LISTED_TYPES = 5

_SEVERITY_STYLES = {
    Severity.HIGH: "[red bold]high[/red bold]",
    Severity.MEDIUM: "[yellow]medium[/yellow]",
    Severity.LOW: "[green]low[/green]",
}


def _summary_panel(report: AnalysisReport) -> Panel:
    breakdown = report.severity_breakdown
    verdict = "[red bold]Yes[/red bold]" if report.requires_tests else "[green]No[/green]"
    body = "\n".join(
        [
            f"Files analyzed: [bold]{report.files_analyzed}[/bold]",
            f"Total changes: [bold]{report.total_changes}[/bold]",
            f"High severity: {breakdown.get('high', 0)}",
            f"Medium severity: {breakdown.get('medium', 0)}",
            f"Low severity: {breakdown.get('low', 0)}",
            f"Tests required: {verdict}",
            f"[dim]{report.analysis_time_ms}ms[/dim]",
        ]
    )
    return Panel(body, title="[bold cyan]Analysis Results[/bold cyan]", expand=False)


def _changes_table(report: AnalysisReport) -> Table:
    table = Table(title="Changes", show_lines=False)
    table.add_column("Severity")
    table.add_column("Location", style="cyan")
    table.add_column("Kind")
    table.add_column("Detail", overflow="fold")
    for c in report.changes[:MAX_LISTED_CHANGES]:
        table.add_row(
            _SEVERITY_STYLES[c.severity],
            f"{c.file_path}:{c.line}:{c.column}",
            c.kind.value,
            c.detail,
        )
    return table


def print_report(report: AnalysisReport, console: Console) -> None:
    console.print(_summary_panel(report))
    if report.changes:
        console.print(_changes_table(report))
        hidden = len(report.changes) - MAX_LISTED_CHANGES
        if hidden > 0:
            console.print(f"[dim]... and {hidden} more[/dim]")

    if report.failed_files:
        console.print(f"\n[red]Failed to analyze {len(report.failed_files)} files:[/red]")
        for failed in report.failed_files:
            console.print(f"  - {failed.file_path}: {failed.error}", markup=False)

    if report.top_change_types:
        console.print("\n[bold]Top change types:[/bold]")
        for t in report.top_change_types[:MAX_LISTED_TYPES]:
            console.print(f"  {t.kind}: {t.count} ({t.max_severity.value})")


def render_console(report: AnalysisReport, width: int = 120) -> str:
    """Render to plain text (no colour codes)."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=width, force_terminal=False, color_system=None)
    print_report(report, console)
    return buffer.getvalue()


class RichFormatter(BaseFormatter):
    """Rich terminal output with a summary panel and a change table."""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def render(self, report: AnalysisReport) -> None:
        print_report(report, self.console)

    def format(self, report: AnalysisReport) -> str:
        return render_console(report)
