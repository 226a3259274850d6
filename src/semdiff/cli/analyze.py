"""Main analysis command."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import SemdiffError
from ..formatters import OUTPUT_FORMATS, get_formatter, render_json, write_github_output
from ..formatters.rich_formatter import RichFormatter
from ..logging_config import setup_logging
from ..models import AnalysisReport
from ..retrieval import WORKING_TREE, GitContentSource
from ..runner import SemanticAnalysisRunner
from . import app
from ._common import console, err_console, parse_file_list, resolve_config

# Exit status when --fail-on-tests is set and the change set needs tests.
TESTS_REQUIRED_EXIT_CODE = 2


def _emit(report: AnalysisReport, output_format: str, output_file: Optional[Path]) -> None:
    if output_format == "console":
        RichFormatter(console).render(report)
    elif output_format != "json" or output_file is None:
        text = get_formatter(output_format).format(report)
        if text:
            print(text)

    if output_file is not None:
        output_file.write_text(render_json(report) + "\n", encoding="utf-8")

    if output_format == "github-actions":
        write_github_output(report.requires_tests)


@app.command()
def analyze(
    base_ref: str = typer.Option(
        ...,
        "--base-ref",
        help="Git ref of the base version (branch, tag or sha)",
    ),
    head_ref: str = typer.Option(
        WORKING_TREE,
        "--head-ref",
        help="Git ref of the head version ('.' for the working tree)",
    ),
    files: Optional[str] = typer.Option(
        None,
        "--files",
        help="Comma-separated list of changed files",
    ),
    stdin: bool = typer.Option(
        False,
        "--stdin",
        help="Read changed file paths from stdin, one per line",
    ),
    output_format: str = typer.Option(
        "console",
        "--output-format",
        "-f",
        help=f"Output format: {', '.join(OUTPUT_FORMATS)}",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output-file",
        "-o",
        help="Write the JSON report to this file",
    ),
    timeout_ms: Optional[int] = typer.Option(
        None,
        "--timeout-ms",
        help="Per-file analysis timeout in milliseconds",
        min=1,
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Number of worker processes (default: CPU count)",
        min=1,
    ),
    repo: Path = typer.Option(
        Path("."),
        "-C",
        "--repo",
        help="Repository root",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    fail_on_tests: bool = typer.Option(
        False,
        "--fail-on-tests",
        help=f"Exit with status {TESTS_REQUIRED_EXIT_CODE} when tests are required",
    ),
) -> None:
    """
    Classify the semantic changes between two versions of the given files.

    [bold cyan]Examples:[/bold cyan]

      semdiff analyze --base-ref main --files src/app.tsx,src/api.ts

      git diff --name-only main | semdiff analyze --base-ref main --stdin -f json

      semdiff analyze --base-ref origin/main --head-ref HEAD --stdin -f github-actions
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    if output_format not in OUTPUT_FORMATS:
        err_console.print(
            f"[red]Error:[/red] unknown output format '{output_format}' "
            f"(choose from {', '.join(OUTPUT_FORMATS)})"
        )
        raise typer.Exit(1)

    try:
        settings = resolve_config(config=config, timeout_ms=timeout_ms, workers=workers)
        paths = parse_file_list(files, stdin)
        if not paths:
            err_console.print("[yellow]No files to analyze.[/yellow] Use --files or --stdin.")
            raise typer.Exit(0)

        runner = SemanticAnalysisRunner(settings, GitContentSource(str(repo)))
        report = runner.analyze(paths, base_ref, head_ref)
        _emit(report, output_format, output_file)

        if fail_on_tests and report.requires_tests:
            raise typer.Exit(TESTS_REQUIRED_EXIT_CODE)

    except typer.Exit:
        raise

    except SemdiffError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        err_console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during analysis")
        err_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
