"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="semdiff",
    help="semdiff - Semantic change classifier for TypeScript / React code review",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
from .kinds import kinds as _kinds  # noqa: F401, E402


def main() -> None:
    app()
