"""List the change-kind vocabulary."""

from rich.table import Table

from ..kinds import ALL_CHANGE_KINDS
from ..policy import get_default_severity, get_group_for_change_kind
from . import app
from ._common import console


@app.command()
def kinds() -> None:
    """Show every change kind with its group and default severity."""
    table = Table(title="Change kinds")
    table.add_column("Kind", style="cyan")
    table.add_column("Group")
    table.add_column("Default severity")
    for kind in ALL_CHANGE_KINDS:
        table.add_row(
            kind.value,
            get_group_for_change_kind(kind) or "-",
            get_default_severity(kind).value,
        )
    console.print(table)
