"""oidclab functions: list registered sub functions."""

from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

console = Console()


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text.strip() else ""


def functions_list(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only this category"),
):
    """List registered sub functions with their inputs.

    Example:
        oidclab functions --category oauth
    """
    from oidclab.functions.registry import build_default_registry

    registry = build_default_registry()
    descriptors = registry.list_functions(category)

    if not descriptors:
        console.print(f"[yellow]No functions registered{f' in category {category!r}' if category else ''}.[/yellow]")
        return

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        show_lines=False,
        title=f"[bold]{len(descriptors)} Sub Functions[/bold]",
    )
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Description")
    table.add_column("Inputs (* required)", style="dim")

    for descriptor in descriptors:
        inputs = ", ".join(
            f"{name}*" if spec.required else name for name, spec in descriptor.inputs.items()
        )
        table.add_row(descriptor.id, descriptor.category, _first_line(descriptor.description), inputs)

    console.print(table)
