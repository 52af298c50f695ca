"""oidclab run: execute a chain file from the command line."""

import asyncio
import json

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from oidclab.types import ChainResult

console = Console()


def _preview(value, limit: int = 60) -> str:
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return text if len(text) <= limit else f"{text[:limit]}…"


def _print_result(result: ChainResult) -> None:
    table = Table(box=box.SIMPLE, header_style="bold dim", padding=(0, 1))
    table.add_column("#", style="dim", justify="right")
    table.add_column("Step", style="cyan")
    table.add_column("Function")
    table.add_column("Result")
    table.add_column("Outputs / Error")

    for i, step in enumerate(result.results):
        if step.success:
            keys = ", ".join(step.outputs) if isinstance(step.outputs, dict) else _preview(step.outputs)
            table.add_row(str(i), step.id, step.fn, "[bold green]✓ ok[/bold green]", f"[dim]{keys}[/dim]")
        else:
            table.add_row(str(i), step.id, step.fn, "[bold red]✗ failed[/bold red]", f"[red]{step.error}[/red]")
    console.print(table)

    if result.success:
        lines = [f"[bold]{key}[/bold] = {_preview(value)}" for key, value in (result.state_updates or {}).items()]
        body = "\n".join(lines) or "[dim]no stateUpdates[/dim]"
        console.print(Panel(body, title="[bold green]Chain succeeded[/bold green]", border_style="green"))
    else:
        console.print(Panel(
            f"[bold]Step {result.failed_at}[/bold] ({result.failed_step}): {result.error}",
            title="[bold red]Chain failed[/bold red]",
            border_style="red",
        ))


def run_chain(
    chain_file: str = typer.Argument(..., help="Path to a .yaml/.yml or .json chain file"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw ChainResult as JSON"),
):
    """Execute a chain of sub functions and show each step.

    Example:
        oidclab run examples/chains/decode_jwt.yaml
    """
    from oidclab.engine.chain import ChainExecutor
    from oidclab.engine.loader import load_chain_file
    from oidclab.exceptions import ChainValidationError
    from oidclab.functions.registry import build_default_registry

    registry = build_default_registry()
    executor = ChainExecutor(registry)
    try:
        steps, context = load_chain_file(chain_file)
        executor.validate_chain(steps)
    except (FileNotFoundError, ChainValidationError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    result = asyncio.run(executor.execute_chain(steps, context))

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)

    if not result.success:
        raise typer.Exit(code=1)
