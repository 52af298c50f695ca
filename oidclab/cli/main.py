"""oidclab CLI: Typer application."""

import typer
from rich.console import Console

from oidclab.version import __version__

app = typer.Typer(
    name="oidclab",
    help="oidclab: run and inspect OAuth 2.0 / OpenID Connect sub function chains.",
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
):
    """oidclab CLI."""
    if version:
        console.print(f"oidclab v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


from oidclab.cli.commands import dev, functions, run  # noqa: E402

app.command(name="functions", help="List registered sub functions")(functions.functions_list)
app.command(name="run", help="Execute a chain file (YAML or JSON)")(run.run_chain)
app.command(name="dev", help="Start the API server with hot reload")(dev.dev_server)


if __name__ == "__main__":
    app()
