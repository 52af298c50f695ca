"""oidclab dev: start local development server."""

import typer
from rich.console import Console

from oidclab.config import config

console = Console()


def dev_server(
    host: str = typer.Option(config.host, help="Host to bind to"),
    port: int = typer.Option(config.port, help="Port to listen on"),
):
    """Start the oidclab API server in development mode with hot reload."""
    import uvicorn
    console.print(f"[green]Starting oidclab dev server on {host}:{port}[/green]")
    uvicorn.run("oidclab.api.main:app", host=host, port=port, reload=True)
