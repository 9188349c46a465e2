"""Command: academy serve - Run the local API server."""

import typer
import uvicorn


def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Serve the HTTP API used by the local UI."""
    uvicorn.run(
        "academy.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )
