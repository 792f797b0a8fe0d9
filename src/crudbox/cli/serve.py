from typing import Annotated

import typer
from rich.console import Console

console = Console()


def serve(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8000,
) -> None:
    """Start the management API and the mock server."""
    import uvicorn

    from crudbox.api.app import create_app

    app = create_app()
    console.print(f"[green]Starting crudbox on {host}:{port}[/green]")
    console.print(f"  Management API: http://{host}:{port}/projects")
    console.print(f"  Mocks:          http://{host}:{port}/<code>/<path>")
    uvicorn.run(app, host=host, port=port, log_config=None)
