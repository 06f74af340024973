"""CLI command for running the API server.

Usage:
    address-service serve
    address-service serve --port 9000 --workers 4
    address-service serve --reload --log-level debug
"""

from __future__ import annotations

import typer

from address_service.config import settings

app = typer.Typer(help="Run the address service API server")

APP_FACTORY = "address_service.api.app:create_app"


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(settings.host, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Restart on code changes (forces one worker)"
    ),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of worker processes"),
    log_level: str = typer.Option(
        settings.log_level.lower(), "--log-level", "-l", help="uvicorn log level"
    ),
    access_log: bool = typer.Option(
        True, "--access-log/--no-access-log", help="Enable/disable access logging"
    ),
) -> None:
    """Run the API server under uvicorn.

    Each worker clears every cache layer on startup and again, with retry,
    on shutdown.
    """
    import uvicorn
    from rich.console import Console

    if reload:
        workers = 1

    console = Console()
    console.print(f"[blue]Address service[/blue] on http://{host}:{port} ({workers} worker(s))")
    console.print(f"  Environment: {settings.env}, Redis: {settings.redis_url}")

    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level.lower(),
        access_log=access_log,
    )
