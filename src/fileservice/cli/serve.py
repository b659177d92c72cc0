"""``fileservice serve``: run the HTTP API under uvicorn.

The app is built by ``create_app`` inside each worker, so settings are read
from the worker's environment.
"""

from __future__ import annotations

import typer

from fileservice.config import settings

APP_FACTORY = "fileservice.api.app:create_app"

app = typer.Typer(help="Run the File Service API server")


def _storage_target() -> str:
    if settings.azure_account_url:
        return settings.azure_account_url
    if settings.azure_connection_string:
        return "connection string"
    return "not configured"


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(settings.host, "--host", "-h", help="Interface to bind"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Restart on code changes"),
    workers: int = typer.Option(1, "--workers", "-w", min=1, help="Worker processes"),
    log_level: str = typer.Option(
        settings.log_level.lower(),
        "--log-level",
        "-l",
        help="uvicorn log level: debug, info, warning, error",
    ),
) -> None:
    """Serve the blob gateway."""
    import uvicorn

    if reload and workers > 1:
        typer.echo("--reload runs a single worker; ignoring --workers", err=True)
        workers = 1

    auth = f"OIDC ({settings.oidc_issuer})" if settings.oidc_issuer else "disabled"
    typer.echo(f"File Service API on http://{host}:{port} (workers: {workers})")
    typer.echo(f"  Storage: {_storage_target()}, container '{settings.azure_container}'")
    typer.echo(f"  Auth: {auth}")

    uvicorn.run(
        app=APP_FACTORY,
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level.lower(),
    )
