"""``fileservice check``: verify the configured storage account is reachable.

Exits 0 when the container can be read, 1 when it cannot and 2 when storage
is not configured. Used by deployment smoke tests and container start scripts.
"""

from __future__ import annotations

import asyncio

import typer

from fileservice.config import settings

app = typer.Typer(help="Check connectivity to Azure Blob Storage")


async def _probe() -> bool:
    from fileservice.storage.factory import close_blob_storage, get_blob_storage

    try:
        return await get_blob_storage().check_health()
    finally:
        await close_blob_storage()


@app.callback(invoke_without_command=True)
def check() -> None:
    """Probe the storage container with the current settings."""
    try:
        healthy = asyncio.run(_probe())
    except ValueError as e:
        typer.echo(f"Storage is not configured: {e}", err=True)
        raise typer.Exit(code=2) from e

    if not healthy:
        typer.echo(f"Container '{settings.azure_container}' is unreachable", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Container '{settings.azure_container}' is reachable")
