"""Command line entry point.

    fileservice serve --port 8080
    fileservice check
"""

import typer

from fileservice.cli.check import app as check_app
from fileservice.cli.serve import app as serve_app

app = typer.Typer(
    name="fileservice",
    help="Azure Blob Storage gateway with tagging, metadata and SAS URLs",
    no_args_is_help=True,
)
app.add_typer(serve_app, name="serve")
app.add_typer(check_app, name="check")


@app.callback()
def callback() -> None:
    """Azure Blob Storage gateway."""


def main() -> None:
    app()
