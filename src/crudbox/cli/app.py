import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from crudbox.cli.db import db_app
from crudbox.cli.endpoint import endpoint_app
from crudbox.cli.openapi_import import import_app
from crudbox.cli.project import project_app
from crudbox.cli.serve import serve

app = typer.Typer(
    name="crudbox",
    help="crudbox CLI: manage mock projects and endpoints, import OpenAPI documents, serve mocks.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def _main(
    log_level: Annotated[
        str, typer.Option("--log-level", envvar="CRUDBOX_LOG_LEVEL", help="Logging level, e.g. DEBUG or WARNING.")
    ] = "INFO",
) -> None:
    configure_logging(log_level)


app.add_typer(db_app, name="db")
app.command("serve")(serve)
app.add_typer(project_app, name="project")
app.add_typer(endpoint_app, name="endpoint")
app.add_typer(import_app, name="import")


def main() -> None:
    app()
