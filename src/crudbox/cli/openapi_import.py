from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from crudbox.cli.common import console, render_table, run_with_store
from crudbox.core import openapi, reconcile
from crudbox.core.ports.store import EndpointStore
from crudbox.errors import CrudboxError
from crudbox.models import CommitResult, ImportPreview, OperationRecord

import_app = typer.Typer(help="Import endpoints from an OpenAPI document.")

_STATUS_STYLE = {"new": "green", "existing": "yellow", "duplicate": "red"}


def _read_operations(document: Path) -> list[OperationRecord]:
    try:
        return openapi.extract(document.read_bytes())
    except CrudboxError as exc:
        console.print(f"[red]{type(exc).__name__}: {exc}[/red]")
        raise typer.Exit(1) from exc


def _print_preview(result: ImportPreview) -> None:
    rows = [
        (
            f"[{_STATUS_STYLE[op.status.value]}]{op.status.value}[/]",
            op.method,
            op.path,
            op.response_status,
            op.reason or (f"[yellow]{escape(op.warning)}[/]" if op.warning else ""),
        )
        for op in result.operations
    ]
    render_table(["status", "method", "path", "response", "reason"], rows)
    console.print(
        f"{result.total_count} operations: {result.new_count} new, "
        f"{result.existing_count} existing, {result.duplicate_count} duplicate"
    )


def _print_commit(result: CommitResult) -> None:
    console.print(f"[green]{len(result.created)} created[/green], {len(result.skipped)} skipped")
    if result.skipped:
        render_table(["method", "path", "reason"], [(s.method, s.path, s.reason) for s in result.skipped])
    if result.aborted:
        console.print(f"[red]Import aborted: {result.error}[/red]")
        console.print(f"{len(result.not_attempted)} operations were not attempted.")


@import_app.command("preview")
def preview(
    project_id: Annotated[str, typer.Argument(help="Project id.")],
    document: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="OpenAPI YAML or JSON file.")],
) -> None:
    """Show how each operation of a document compares to the project's endpoints."""
    operations = _read_operations(document)

    async def _action(store: EndpointStore) -> ImportPreview:
        return await reconcile.preview(store, project_id, operations)

    _print_preview(run_with_store(_action))


@import_app.command("apply")
def apply(
    project_id: Annotated[str, typer.Argument(help="Project id.")],
    document: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="OpenAPI YAML or JSON file.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Create without asking for confirmation.")] = False,
) -> None:
    """Preview a document, then create the operations classified as new."""
    operations = _read_operations(document)

    async def _preview(store: EndpointStore) -> ImportPreview:
        return await reconcile.preview(store, project_id, operations)

    result = run_with_store(_preview)
    _print_preview(result)
    accepted = result.new_operations()
    if not accepted:
        console.print("Nothing to import.")
        return
    if not yes:
        typer.confirm(f"Create {len(accepted)} endpoints?", abort=True)

    async def _commit(store: EndpointStore) -> CommitResult:
        return await reconcile.commit(store, project_id, accepted)

    committed = run_with_store(_commit)
    _print_commit(committed)
    if committed.aborted:
        raise typer.Exit(1)
