from typing import Annotated

import typer

from crudbox.cli.common import console, render_table, run_with_store
from crudbox.core import endpoints
from crudbox.core.ports.store import EndpointStore
from crudbox.models import Endpoint

endpoint_app = typer.Typer(help="Manage the endpoints of a project.")

_BODY_PREVIEW = 40


def _preview(body: str) -> str:
    flat = " ".join(body.split())
    return flat if len(flat) <= _BODY_PREVIEW else flat[: _BODY_PREVIEW - 3] + "..."


@endpoint_app.command("list")
def list_(
    project_id: Annotated[str, typer.Argument(help="Project id.")],
) -> None:
    """List a project's endpoints in creation order."""

    async def _action(store: EndpointStore) -> list[Endpoint]:
        return await endpoints.list_endpoints(store, project_id)

    rows = [(e.id, e.method, e.path, e.response_status, _preview(e.response_body)) for e in run_with_store(_action)]
    render_table(["id", "method", "path", "status", "body"], rows)


@endpoint_app.command("add")
def add(
    project_id: Annotated[str, typer.Argument(help="Project id.")],
    method: Annotated[str, typer.Argument(help="HTTP method, e.g. GET.")],
    path: Annotated[str, typer.Argument(help="Path pattern, e.g. /users/{id}.")],
    status: Annotated[int, typer.Option("--status", "-s", help="Response status code.")] = 200,
    body: Annotated[str, typer.Option("--body", "-b", help="Response body, sent verbatim.")] = "",
    headers: Annotated[
        str, typer.Option("--headers", help='Response headers as a JSON object, e.g. \'{"X-Mock": "1"}\'.')
    ] = "",
) -> None:
    """Add an endpoint to a project."""

    async def _action(store: EndpointStore) -> Endpoint:
        draft = endpoints.build_draft(method, path, status, body, headers)
        return await endpoints.create_endpoint(store, project_id, draft)

    endpoint = run_with_store(_action)
    console.print(f"[green]Created {endpoint.method} {endpoint.path}[/green] id={endpoint.id}")


@endpoint_app.command("delete")
def delete(
    project_id: Annotated[str, typer.Argument(help="Project id.")],
    endpoint_id: Annotated[str, typer.Argument(help="Endpoint id.")],
) -> None:
    """Delete one endpoint."""

    async def _action(store: EndpointStore) -> None:
        await endpoints.delete_endpoint(store, project_id, endpoint_id)

    run_with_store(_action)
    console.print(f"[green]Deleted endpoint {endpoint_id}.[/green]")
