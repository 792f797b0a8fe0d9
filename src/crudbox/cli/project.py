from typing import Annotated

import typer

from crudbox.cli.common import console, render_table, run_with_store
from crudbox.core import projects
from crudbox.core.ports.store import EndpointStore
from crudbox.models import Project

project_app = typer.Typer(help="Manage mock projects.")


@project_app.command("create")
def create(
    name: Annotated[str, typer.Argument(help="Human-readable project name.")],
) -> None:
    """Create a project and print its public code."""

    async def _action(store: EndpointStore) -> Project:
        return await projects.create_project(store, name)

    project = run_with_store(_action)
    console.print(f"[green]Created project {project.name!r}[/green] id={project.id} code=[bold]{project.code}[/bold]")


@project_app.command("list")
def list_() -> None:
    """List projects."""

    async def _action(store: EndpointStore) -> list[Project]:
        return await projects.list_projects(store)

    rows = [(p.id, p.code, p.name, p.created_at.isoformat()) for p in run_with_store(_action)]
    render_table(["id", "code", "name", "created_at"], rows)


@project_app.command("delete")
def delete(
    project_id: Annotated[str, typer.Argument(help="Project id.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
) -> None:
    """Delete a project and all of its endpoints."""
    if not yes:
        typer.confirm(f"Delete project {project_id} and all of its endpoints?", abort=True)

    async def _action(store: EndpointStore) -> None:
        await projects.delete_project(store, project_id)

    run_with_store(_action)
    console.print(f"[green]Deleted project {project_id}.[/green]")
