from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from crudbox.api.dependencies import get_store
from crudbox.api.schemas import ProjectCreate
from crudbox.core import projects
from crudbox.core.ports.store import EndpointStore
from crudbox.models import Project

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    store: EndpointStore = Depends(get_store),
) -> Project:
    """Create a project; its public code is generated and never changes."""
    return await projects.create_project(store, body.name)


@router.get("", response_model=list[Project])
async def list_projects(store: EndpointStore = Depends(get_store)) -> list[Project]:
    return await projects.list_projects(store)


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: str, store: EndpointStore = Depends(get_store)) -> Project:
    return await projects.get_project(store, project_id)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, store: EndpointStore = Depends(get_store)) -> Response:
    """Delete a project together with all of its endpoints."""
    await projects.delete_project(store, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
