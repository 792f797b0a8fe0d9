from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from crudbox.api.dependencies import get_store
from crudbox.api.schemas import EndpointCreate, EndpointUpdate
from crudbox.core import endpoints
from crudbox.core.ports.store import EndpointStore
from crudbox.models import Endpoint

router = APIRouter(prefix="/projects/{project_id}/endpoints", tags=["endpoints"])


@router.get("", response_model=list[Endpoint])
async def list_endpoints(project_id: str, store: EndpointStore = Depends(get_store)) -> list[Endpoint]:
    """List a project's endpoints in creation order."""
    return await endpoints.list_endpoints(store, project_id)


@router.post("", response_model=Endpoint, status_code=status.HTTP_201_CREATED)
async def create_endpoint(
    project_id: str,
    body: EndpointCreate,
    store: EndpointStore = Depends(get_store),
) -> Endpoint:
    draft = endpoints.build_draft(
        body.method, body.path, body.response_status, body.response_body, body.response_headers
    )
    return await endpoints.create_endpoint(store, project_id, draft)


@router.get("/conflicts", response_model=list[list[Endpoint]])
async def list_conflicts(project_id: str, store: EndpointStore = Depends(get_store)) -> list[list[Endpoint]]:
    """Groups of endpoints that share one method and path."""
    return await endpoints.find_conflicts(store, project_id)


@router.get("/{endpoint_id}", response_model=Endpoint)
async def get_endpoint(project_id: str, endpoint_id: str, store: EndpointStore = Depends(get_store)) -> Endpoint:
    return await endpoints.get_endpoint(store, project_id, endpoint_id)


@router.put("/{endpoint_id}", response_model=Endpoint)
async def update_endpoint(
    project_id: str,
    endpoint_id: str,
    body: EndpointUpdate,
    store: EndpointStore = Depends(get_store),
) -> Endpoint:
    return await endpoints.update_endpoint(store, project_id, endpoint_id, **body.model_dump())


@router.delete("/{endpoint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_endpoint(project_id: str, endpoint_id: str, store: EndpointStore = Depends(get_store)) -> Response:
    await endpoints.delete_endpoint(store, project_id, endpoint_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
