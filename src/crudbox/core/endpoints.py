import json
from typing import Any

from crudbox.core.matcher import find_duplicate_routes, find_exact
from crudbox.core.paths import normalize_method, validate_path_template
from crudbox.core.ports.store import EndpointStore
from crudbox.errors import ConflictError, NotFoundError, ValidationError
from crudbox.models import Endpoint, EndpointDraft, Project

DUPLICATE_ROUTE_MESSAGE = "endpoint with same method and path already exists"


def validate_status(status: Any) -> int:
    if isinstance(status, bool) or not isinstance(status, int):
        raise ValidationError(f"Response status must be an integer, got {status!r}")
    if not 100 <= status <= 599:
        raise ValidationError(f"Response status {status} is outside 100-599")
    return status


def validate_headers(headers: str) -> str:
    """Check that ``headers`` is empty or a JSON object of string values; return it unchanged."""
    if not headers.strip():
        return headers
    try:
        decoded = json.loads(headers)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Response headers are not valid JSON: {exc.msg}") from exc
    if not isinstance(decoded, dict):
        raise ValidationError("Response headers must be a JSON object")
    for name, value in decoded.items():
        if not name or not isinstance(value, str):
            raise ValidationError(f"Response header {name!r} must have a non-empty name and a string value")
    return headers


def build_draft(
    method: str,
    path: str,
    response_status: Any = 200,
    response_body: str | None = None,
    response_headers: str | None = None,
) -> EndpointDraft:
    return EndpointDraft(
        method=normalize_method(method),
        path=validate_path_template(path),
        response_status=validate_status(response_status),
        response_body=response_body or "",
        response_headers=validate_headers(response_headers or ""),
    )


async def _require_project(store: EndpointStore, project_id: str) -> Project:
    project = await store.get_project(project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")
    return project


async def _require_endpoint(store: EndpointStore, project_id: str, endpoint_id: str) -> Endpoint:
    endpoint = await store.get_endpoint(endpoint_id)
    if endpoint is None or endpoint.project_id != project_id:
        raise NotFoundError(f"Endpoint {endpoint_id} not found")
    return endpoint


async def create_endpoint(store: EndpointStore, project_id: str, draft: EndpointDraft) -> Endpoint:
    await _require_project(store, project_id)
    if find_exact(await store.list_endpoints(project_id), draft.method, draft.path) is not None:
        raise ConflictError(DUPLICATE_ROUTE_MESSAGE)
    return await store.create_endpoint(project_id, draft)


async def get_endpoint(store: EndpointStore, project_id: str, endpoint_id: str) -> Endpoint:
    return await _require_endpoint(store, project_id, endpoint_id)


async def list_endpoints(store: EndpointStore, project_id: str) -> list[Endpoint]:
    await _require_project(store, project_id)
    return await store.list_endpoints(project_id)


async def update_endpoint(
    store: EndpointStore,
    project_id: str,
    endpoint_id: str,
    *,
    method: str | None = None,
    path: str | None = None,
    response_status: int | None = None,
    response_body: str | None = None,
    response_headers: str | None = None,
) -> Endpoint:
    """Apply a partial update; fields left as None keep their stored value."""
    current = await _require_endpoint(store, project_id, endpoint_id)
    draft = build_draft(
        method if method is not None else current.method,
        path if path is not None else current.path,
        response_status if response_status is not None else current.response_status,
        response_body if response_body is not None else current.response_body,
        response_headers if response_headers is not None else current.response_headers,
    )

    if (draft.method, draft.path) != (current.method, current.path):
        clash = find_exact(await store.list_endpoints(project_id), draft.method, draft.path)
        if clash is not None and clash.id != current.id:
            raise ConflictError(DUPLICATE_ROUTE_MESSAGE)

    updated = await store.update_endpoint(endpoint_id, draft)
    if updated is None:
        raise NotFoundError(f"Endpoint {endpoint_id} not found")
    return updated


async def delete_endpoint(store: EndpointStore, project_id: str, endpoint_id: str) -> None:
    await _require_endpoint(store, project_id, endpoint_id)
    if not await store.delete_endpoint(endpoint_id):
        raise NotFoundError(f"Endpoint {endpoint_id} not found")


async def find_conflicts(store: EndpointStore, project_id: str) -> list[list[Endpoint]]:
    """Return groups of stored endpoints sharing one ``(method, path)`` pair."""
    await _require_project(store, project_id)
    return find_duplicate_routes(await store.list_endpoints(project_id))
