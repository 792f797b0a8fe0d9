"""Catch-all mock routes. Registered last so management routes take precedence."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from crudbox.api.dependencies import get_serve_stats, get_store
from crudbox.core.paths import HTTP_METHODS
from crudbox.core.ports.store import EndpointStore
from crudbox.core.serving import ServeStats, serve
from crudbox.models import RenderedResponse

router = APIRouter(tags=["mock"])

MOCK_METHODS = list(HTTP_METHODS)

_BODYLESS_STATUSES = {status.HTTP_204_NO_CONTENT, status.HTTP_304_NOT_MODIFIED}

# Recomputed by the server from the actual body.
_HOP_HEADERS = {"content-length", "transfer-encoding", "connection"}

DEFAULT_MEDIA_TYPE = "application/json"


def to_response(rendered: RenderedResponse, method: str) -> Response:
    headers = {k: v for k, v in rendered.headers.items() if k.lower() not in _HOP_HEADERS}
    media_type = None if any(k.lower() == "content-type" for k in headers) else DEFAULT_MEDIA_TYPE
    bodyless = rendered.status < 200 or rendered.status in _BODYLESS_STATUSES
    if bodyless:
        headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
        return Response(status_code=rendered.status, headers=headers)
    content = b"" if method == "HEAD" else rendered.body.encode()
    return Response(content=content, status_code=rendered.status, headers=headers, media_type=media_type)


async def _serve(request: Request, code: str, path: str, store: EndpointStore, stats: ServeStats) -> Response:
    result = await serve(store, code, request.method, path, stats)
    if isinstance(result, RenderedResponse):
        return to_response(result, request.method)
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Not Found"})


@router.api_route("/{code}", methods=MOCK_METHODS, include_in_schema=False)
async def serve_root(
    request: Request,
    code: str,
    store: EndpointStore = Depends(get_store),
    stats: ServeStats = Depends(get_serve_stats),
) -> Response:
    return await _serve(request, code, "/", store, stats)


@router.api_route("/{code}/{path:path}", methods=MOCK_METHODS, include_in_schema=False)
async def serve_path(
    request: Request,
    code: str,
    path: str,
    store: EndpointStore = Depends(get_store),
    stats: ServeStats = Depends(get_serve_stats),
) -> Response:
    return await _serve(request, code, "/" + path, store, stats)
