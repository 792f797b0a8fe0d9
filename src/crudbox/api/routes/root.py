from __future__ import annotations

from typing import Any

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Root discovery endpoint: where the management API and the mock namespace live."""
    return {
        "meta": {
            "title": "crudbox",
            "description": "Declarative HTTP mock endpoints with OpenAPI import.",
            "version": "0.1.0",
        },
        "links": {
            "self": "/",
            "projects": "/projects",
            "statistics": "/statistics",
            "health": "/health",
            "mock": "/{code}/{path}",
            "openapi": "/openapi.json",
            "docs": "/docs",
        },
    }
