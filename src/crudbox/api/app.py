from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from crudbox.api.lifespan import lifespan
from crudbox.api.middleware import RequestTimingMiddleware
from crudbox.api.routes.endpoints import router as endpoints_router
from crudbox.api.routes.health import router as health_router
from crudbox.api.routes.imports import router as imports_router
from crudbox.api.routes.mock import router as mock_router
from crudbox.api.routes.projects import router as projects_router
from crudbox.api.routes.root import router as root_router
from crudbox.api.routes.statistics import router as statistics_router
from crudbox.core.serving import ServeStats
from crudbox.errors import (
    ConflictError,
    CrudboxError,
    NotFoundError,
    ParseError,
    StoreUnavailableError,
    UnsupportedMediaTypeError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first.
_ERROR_STATUS: list[tuple[type[CrudboxError], int]] = [
    (UnsupportedMediaTypeError, 415),
    (ValidationError, 422),
    (NotFoundError, 404),
    (ParseError, 400),
    (ConflictError, 409),
    (StoreUnavailableError, 503),
]


def status_for(exc: Exception) -> int:
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _crudbox_error_handler(request: Request, exc: Exception) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=code, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="crudbox API",
        description="Declarative HTTP mock endpoints with OpenAPI import.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.serve_stats = ServeStats()

    app.add_exception_handler(CrudboxError, _crudbox_error_handler)
    app.add_middleware(RequestTimingMiddleware)

    app.include_router(root_router, include_in_schema=False)
    app.include_router(health_router, include_in_schema=False)
    app.include_router(statistics_router)
    app.include_router(projects_router)
    app.include_router(endpoints_router)
    app.include_router(imports_router)
    # Catch-all, must stay last.
    app.include_router(mock_router)

    return app
