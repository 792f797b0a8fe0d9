from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse

from crudbox.api.dependencies import get_store
from crudbox.api.schemas import CommitRequest
from crudbox.core import openapi, reconcile
from crudbox.core.ports.store import EndpointStore
from crudbox.models import CommitResult, ImportPreview

router = APIRouter(prefix="/projects/{project_id}/imports", tags=["imports"])


@router.post("/openapi", response_model=ImportPreview)
async def preview_openapi(
    project_id: str,
    file: UploadFile = File(...),
    store: EndpointStore = Depends(get_store),
) -> ImportPreview:
    """Classify the operations of an uploaded OpenAPI document. Nothing is written."""
    openapi.check_content_type(file.content_type, file.filename)
    operations = openapi.extract(await file.read())
    return await reconcile.preview(store, project_id, operations)


@router.post(
    "/openapi/commit",
    response_model=CommitResult,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": CommitResult}},
)
async def commit_openapi(
    project_id: str,
    body: CommitRequest,
    store: EndpointStore = Depends(get_store),
) -> CommitResult | JSONResponse:
    """Create the given operations, skipping any that are no longer new.

    When the store fails mid-batch the partial result is returned with status 503.
    """
    result = await reconcile.commit(store, project_id, body.operations)
    if result.aborted:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=result.model_dump(mode="json"))
    return result
