from __future__ import annotations

from pydantic import BaseModel, Field

from crudbox.models import OperationRecord

# --- Management request bodies ---


class ProjectCreate(BaseModel):
    name: str


class EndpointCreate(BaseModel):
    method: str
    path: str
    response_status: int = 200
    response_body: str = ""
    response_headers: str = ""


class EndpointUpdate(BaseModel):
    """PUT /projects/{project_id}/endpoints/{endpoint_id}: omitted fields keep their value."""

    method: str | None = None
    path: str | None = None
    response_status: int | None = None
    response_body: str | None = None
    response_headers: str | None = None


class CommitRequest(BaseModel):
    operations: list[OperationRecord] = Field(default_factory=list)


# --- Operational responses ---


class HealthResponse(BaseModel):
    status: str = "ok"


class ReadinessResponse(BaseModel):
    status: str = "ok"
    database: str = "up"
