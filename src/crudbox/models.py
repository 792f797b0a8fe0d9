from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Project(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    code: str
    created_at: datetime
    updated_at: datetime


class EndpointDraft(BaseModel):
    """Validated endpoint attributes, ready to be written to a store."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    response_status: int = 200
    response_body: str = ""
    response_headers: str = ""


class Endpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    method: str
    path: str
    response_status: int
    response_body: str
    response_headers: str
    created_at: datetime
    updated_at: datetime

    def draft(self) -> EndpointDraft:
        return EndpointDraft(
            method=self.method,
            path=self.path,
            response_status=self.response_status,
            response_body=self.response_body,
            response_headers=self.response_headers,
        )


class OperationRecord(BaseModel):
    """One (method, path) operation proposed by an OpenAPI document."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    response_status: int = 200
    response_body: str = "{}"
    response_headers: str = ""


class Classification(str, Enum):
    NEW = "new"
    EXISTING = "existing"
    DUPLICATE = "duplicate"


class ClassifiedOperation(OperationRecord):
    status: Classification
    reason: str | None = None
    # Set on new operations that commit would skip as invalid.
    warning: str | None = None


class ImportPreview(BaseModel):
    total_count: int
    new_count: int
    existing_count: int
    duplicate_count: int
    operations: list[ClassifiedOperation]

    def new_operations(self) -> list[OperationRecord]:
        return [
            OperationRecord.model_validate(op.model_dump(exclude={"status", "reason", "warning"}))
            for op in self.operations
            if op.status is Classification.NEW
        ]


class OperationRef(BaseModel):
    method: str
    path: str


class SkippedOperation(OperationRef):
    reason: str


class CommitResult(BaseModel):
    created: list[Endpoint] = []
    skipped: list[SkippedOperation] = []
    not_attempted: list[OperationRef] = []
    error: str | None = None

    @property
    def aborted(self) -> bool:
        return self.error is not None


class RenderedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: int
    headers: dict[str, str]
    body: str
