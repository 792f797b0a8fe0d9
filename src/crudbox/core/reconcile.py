"""Classify extracted OpenAPI operations against a project and bulk-create the new ones.

Extracted paths are compared to stored endpoints as literal templates:
``/users/{id}`` in a document matches a stored ``/users/{id}`` but not a stored
``/users/123``.
"""

import logging
from collections.abc import Sequence

from crudbox.core.endpoints import build_draft
from crudbox.core.matcher import find_exact
from crudbox.core.paths import normalize_path
from crudbox.core.ports.store import EndpointStore
from crudbox.errors import ConflictError, NotFoundError, StoreUnavailableError, ValidationError
from crudbox.models import (
    Classification,
    ClassifiedOperation,
    CommitResult,
    ImportPreview,
    OperationRecord,
    OperationRef,
    SkippedOperation,
)

logger = logging.getLogger(__name__)

EXISTING_REASON = "endpoint already defined"
DUPLICATE_IN_FILE_REASON = "duplicate of an earlier operation in this file"
ALREADY_EXISTS_REASON = "endpoint already exists"
DUPLICATE_IN_BATCH_REASON = "duplicate of an earlier operation in this batch"

_RECORD_FIELDS = set(OperationRecord.model_fields)


def _route_key(method: str, path: str) -> tuple[str, str]:
    return method.strip().upper(), normalize_path(path)


def _skip(method: str, path: str, reason: str) -> SkippedOperation:
    return SkippedOperation(method=method, path=path, reason=reason)


def _validation_warning(op: OperationRecord) -> str | None:
    try:
        build_draft(op.method, op.path, op.response_status, op.response_body, op.response_headers)
    except ValidationError as exc:
        return str(exc)
    return None


async def _require_project(store: EndpointStore, project_id: str) -> None:
    if await store.get_project(project_id) is None:
        raise NotFoundError(f"Project {project_id} not found")


async def preview(store: EndpointStore, project_id: str, operations: Sequence[OperationRecord]) -> ImportPreview:
    """Classify each operation as new, existing or duplicate without writing anything."""
    await _require_project(store, project_id)
    stored = await store.list_endpoints(project_id)

    seen: set[tuple[str, str]] = set()
    classified: list[ClassifiedOperation] = []
    counts = dict.fromkeys(Classification, 0)
    for op in operations:
        key = _route_key(op.method, op.path)
        if find_exact(stored, *key) is not None:
            status, reason = Classification.EXISTING, EXISTING_REASON
        elif key in seen:
            status, reason = Classification.DUPLICATE, DUPLICATE_IN_FILE_REASON
        else:
            status, reason = Classification.NEW, None
        seen.add(key)
        counts[status] += 1
        warning = _validation_warning(op) if status is Classification.NEW else None
        classified.append(
            ClassifiedOperation(
                **op.model_dump(include=_RECORD_FIELDS), status=status, reason=reason, warning=warning
            )
        )

    return ImportPreview(
        total_count=len(classified),
        new_count=counts[Classification.NEW],
        existing_count=counts[Classification.EXISTING],
        duplicate_count=counts[Classification.DUPLICATE],
        operations=classified,
    )


async def commit(store: EndpointStore, project_id: str, operations: Sequence[OperationRecord]) -> CommitResult:
    """Create every operation that is still new, skipping the rest.

    Each candidate is re-checked against the store as it is now. A uniqueness
    conflict raised by the store (a concurrent writer got there first) becomes a
    skipped entry. A store outage stops the batch: the result then carries the
    error and lists the operations that were never attempted.
    """
    await _require_project(store, project_id)
    stored = await store.list_endpoints(project_id)

    result = CommitResult()
    created_keys: set[tuple[str, str]] = set()
    for index, op in enumerate(operations):
        try:
            draft = build_draft(op.method, op.path, op.response_status, op.response_body, op.response_headers)
        except ValidationError as exc:
            result.skipped.append(_skip(op.method, op.path, str(exc)))
            continue

        key = (draft.method, draft.path)
        if key in created_keys:
            result.skipped.append(_skip(draft.method, draft.path, DUPLICATE_IN_BATCH_REASON))
            continue
        if find_exact(stored, *key) is not None:
            result.skipped.append(_skip(draft.method, draft.path, ALREADY_EXISTS_REASON))
            continue

        try:
            endpoint = await store.create_endpoint(project_id, draft)
        except ConflictError:
            result.skipped.append(_skip(draft.method, draft.path, ALREADY_EXISTS_REASON))
            continue
        except StoreUnavailableError as exc:
            logger.error(
                "commit for project %s aborted after %d of %d operations: %s", project_id, index, len(operations), exc
            )
            result.error = str(exc) or "store unavailable"
            result.not_attempted = [OperationRef(method=o.method, path=o.path) for o in operations[index:]]
            break

        created_keys.add(key)
        result.created.append(endpoint)

    logger.info(
        "commit for project %s: %d created, %d skipped, %d not attempted",
        project_id,
        len(result.created),
        len(result.skipped),
        len(result.not_attempted),
    )
    return result
