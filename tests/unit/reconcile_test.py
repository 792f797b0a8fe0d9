"""Tests for OpenAPI import preview and commit."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any
from unittest.mock import patch

import pytest

from crudbox.core import reconcile
from crudbox.core.serving import serve
from crudbox.db import InMemoryEndpointStore
from crudbox.errors import ConflictError, NotFoundError, StoreUnavailableError
from crudbox.models import Classification, Endpoint, EndpointDraft, OperationRecord, Project, RenderedResponse

AddEndpoint = Callable[..., Awaitable[Endpoint]]


def _op(method: str, path: str, **kwargs: Any) -> OperationRecord:
    return OperationRecord(method=method, path=path, **kwargs)


class TestPreview:
    @pytest.mark.asyncio
    async def test_counts_new_and_existing(
        self, store: InMemoryEndpointStore, project: Project, add_endpoint: AddEndpoint
    ) -> None:
        await add_endpoint("GET", "/users")

        result = await reconcile.preview(store, project.id, [_op("GET", "/users"), _op("POST", "/users")])

        assert (result.total_count, result.new_count, result.existing_count, result.duplicate_count) == (2, 1, 1, 0)
        assert [o.status for o in result.operations] == [Classification.EXISTING, Classification.NEW]
        assert result.operations[0].reason == "endpoint already defined"
        assert result.operations[1].reason is None

    @pytest.mark.asyncio
    async def test_second_occurrence_is_duplicate(self, store: InMemoryEndpointStore, project: Project) -> None:
        ops = [_op("GET", "/users"), _op("GET", "/users/"), _op("get", "/users")]

        result = await reconcile.preview(store, project.id, ops)

        assert [o.status for o in result.operations] == [
            Classification.NEW,
            Classification.DUPLICATE,
            Classification.DUPLICATE,
        ]
        assert result.operations[1].reason == "duplicate of an earlier operation in this file"
        assert result.duplicate_count == 2

    @pytest.mark.asyncio
    async def test_repeated_existing_route_stays_existing(
        self, store: InMemoryEndpointStore, project: Project, add_endpoint: AddEndpoint
    ) -> None:
        await add_endpoint("GET", "/users")
        result = await reconcile.preview(store, project.id, [_op("GET", "/users"), _op("GET", "/users")])
        assert [o.status for o in result.operations] == [Classification.EXISTING, Classification.EXISTING]

    @pytest.mark.asyncio
    async def test_templates_compare_literally(
        self, store: InMemoryEndpointStore, project: Project, add_endpoint: AddEndpoint
    ) -> None:
        await add_endpoint("GET", "/users/{id}")
        result = await reconcile.preview(
            store, project.id, [_op("GET", "/users/{id}"), _op("GET", "/users/me"), _op("GET", "/users/{userId}")]
        )
        assert [o.status for o in result.operations] == [
            Classification.EXISTING,
            Classification.NEW,
            Classification.NEW,
        ]

    @pytest.mark.asyncio
    async def test_is_idempotent_and_writes_nothing(self, store: InMemoryEndpointStore, project: Project) -> None:
        ops = [_op("GET", "/a"), _op("GET", "/a"), _op("PUT", "/b")]
        first = await reconcile.preview(store, project.id, ops)
        second = await reconcile.preview(store, project.id, ops)
        assert first == second
        assert await store.list_endpoints(project.id) == []

    @pytest.mark.asyncio
    async def test_new_operations_drops_classification(self, store: InMemoryEndpointStore, project: Project) -> None:
        result = await reconcile.preview(store, project.id, [_op("GET", "/a", response_status=201), _op("GET", "/a")])
        assert result.new_operations() == [_op("GET", "/a", response_status=201)]

    @pytest.mark.asyncio
    async def test_warns_about_new_operations_commit_would_reject(
        self, store: InMemoryEndpointStore, project: Project
    ) -> None:
        ops = [_op("GET", "/files/{name}.json"), _op("GET", "/files")]

        result = await reconcile.preview(store, project.id, ops)

        invalid, valid = result.operations
        assert invalid.status is Classification.NEW
        assert invalid.reason is None
        assert invalid.warning is not None
        assert "{name}.json" in invalid.warning
        assert valid.warning is None

        committed = await reconcile.commit(store, project.id, result.new_operations())
        assert [s.reason for s in committed.skipped] == [invalid.warning]

    @pytest.mark.asyncio
    async def test_unknown_project(self, store: InMemoryEndpointStore) -> None:
        with pytest.raises(NotFoundError):
            await reconcile.preview(store, "missing", [])


class TestCommit:
    @pytest.mark.asyncio
    async def test_creates_all_new_operations(self, store: InMemoryEndpointStore, project: Project) -> None:
        ops = [_op("GET", "/a", response_body='{"a": 1}'), _op("POST", "/a", response_status=201)]

        result = await reconcile.commit(store, project.id, ops)

        routes = [(e.method, e.path, e.response_status) for e in result.created]
        assert routes == [("GET", "/a", 200), ("POST", "/a", 201)]
        assert result.skipped == []
        assert result.not_attempted == []
        assert result.error is None
        assert await store.list_endpoints(project.id) == result.created

    @pytest.mark.asyncio
    async def test_skips_concurrently_created_item(self, store: InMemoryEndpointStore, project: Project) -> None:
        ops = [_op("GET", "/a"), _op("GET", "/b"), _op("GET", "/c")]
        preview = await reconcile.preview(store, project.id, ops)

        # Another actor creates /b between preview and commit.
        await store.create_endpoint(project.id, EndpointDraft(method="GET", path="/b"))
        result = await reconcile.commit(store, project.id, preview.new_operations())

        assert [e.path for e in result.created] == ["/a", "/c"]
        assert [(s.method, s.path, s.reason) for s in result.skipped] == [("GET", "/b", "endpoint already exists")]

    @pytest.mark.asyncio
    async def test_store_conflict_becomes_skip(self, store: InMemoryEndpointStore, project: Project) -> None:
        original = store.create_endpoint

        async def racing_create(project_id: str, draft: EndpointDraft) -> Endpoint:
            if draft.path == "/b":
                await original(project_id, draft)
                raise ConflictError("lost the race")
            return await original(project_id, draft)

        with patch.object(store, "create_endpoint", side_effect=racing_create):
            result = await reconcile.commit(store, project.id, [_op("GET", "/a"), _op("GET", "/b")])

        assert [e.path for e in result.created] == ["/a"]
        assert [s.reason for s in result.skipped] == ["endpoint already exists"]

    @pytest.mark.asyncio
    async def test_duplicates_within_batch_are_skipped(self, store: InMemoryEndpointStore, project: Project) -> None:
        result = await reconcile.commit(store, project.id, [_op("GET", "/a"), _op("GET", "/a/")])
        assert len(result.created) == 1
        assert [s.reason for s in result.skipped] == ["duplicate of an earlier operation in this batch"]

    @pytest.mark.asyncio
    async def test_invalid_item_is_skipped_with_message(self, store: InMemoryEndpointStore, project: Project) -> None:
        result = await reconcile.commit(store, project.id, [_op("FETCH", "/a"), _op("GET", "/b")])
        assert [e.path for e in result.created] == ["/b"]
        assert result.skipped[0].method == "FETCH"
        assert "Unsupported HTTP method" in result.skipped[0].reason

    @pytest.mark.asyncio
    async def test_twice_never_duplicates(self, store: InMemoryEndpointStore, project: Project) -> None:
        await reconcile.commit(store, project.id, [_op("GET", "/a"), _op("GET", "/b")])
        second = await reconcile.commit(store, project.id, [_op("GET", "/b"), _op("GET", "/c")])

        assert [e.path for e in second.created] == ["/c"]
        routes = [(e.method, e.path) for e in await store.list_endpoints(project.id)]
        assert sorted(routes) == [("GET", "/a"), ("GET", "/b"), ("GET", "/c")]

    @pytest.mark.asyncio
    async def test_store_outage_aborts_remaining_batch(self, store: InMemoryEndpointStore, project: Project) -> None:
        original = store.create_endpoint

        async def flaky_create(project_id: str, draft: EndpointDraft) -> Endpoint:
            if draft.path == "/c":
                raise StoreUnavailableError("connection refused")
            return await original(project_id, draft)

        await store.create_endpoint(project.id, EndpointDraft(method="GET", path="/b"))
        ops = [_op("GET", "/a"), _op("GET", "/b"), _op("GET", "/c"), _op("GET", "/d")]
        with patch.object(store, "create_endpoint", side_effect=flaky_create):
            result = await reconcile.commit(store, project.id, ops)

        assert result.aborted
        assert result.error == "connection refused"
        assert [e.path for e in result.created] == ["/a"]
        assert [s.path for s in result.skipped] == ["/b"]
        assert [(r.method, r.path) for r in result.not_attempted] == [("GET", "/c"), ("GET", "/d")]

    @pytest.mark.asyncio
    async def test_committed_endpoint_is_servable(self, store: InMemoryEndpointStore, project: Project) -> None:
        headers = '{"Content-Type": "application/json"}'
        ops = [_op("GET", "/users/{id}", response_body='{"id": 0}', response_headers=headers)]
        [created] = (await reconcile.commit(store, project.id, ops)).created

        result = await serve(store, project.code, created.method, created.path)

        assert isinstance(result, RenderedResponse)
        assert result.body == '{"id": 0}'
        assert result.headers == {"Content-Type": "application/json"}
