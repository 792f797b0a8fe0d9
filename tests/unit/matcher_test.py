"""Tests for request-to-endpoint matching."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import pytest

from crudbox.core.matcher import find_duplicate_routes, find_exact, match, match_endpoint
from crudbox.db import InMemoryEndpointStore
from crudbox.models import Endpoint, Project

_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _endpoint(endpoint_id: str, method: str, path: str) -> Endpoint:
    return Endpoint(
        id=endpoint_id,
        project_id="p1",
        method=method,
        path=path,
        response_status=200,
        response_body=endpoint_id,
        response_headers="",
        created_at=_NOW,
        updated_at=_NOW,
    )


class TestMatchEndpoint:
    def test_exact_literal_match(self) -> None:
        endpoints = [_endpoint("a", "GET", "/users")]
        assert match_endpoint(endpoints, "GET", "/users") == endpoints[0]

    def test_method_is_case_insensitive(self) -> None:
        endpoints = [_endpoint("a", "GET", "/users")]
        assert match_endpoint(endpoints, "get", "/users") == endpoints[0]

    def test_method_must_match(self) -> None:
        endpoints = [_endpoint("a", "GET", "/users")]
        assert match_endpoint(endpoints, "POST", "/users") is None

    def test_request_path_is_normalised(self) -> None:
        endpoints = [_endpoint("a", "GET", "/users")]
        assert match_endpoint(endpoints, "GET", "/users/") == endpoints[0]
        assert match_endpoint(endpoints, "GET", "//users") == endpoints[0]

    def test_param_segment_matches_any_single_segment(self) -> None:
        endpoints = [_endpoint("a", "GET", "/users/{id}")]
        assert match_endpoint(endpoints, "GET", "/users/42") == endpoints[0]
        assert match_endpoint(endpoints, "GET", "/users/abc") == endpoints[0]

    def test_segment_counts_must_be_equal(self) -> None:
        endpoints = [_endpoint("a", "GET", "/users/{id}")]
        assert match_endpoint(endpoints, "GET", "/users") is None
        assert match_endpoint(endpoints, "GET", "/users/42/posts") is None

    def test_literal_outranks_template(self) -> None:
        template = _endpoint("template", "GET", "/users/{id}")
        literal = _endpoint("literal", "GET", "/users/me")
        assert match_endpoint([template, literal], "GET", "/users/me") == literal
        assert match_endpoint([template, literal], "GET", "/users/7") == template

    def test_more_literal_segments_win(self) -> None:
        loose = _endpoint("loose", "GET", "/{a}/{b}/c")
        tight = _endpoint("tight", "GET", "/x/{b}/c")
        assert match_endpoint([loose, tight], "GET", "/x/y/c") == tight

    def test_earliest_created_wins_ties(self) -> None:
        first = _endpoint("first", "GET", "/{a}/b")
        second = _endpoint("second", "GET", "/a/{b}")
        assert match_endpoint([first, second], "GET", "/a/b") == first
        assert match_endpoint([second, first], "GET", "/a/b") == second

    def test_no_match_returns_none(self) -> None:
        assert match_endpoint([], "GET", "/anything") is None

    def test_root_path(self) -> None:
        endpoints = [_endpoint("root", "GET", "/")]
        assert match_endpoint(endpoints, "GET", "") == endpoints[0]


class TestFindExact:
    def test_treats_templates_literally(self) -> None:
        template = _endpoint("a", "GET", "/users/{id}")
        assert find_exact([template], "GET", "/users/{id}") == template
        assert find_exact([template], "GET", "/users/1") is None

    def test_duplicates_return_earliest_and_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        first = _endpoint("first", "GET", "/users")
        second = _endpoint("second", "GET", "/users")
        with caplog.at_level(logging.WARNING, logger="crudbox.core.matcher"):
            assert find_exact([first, second], "GET", "/users") == first
        assert "stores 2 endpoints for GET /users" in caplog.text


def test_find_duplicate_routes_groups_in_creation_order() -> None:
    a1 = _endpoint("a1", "GET", "/a")
    b = _endpoint("b", "POST", "/a")
    a2 = _endpoint("a2", "GET", "/a")
    assert find_duplicate_routes([a1, b, a2]) == [[a1, a2]]
    assert find_duplicate_routes([a1, b]) == []


@pytest.mark.asyncio
async def test_match_reads_from_store(
    store: InMemoryEndpointStore, project: Project, add_endpoint: Callable[..., Awaitable[Endpoint]]
) -> None:
    created = await add_endpoint("GET", "/orders/{id}")
    assert await match(store, project.id, "GET", "/orders/9") == created
    assert await match(store, project.id, "DELETE", "/orders/9") is None
