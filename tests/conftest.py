"""Shared fixtures and helpers for tests."""

from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio

from crudbox.db import InMemoryEndpointStore
from crudbox.models import Endpoint, EndpointDraft, Project

_REPO_ROOT = Path(__file__).parent.parent

EndpointFactory = Callable[..., Awaitable[Endpoint]]


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryEndpointStore:
    return InMemoryEndpointStore()


@pytest_asyncio.fixture
async def project(store: InMemoryEndpointStore) -> Project:
    """A project with the fixed code ``ABC12``."""
    return await store.create_project("Demo", "ABC12")


@pytest.fixture
def add_endpoint(store: InMemoryEndpointStore, project: Project) -> EndpointFactory:
    """Write an endpoint straight to the store, bypassing management validation."""

    async def _add(
        method: str,
        path: str,
        response_status: int = 200,
        response_body: str = "",
        response_headers: str = "",
    ) -> Endpoint:
        draft = EndpointDraft(
            method=method,
            path=path,
            response_status=response_status,
            response_body=response_body,
            response_headers=response_headers,
        )
        return await store.create_endpoint(project.id, draft)

    return _add
