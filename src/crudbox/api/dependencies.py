from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Request

from crudbox.core.ports.store import EndpointStore
from crudbox.core.serving import ServeStats
from crudbox.db import create_store

_store: EndpointStore | None = None


async def get_store() -> AsyncIterator[EndpointStore]:
    """Yield an ``EndpointStore`` instance, creating it lazily on first call."""
    global _store  # noqa: PLW0603
    if _store is None:
        _store = create_store()
    yield _store


async def shutdown_store() -> None:
    global _store  # noqa: PLW0603
    if _store is not None:
        await _store.dispose()
        _store = None


def get_serve_stats(request: Request) -> ServeStats:
    stats: ServeStats = request.app.state.serve_stats
    return stats
