"""Mock serving: resolve ``(code, method, path)`` to a stored response.

Serving is read-only. Each call reads the project's endpoints once and both
matches and renders from that same snapshot.
"""

import json
import logging
import time
from dataclasses import dataclass, field

from crudbox.core.matcher import match_endpoint
from crudbox.core.ports.store import EndpointStore
from crudbox.models import Endpoint, RenderedResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectNotFound:
    code: str


@dataclass(frozen=True)
class RouteNotFound:
    code: str
    method: str
    path: str


ServeResult = RenderedResponse | ProjectNotFound | RouteNotFound


@dataclass
class ServeStats:
    """In-process counters for the serving path."""

    hits: int = 0
    project_misses: int = 0
    route_misses: int = 0
    total_seconds: float = 0.0
    by_project: dict[str, int] = field(default_factory=dict)

    @property
    def requests(self) -> int:
        return self.hits + self.project_misses + self.route_misses

    def record(self, code: str, result: ServeResult, elapsed: float) -> None:
        self.total_seconds += elapsed
        if isinstance(result, ProjectNotFound):
            self.project_misses += 1
            return
        self.by_project[code] = self.by_project.get(code, 0) + 1
        if isinstance(result, RouteNotFound):
            self.route_misses += 1
        else:
            self.hits += 1

    def snapshot(self) -> dict[str, float | int]:
        avg_ms = (self.total_seconds / self.requests * 1000) if self.requests else 0.0
        return {
            "requests": self.requests,
            "hits": self.hits,
            "project_misses": self.project_misses,
            "route_misses": self.route_misses,
            "avg_latency_ms": round(avg_ms, 3),
        }


def decode_headers(endpoint: Endpoint) -> dict[str, str]:
    if not endpoint.response_headers.strip():
        return {}
    try:
        decoded = json.loads(endpoint.response_headers)
    except json.JSONDecodeError:
        logger.warning("endpoint %s has undecodable response headers; serving without them", endpoint.id)
        return {}
    if not isinstance(decoded, dict):
        logger.warning("endpoint %s response headers are not an object; serving without them", endpoint.id)
        return {}
    return {str(k): str(v) for k, v in decoded.items()}


def render(endpoint: Endpoint) -> RenderedResponse:
    return RenderedResponse(
        status=endpoint.response_status,
        headers=decode_headers(endpoint),
        body=endpoint.response_body,
    )


async def serve(
    store: EndpointStore,
    code: str,
    method: str,
    path: str,
    stats: ServeStats | None = None,
) -> ServeResult:
    started = time.perf_counter()
    result = await _resolve(store, code, method, path)
    if stats is not None:
        stats.record(code, result, time.perf_counter() - started)
    return result


async def _resolve(store: EndpointStore, code: str, method: str, path: str) -> ServeResult:
    project = await store.get_project_by_code(code)
    if project is None:
        logger.info("mock miss: unknown project code %r (%s %s)", code, method, path)
        return ProjectNotFound(code=code)

    endpoints = await store.list_endpoints(project.id)
    endpoint = match_endpoint(endpoints, method, path)
    if endpoint is None:
        logger.info("mock miss: no route in project %s for %s %s", code, method.upper(), path)
        return RouteNotFound(code=code, method=method.upper(), path=path)

    logger.debug("mock hit: %s %s -> endpoint %s (%s)", method.upper(), path, endpoint.id, endpoint.path)
    return render(endpoint)
