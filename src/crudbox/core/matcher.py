"""Resolve a concrete request path against a project's stored endpoints.

Matching rules:

- an endpoint whose method and path string are equal to the request wins outright;
- otherwise templated paths are compared segment by segment, where ``{name}``
  segments match any single non-empty segment and the segment counts must be
  equal;
- among several templated candidates the one with more literal segments wins,
  and remaining ties go to the earliest-created endpoint.

Endpoints are expected in creation order, as ``EndpointStore.list_endpoints``
returns them.
"""

import logging
from collections.abc import Sequence

from crudbox.core.paths import is_param_segment, normalize_path, split_segments
from crudbox.core.ports.store import EndpointStore
from crudbox.models import Endpoint

logger = logging.getLogger(__name__)


def _template_score(template: str, request_segments: list[str]) -> int | None:
    """Return the number of literal segments if ``template`` matches, else None."""
    template_segments = split_segments(template)
    if len(template_segments) != len(request_segments):
        return None
    literals = 0
    for pattern, actual in zip(template_segments, request_segments, strict=True):
        if is_param_segment(pattern):
            continue
        if pattern != actual:
            return None
        literals += 1
    return literals


def find_exact(endpoints: Sequence[Endpoint], method: str, path: str) -> Endpoint | None:
    """Return the earliest endpoint whose method and path pattern equal the given ones."""
    method = method.upper()
    path = normalize_path(path)
    matches = [e for e in endpoints if e.method == method and e.path == path]
    if len(matches) > 1:
        logger.warning(
            "project %s stores %d endpoints for %s %s; using the earliest",
            matches[0].project_id,
            len(matches),
            method,
            path,
        )
    return matches[0] if matches else None


def match_endpoint(endpoints: Sequence[Endpoint], method: str, path: str) -> Endpoint | None:
    """Return the best endpoint for a concrete request, or None when nothing matches."""
    method = method.upper()
    path = normalize_path(path)

    exact = find_exact(endpoints, method, path)
    if exact is not None:
        return exact

    request_segments = split_segments(path)
    best: Endpoint | None = None
    best_score = -1
    for endpoint in endpoints:
        if endpoint.method != method:
            continue
        score = _template_score(endpoint.path, request_segments)
        # Strictly greater keeps the earliest endpoint on ties.
        if score is not None and score > best_score:
            best, best_score = endpoint, score
    return best


async def match(store: EndpointStore, project_id: str, method: str, path: str) -> Endpoint | None:
    endpoints = await store.list_endpoints(project_id)
    return match_endpoint(endpoints, method, path)


def find_duplicate_routes(endpoints: Sequence[Endpoint]) -> list[list[Endpoint]]:
    """Group endpoints that share a ``(method, path)`` pair, keeping creation order."""
    groups: dict[tuple[str, str], list[Endpoint]] = {}
    for endpoint in endpoints:
        groups.setdefault((endpoint.method, endpoint.path), []).append(endpoint)
    return [group for group in groups.values() if len(group) > 1]
