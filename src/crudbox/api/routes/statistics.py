from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from crudbox.api.dependencies import get_serve_stats, get_store
from crudbox.core.ports.store import EndpointStore
from crudbox.core.serving import ServeStats

router = APIRouter(tags=["statistics"])


@router.get("/statistics")
async def statistics(
    store: EndpointStore = Depends(get_store),
    stats: ServeStats = Depends(get_serve_stats),
) -> dict[str, Any]:
    """Stored entity counts plus serving counters since process start."""
    counts = await store.count()
    return {
        "counts": counts,
        "serving": stats.snapshot(),
        "by_project": [
            {"code": code, "requests": requests}
            for code, requests in sorted(stats.by_project.items(), key=lambda item: (-item[1], item[0]))
        ],
    }
