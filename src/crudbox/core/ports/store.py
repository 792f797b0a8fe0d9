from typing import Protocol

from crudbox.models import Endpoint, EndpointDraft, Project


class EndpointStore(Protocol):
    """Durable keyed collection of projects and their endpoint definitions.

    Implementations raise ``ConflictError`` when a write would break a
    uniqueness rule (project code, or ``(method, path)`` within a project),
    ``NotFoundError`` when a write targets a project that does not exist,
    and ``StoreUnavailableError`` when the backend cannot be reached.
    ``list_endpoints`` returns endpoints in creation order.
    """

    async def ensure_ready(self) -> None: ...

    async def create_project(self, name: str, code: str) -> Project: ...

    async def get_project(self, project_id: str) -> Project | None: ...

    async def get_project_by_code(self, code: str) -> Project | None: ...

    async def list_projects(self) -> list[Project]: ...

    async def delete_project(self, project_id: str) -> bool: ...

    async def create_endpoint(self, project_id: str, draft: EndpointDraft) -> Endpoint: ...

    async def get_endpoint(self, endpoint_id: str) -> Endpoint | None: ...

    async def list_endpoints(self, project_id: str) -> list[Endpoint]: ...

    async def update_endpoint(self, endpoint_id: str, draft: EndpointDraft) -> Endpoint | None: ...

    async def delete_endpoint(self, endpoint_id: str) -> bool: ...

    async def count(self) -> dict[str, int]: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...
