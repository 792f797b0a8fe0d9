import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from crudbox.errors import ConflictError, NotFoundError, StoreUnavailableError
from crudbox.models import Endpoint, EndpointDraft, Project


@dataclass(frozen=True)
class InMemoryEndpointRecord:
    seq: int
    endpoint: Endpoint


class InMemoryEndpointStore:
    """Process-local store with the same uniqueness rules as the PostgreSQL schema.

    Mutations hold a lock, so checks and writes cannot interleave. Readers get
    list copies of immutable models, never the live containers.
    """

    def __init__(self, enforce_unique_routes: bool = True) -> None:
        self.projects: dict[str, Project] = {}
        self.projects_by_code: dict[str, str] = {}
        self.endpoints: dict[str, InMemoryEndpointRecord] = {}
        self.enforce_unique_routes = enforce_unique_routes
        self.available = True
        self._lock = threading.Lock()
        self._next_seq = 1

    def _check_available(self) -> None:
        # Lets tests simulate an outage.
        if not self.available:
            raise StoreUnavailableError("in-memory store marked unavailable")

    def _project_records(self, project_id: str) -> list[InMemoryEndpointRecord]:
        records = [r for r in self.endpoints.values() if r.endpoint.project_id == project_id]
        return sorted(records, key=lambda r: r.seq)

    def _route_taken(self, project_id: str, draft: EndpointDraft, ignore_id: str | None = None) -> bool:
        return any(
            r.endpoint.method == draft.method and r.endpoint.path == draft.path and r.endpoint.id != ignore_id
            for r in self._project_records(project_id)
        )

    async def ensure_ready(self) -> None:
        pass

    async def create_project(self, name: str, code: str) -> Project:
        self._check_available()
        with self._lock:
            if code in self.projects_by_code:
                raise ConflictError(f"Project code {code} is already in use")
            now = datetime.now(timezone.utc)
            project = Project(id=str(uuid.uuid4()), name=name, code=code, created_at=now, updated_at=now)
            self.projects[project.id] = project
            self.projects_by_code[code] = project.id
            return project

    async def get_project(self, project_id: str) -> Project | None:
        self._check_available()
        return self.projects.get(project_id)

    async def get_project_by_code(self, code: str) -> Project | None:
        self._check_available()
        project_id = self.projects_by_code.get(code)
        return self.projects.get(project_id) if project_id is not None else None

    async def list_projects(self) -> list[Project]:
        self._check_available()
        return sorted(self.projects.values(), key=lambda p: (p.created_at, p.id))

    async def delete_project(self, project_id: str) -> bool:
        self._check_available()
        with self._lock:
            project = self.projects.pop(project_id, None)
            if project is None:
                return False
            self.projects_by_code.pop(project.code, None)
            for endpoint_id in [r.endpoint.id for r in self._project_records(project_id)]:
                del self.endpoints[endpoint_id]
            return True

    async def create_endpoint(self, project_id: str, draft: EndpointDraft) -> Endpoint:
        self._check_available()
        with self._lock:
            if project_id not in self.projects:
                raise NotFoundError(f"Project {project_id} not found")
            if self.enforce_unique_routes and self._route_taken(project_id, draft):
                raise ConflictError(f"{draft.method} {draft.path} already exists in project {project_id}")
            now = datetime.now(timezone.utc)
            endpoint = Endpoint(
                id=str(uuid.uuid4()),
                project_id=project_id,
                created_at=now,
                updated_at=now,
                **draft.model_dump(),
            )
            self.endpoints[endpoint.id] = InMemoryEndpointRecord(seq=self._next_seq, endpoint=endpoint)
            self._next_seq += 1
            return endpoint

    async def get_endpoint(self, endpoint_id: str) -> Endpoint | None:
        self._check_available()
        record = self.endpoints.get(endpoint_id)
        return record.endpoint if record is not None else None

    async def list_endpoints(self, project_id: str) -> list[Endpoint]:
        self._check_available()
        with self._lock:
            return [r.endpoint for r in self._project_records(project_id)]

    async def update_endpoint(self, endpoint_id: str, draft: EndpointDraft) -> Endpoint | None:
        self._check_available()
        with self._lock:
            record = self.endpoints.get(endpoint_id)
            if record is None:
                return None
            current = record.endpoint
            if self.enforce_unique_routes and self._route_taken(current.project_id, draft, ignore_id=endpoint_id):
                raise ConflictError(f"{draft.method} {draft.path} already exists in project {current.project_id}")
            updated = current.model_copy(update={**draft.model_dump(), "updated_at": datetime.now(timezone.utc)})
            self.endpoints[endpoint_id] = InMemoryEndpointRecord(seq=record.seq, endpoint=updated)
            return updated

    async def delete_endpoint(self, endpoint_id: str) -> bool:
        self._check_available()
        with self._lock:
            return self.endpoints.pop(endpoint_id, None) is not None

    async def count(self) -> dict[str, int]:
        self._check_available()
        return {"projects": len(self.projects), "endpoints": len(self.endpoints)}

    async def ping(self) -> bool:
        return self.available

    async def dispose(self) -> None:
        pass
