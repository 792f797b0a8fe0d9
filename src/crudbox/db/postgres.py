import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from crudbox.errors import ConflictError, NotFoundError, StoreUnavailableError
from crudbox.models import Endpoint, EndpointDraft, Project

logger = logging.getLogger(__name__)

_PROJECT_COLUMNS = "id, name, code, created_at, updated_at"

_ENDPOINT_COLUMNS = (
    "id, project_id, method, path, response_status, response_body, response_headers, created_at, updated_at"
)

_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, OSError, asyncio.TimeoutError)


def _row_to_project(row: Any) -> Project:
    return Project(
        id=str(row[0]),
        name=str(row[1]),
        code=str(row[2]),
        created_at=row[3],
        updated_at=row[4],
    )


def _row_to_endpoint(row: Any) -> Endpoint:
    return Endpoint(
        id=str(row[0]),
        project_id=str(row[1]),
        method=str(row[2]),
        path=str(row[3]),
        response_status=int(row[4]),
        response_body=str(row[5]),
        response_headers=str(row[6]),
        created_at=row[7],
        updated_at=row[8],
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class PostgresEndpointStore:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @asynccontextmanager
    async def _begin(self) -> AsyncIterator[AsyncConnection]:
        """Open a transaction, translating connectivity failures to ``StoreUnavailableError``."""
        try:
            async with self._engine.begin() as conn:
                yield conn
        except _UNAVAILABLE_ERRORS as exc:
            logger.error("database unavailable: %s", exc)
            raise StoreUnavailableError(f"database unavailable: {exc}") from exc

    async def ensure_ready(self) -> None:
        """Fail fast when the schema has not been migrated."""
        async with self._begin() as conn:
            result = await conn.execute(text("SELECT to_regclass('public.endpoints')"))
            if result.scalar_one_or_none() is None:
                raise StoreUnavailableError("table 'endpoints' is missing; run 'crudbox db migrate'")

    async def create_project(self, name: str, code: str) -> Project:
        now = datetime.now(timezone.utc)
        try:
            async with self._begin() as conn:
                result = await conn.execute(
                    text(
                        f"""
                        INSERT INTO projects (id, name, code, created_at, updated_at)
                        VALUES (:id, :name, :code, :now, :now)
                        RETURNING {_PROJECT_COLUMNS}
                        """
                    ),
                    {"id": uuid.uuid4(), "name": name, "code": code, "now": now},
                )
                return _row_to_project(result.one())
        except IntegrityError as exc:
            raise ConflictError(f"Project code {code} is already in use") from exc

    async def get_project(self, project_id: str) -> Project | None:
        if not _is_uuid(project_id):
            return None
        async with self._begin() as conn:
            result = await conn.execute(
                text(f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE id = :id"),
                {"id": project_id},
            )
            row = result.fetchone()
            return _row_to_project(row) if row is not None else None

    async def get_project_by_code(self, code: str) -> Project | None:
        async with self._begin() as conn:
            result = await conn.execute(
                text(f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE code = :code"),
                {"code": code},
            )
            row = result.fetchone()
            return _row_to_project(row) if row is not None else None

    async def list_projects(self) -> list[Project]:
        async with self._begin() as conn:
            result = await conn.execute(text(f"SELECT {_PROJECT_COLUMNS} FROM projects ORDER BY created_at, id"))
            return [_row_to_project(row) for row in result.fetchall()]

    async def delete_project(self, project_id: str) -> bool:
        if not _is_uuid(project_id):
            return False
        async with self._begin() as conn:
            result = await conn.execute(text("DELETE FROM projects WHERE id = :id"), {"id": project_id})
            return bool(result.rowcount)

    async def create_endpoint(self, project_id: str, draft: EndpointDraft) -> Endpoint:
        if not _is_uuid(project_id):
            raise NotFoundError(f"Project {project_id} not found")
        now = datetime.now(timezone.utc)
        try:
            async with self._begin() as conn:
                # Row lock serializes endpoint writes per project.
                locked = await conn.execute(
                    text("SELECT id FROM projects WHERE id = :id FOR UPDATE"),
                    {"id": project_id},
                )
                if locked.scalar_one_or_none() is None:
                    raise NotFoundError(f"Project {project_id} not found")
                result = await conn.execute(
                    text(
                        f"""
                        INSERT INTO endpoints (id, project_id, method, path, response_status,
                                               response_body, response_headers, created_at, updated_at)
                        VALUES (:id, :project_id, :method, :path, :response_status,
                                :response_body, :response_headers, :now, :now)
                        RETURNING {_ENDPOINT_COLUMNS}
                        """
                    ),
                    {"id": uuid.uuid4(), "project_id": project_id, "now": now, **draft.model_dump()},
                )
                return _row_to_endpoint(result.one())
        except IntegrityError as exc:
            raise ConflictError(f"{draft.method} {draft.path} already exists in project {project_id}") from exc

    async def get_endpoint(self, endpoint_id: str) -> Endpoint | None:
        if not _is_uuid(endpoint_id):
            return None
        async with self._begin() as conn:
            result = await conn.execute(
                text(f"SELECT {_ENDPOINT_COLUMNS} FROM endpoints WHERE id = :id"),
                {"id": endpoint_id},
            )
            row = result.fetchone()
            return _row_to_endpoint(row) if row is not None else None

    async def list_endpoints(self, project_id: str) -> list[Endpoint]:
        if not _is_uuid(project_id):
            return []
        async with self._begin() as conn:
            result = await conn.execute(
                text(f"SELECT {_ENDPOINT_COLUMNS} FROM endpoints WHERE project_id = :project_id ORDER BY seq"),
                {"project_id": project_id},
            )
            return [_row_to_endpoint(row) for row in result.fetchall()]

    async def update_endpoint(self, endpoint_id: str, draft: EndpointDraft) -> Endpoint | None:
        if not _is_uuid(endpoint_id):
            return None
        try:
            async with self._begin() as conn:
                await conn.execute(
                    text(
                        "SELECT p.id FROM projects p JOIN endpoints e ON e.project_id = p.id "
                        "WHERE e.id = :id FOR UPDATE OF p"
                    ),
                    {"id": endpoint_id},
                )
                result = await conn.execute(
                    text(
                        f"""
                        UPDATE endpoints
                        SET method = :method, path = :path, response_status = :response_status,
                            response_body = :response_body, response_headers = :response_headers,
                            updated_at = :now
                        WHERE id = :id
                        RETURNING {_ENDPOINT_COLUMNS}
                        """
                    ),
                    {"id": endpoint_id, "now": datetime.now(timezone.utc), **draft.model_dump()},
                )
                row = result.fetchone()
                return _row_to_endpoint(row) if row is not None else None
        except IntegrityError as exc:
            raise ConflictError(f"{draft.method} {draft.path} already exists") from exc

    async def delete_endpoint(self, endpoint_id: str) -> bool:
        if not _is_uuid(endpoint_id):
            return False
        async with self._begin() as conn:
            result = await conn.execute(text("DELETE FROM endpoints WHERE id = :id"), {"id": endpoint_id})
            return bool(result.rowcount)

    async def count(self) -> dict[str, int]:
        async with self._begin() as conn:
            result = await conn.execute(
                text("SELECT (SELECT count(*) FROM projects), (SELECT count(*) FROM endpoints)")
            )
            projects, endpoints = result.one()
            return {"projects": int(projects), "endpoints": int(endpoints)}

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    async def dispose(self) -> None:
        await self._engine.dispose()
