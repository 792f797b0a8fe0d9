"""Session-scoped fixtures for integration tests."""

import warnings
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs

from alembic import command
from alembic.config import Config
from crudbox.db import PostgresEndpointStore

_REPO_ROOT = Path(__file__).parent.parent.parent

_IMAGE = "postgres:16-alpine"


def _alembic_config(connection_url: str) -> Config:
    cfg = Config(str(_REPO_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(_REPO_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", connection_url)
    return cfg


@pytest.fixture(scope="session")
def postgres_container() -> Generator[DockerContainer, None, None]:
    """Start a throwaway PostgreSQL container for the session."""
    container = DockerContainer(_IMAGE).with_exposed_ports(5432).with_env("POSTGRES_PASSWORD", "postgres")
    try:
        container.start()
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"Docker is not available: {exc}")
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        # The official image restarts once after init; the second message means ready.
        wait_for_logs(container, r"database system is ready to accept connections(.|\n)*ready to accept", timeout=60)
    yield container
    container.stop()


@pytest.fixture(scope="session")
def test_db_url(postgres_container: DockerContainer) -> str:
    """Async connection URL for the test database."""
    host = postgres_container.get_container_host_ip()
    port = postgres_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://postgres:postgres@{host}:{port}/postgres"


@pytest.fixture(scope="session")
def alembic_config(test_db_url: str) -> Config:
    """Alembic config pointed at the test database."""
    return _alembic_config(test_db_url)


@pytest.fixture(scope="session")
def _run_migrations(alembic_config: Config) -> Generator[None, None, None]:
    """Run migrations once per session, cleanup on teardown."""
    command.upgrade(alembic_config, "head")
    yield
    command.downgrade(alembic_config, "base")


@pytest_asyncio.fixture
async def database(_run_migrations: None, test_db_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Per-test engine so each event loop gets its own connection pool."""
    engine = create_async_engine(test_db_url, future=True)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def pg_store(database: AsyncEngine) -> AsyncGenerator[PostgresEndpointStore, None]:
    """Per-test store over a freshly emptied schema."""
    async with database.begin() as conn:
        await conn.execute(text("TRUNCATE projects CASCADE"))
    instance = PostgresEndpointStore(database)
    await instance.ensure_ready()
    yield instance
