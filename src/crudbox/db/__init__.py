from crudbox.core.ports.store import EndpointStore
from crudbox.db.engine import MEMORY_URL, get_database_url, get_engine
from crudbox.db.memory import InMemoryEndpointRecord, InMemoryEndpointStore
from crudbox.db.postgres import PostgresEndpointStore


def create_store(db_url: str | None = None) -> EndpointStore:
    """Build the store selected by ``db_url`` (defaults to ``DATABASE_URL``)."""
    url = db_url or get_database_url()
    if url == MEMORY_URL:
        return InMemoryEndpointStore()
    return PostgresEndpointStore(get_engine(url))


__all__ = [
    "MEMORY_URL",
    "EndpointStore",
    "InMemoryEndpointRecord",
    "InMemoryEndpointStore",
    "PostgresEndpointStore",
    "create_store",
    "get_database_url",
    "get_engine",
]
