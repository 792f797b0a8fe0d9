import logging
import secrets
import string

from crudbox.core.ports.store import EndpointStore
from crudbox.errors import ConflictError, NotFoundError, ValidationError
from crudbox.models import Project

logger = logging.getLogger(__name__)

CODE_LENGTH = 5
CODE_ALPHABET = string.ascii_letters + string.digits

_MAX_CODE_ATTEMPTS = 16


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def create_project(store: EndpointStore, name: str) -> Project:
    """Create a project under a freshly generated, globally unique short code."""
    name = name.strip()
    if not name:
        raise ValidationError("Project name must not be empty")

    for _ in range(_MAX_CODE_ATTEMPTS):
        code = generate_code()
        if await store.get_project_by_code(code) is not None:
            continue
        try:
            project = await store.create_project(name, code)
        except ConflictError:
            logger.debug("project code %s taken concurrently, retrying", code)
            continue
        logger.info("created project %s (%s) with code %s", project.id, project.name, project.code)
        return project
    raise ConflictError(f"Could not allocate a unique project code after {_MAX_CODE_ATTEMPTS} attempts")


async def get_project(store: EndpointStore, project_id: str) -> Project:
    project = await store.get_project(project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")
    return project


async def list_projects(store: EndpointStore) -> list[Project]:
    return await store.list_projects()


async def delete_project(store: EndpointStore, project_id: str) -> None:
    if not await store.delete_project(project_id):
        raise NotFoundError(f"Project {project_id} not found")
    logger.info("deleted project %s and its endpoints", project_id)
