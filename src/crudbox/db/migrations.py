from alembic.config import Config

from alembic import command

from crudbox.db.engine import get_database_url


def run_migrations(db_url: str | None = None, revision: str = "head") -> None:
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", db_url or get_database_url())
    command.upgrade(alembic_cfg, revision)
