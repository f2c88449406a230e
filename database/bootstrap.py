"""
database/bootstrap.py
=====================
Schema setup at process start.

Forward-only Alembic migrations are applied up to ``head`` against the
configured DATABASE_URL. With AUTO_MIGRATE=false the schema is left alone
and only checked for the current revision.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
MIGRATIONS_DIR = _PROJECT_ROOT / "migrations"


def alembic_config(database_url: Optional[str] = None) -> AlembicConfig:
    """Alembic configuration built in code; no alembic.ini needed at runtime."""
    from core.config import get_database_url

    cfg = AlembicConfig()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url or get_database_url())
    return cfg


def run_migrations(database_url: Optional[str] = None, revision: str = "head") -> None:
    logger.info(f"Bootstrap: upgrading schema to {revision}")
    command.upgrade(alembic_config(database_url), revision)


def current_revision(engine=None) -> Optional[str]:
    from database.models.base import get_engine

    with (engine or get_engine()).connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def run_bootstrap() -> Optional[str]:
    """
    Bring the schema up to date (when AUTO_MIGRATE is on) and report the
    revision the database ends up at.
    """
    from core.config import is_auto_migrate

    if is_auto_migrate():
        run_migrations()
    else:
        logger.info("Bootstrap: AUTO_MIGRATE disabled, schema left untouched")

    revision = current_revision()
    if revision is None:
        logger.warning("Bootstrap: database has no schema revision; run migrations first")
    else:
        logger.info(f"Bootstrap: database at revision {revision}")
    return revision
