"""
migrations/env.py
=================
Alembic environment for the warehouse schema.

  - database URL comes from the Alembic config (set by database.bootstrap)
    or, failing that, from core.config.get_database_url()
  - Base.metadata drives autogenerate
  - offline and online modes
  - render_as_batch for SQLite (no direct ALTER TABLE)
"""
from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import engine_from_config, pool

from alembic import context

# Make `database.models` importable when alembic runs from another cwd
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

config = context.config

# Only the CLI has an ini file; programmatic runs keep the app's logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

from database.models import Base  # noqa: E402  registers every model

target_metadata = Base.metadata


def get_database_url() -> str:
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return url
    from core.config import get_database_url as _configured_url
    return _configured_url()


def include_object(obj, name, type_, reflected, compare_to):
    """Skip Alembic's own table and scratch tables."""
    if type_ == "table":
        if name == "alembic_version":
            return False
        if name.startswith("tmp_") or name.startswith("_"):
            return False
    return True


def run_migrations_offline() -> None:
    """Emit SQL without a live connection."""
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_object=include_object,
        render_as_batch=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = get_database_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            render_as_batch=True,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
