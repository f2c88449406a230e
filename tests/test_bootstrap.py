# -*- coding: utf-8 -*-
"""
tests/test_bootstrap.py
=========================
Alembic migrations applied to a throwaway SQLite file.
"""
import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from database.bootstrap import current_revision, run_bootstrap, run_migrations
from database.models import Base
from database.models.base import reset_engine

HEAD = "w0001_initial"


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'warehouse.db'}"


@pytest.fixture
def use_database(db_url, monkeypatch):
    """Point the process-wide engine at the throwaway file."""
    monkeypatch.setenv("DATABASE_URL", db_url)
    reset_engine()
    yield db_url
    reset_engine()


class TestMigrations:

    def test_upgrade_creates_every_table(self, db_url):
        run_migrations(db_url)
        engine = create_engine(db_url)
        try:
            tables = set(inspect(engine).get_table_names())
            assert set(Base.metadata.tables) <= tables
            assert current_revision(engine) == HEAD
        finally:
            engine.dispose()

    def test_upgrade_is_repeatable(self, db_url):
        run_migrations(db_url)
        run_migrations(db_url)
        engine = create_engine(db_url)
        try:
            assert current_revision(engine) == HEAD
        finally:
            engine.dispose()

    def test_case_insensitive_name_index(self, db_url):
        run_migrations(db_url)
        engine = create_engine(db_url)
        try:
            with engine.begin() as conn:
                conn.execute(text(
                    "INSERT INTO units (name, created_at, is_archived) VALUES ('kg', CURRENT_TIMESTAMP, 0)"
                ))
                with pytest.raises(IntegrityError):
                    conn.execute(text(
                        "INSERT INTO units (name, created_at, is_archived) VALUES ('KG', CURRENT_TIMESTAMP, 0)"
                    ))
        finally:
            engine.dispose()


class TestRunBootstrap:

    def test_migrates_configured_database(self, use_database, monkeypatch):
        monkeypatch.delenv("AUTO_MIGRATE", raising=False)
        assert run_bootstrap() == HEAD

    def test_auto_migrate_off_leaves_schema_alone(self, use_database, monkeypatch):
        monkeypatch.setenv("AUTO_MIGRATE", "false")
        assert run_bootstrap() is None
