"""
database/models/base.py
========================
Single source of truth for Base, Engine and the session factory.

Principles:
  - one Base for the whole project
  - one Engine per process (lazy singleton), built from DATABASE_URL
  - get_session_local() always returns the same sessionmaker
  - expire_on_commit=False so returned entities stay readable after commit
  - a session flagged ``info["shared"]`` belongs to an outer unit of work:
    repositories flush into it and never commit, roll back or close it
"""
import logging
from contextlib import contextmanager
from typing import Tuple

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker, Session

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine       = None
_SessionLocal = None


def get_engine():
    """
    Return the process-wide engine, creating it on first use.
    """
    global _engine
    if _engine is None:
        from core.config import get_database_url, is_db_echo
        url = get_database_url()
        connect_args = {}
        if make_url(url).get_backend_name() == "sqlite":
            connect_args["check_same_thread"] = False
        _engine = create_engine(
            url,
            echo=is_db_echo(),
            future=True,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        if _engine.dialect.name == "sqlite":
            enable_sqlite_transactions(_engine)
        logger.info(f"Database engine created for {make_url(url).render_as_string(hide_password=True)}")
    return _engine


def enable_sqlite_transactions(engine):
    """
    Let SQLAlchemy emit BEGIN itself instead of pysqlite, so SAVEPOINT
    (``Session.begin_nested``) behaves on SQLite.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_conn, _record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_session_local():
    """
    Return the process-wide sessionmaker.

        with get_session_local()() as session:
            ...
    """
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=get_engine(),
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
    return _SessionLocal


def reset_engine():
    """
    Dispose the engine and forget the sessionmaker.
    Use after DATABASE_URL changes at runtime.
    """
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine       = None
    _SessionLocal = None


def is_shared(session: Session) -> bool:
    return bool(session.info.get("shared"))


def resolve_session(session_factory=None) -> Tuple[Session, bool]:
    """
    Turn whatever the caller handed us into ``(session, owned)``.

    Accepts a Session, a sessionmaker, a callable returning a Session,
    or a callable returning a sessionmaker (``get_session_local``).
    """
    factory = session_factory or get_session_local
    if isinstance(factory, Session):
        return factory, False

    obj = factory()
    if not isinstance(obj, Session):
        obj = obj()
    return obj, not is_shared(obj)


@contextmanager
def unit_of_work(session_factory=None):
    """
    One session for a multi-step operation, committed once at the end.

    Nested inside another unit of work (shared session) the block runs
    in a SAVEPOINT, so a failure undoes only what this block flushed.
    """
    session, owned = resolve_session(session_factory)
    if not owned:
        with session.begin_nested():
            yield session
        return

    session.info["shared"] = True
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.info.pop("shared", None)
        session.close()
