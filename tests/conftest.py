"""
tests/conftest.py
=================
Shared pytest fixtures: in-memory SQLite, no production DB touched.
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def _memory_engine():
    from database.models import Base
    from database.models.base import enable_sqlite_transactions

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    # BEGIN/SAVEPOINT handled by SQLAlchemy; FK pragma comes from database.models
    enable_sqlite_transactions(engine)
    Base.metadata.create_all(engine)
    return engine


# ─── Engine (session-scoped) ──────────────────────────────────────────────────

@pytest.fixture(scope="session")
def db_engine():
    engine = _memory_engine()
    yield engine
    engine.dispose()


# ─── Per-test session (rolled back) ──────────────────────────────────────────

@pytest.fixture
def db_session(db_engine):
    """Each test gets its own transaction that is rolled back on teardown."""
    connection = db_engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection)
    # Repositories and services flush into a shared session and never commit it
    session.info["shared"] = True

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# ─── session_factory for CRUD / services ─────────────────────────────────────

@pytest.fixture
def session_factory(db_session):
    """Returns lambda → db_session so CRUD calls hit the in-memory DB."""
    return lambda: db_session


@pytest.fixture
def owned_session_factory():
    """
    A private engine with a real sessionmaker: repositories open, commit and
    close their own sessions, exactly as in production.
    """
    engine = _memory_engine()
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


# ─── Model factories ─────────────────────────────────────────────────────────

@pytest.fixture
def make_resource(db_session):
    from database.models.resource import Resource
    _n = [0]
    def _f(name=None, archived=False):
        _n[0] += 1
        r = Resource(name=name or f"Resource {_n[0]}")
        if archived:
            r.archive()
        db_session.add(r)
        db_session.flush()
        return r
    return _f


@pytest.fixture
def make_unit(db_session):
    from database.models.unit import Unit
    _n = [0]
    def _f(name=None, archived=False):
        _n[0] += 1
        u = Unit(name=name or f"Unit {_n[0]}")
        if archived:
            u.archive()
        db_session.add(u)
        db_session.flush()
        return u
    return _f


@pytest.fixture
def make_client(db_session):
    from database.models.client import Client
    _n = [0]
    def _f(name=None, address="Main st. 1", archived=False):
        _n[0] += 1
        c = Client(name=name or f"Client {_n[0]}", address=address)
        if archived:
            c.archive()
        db_session.add(c)
        db_session.flush()
        return c
    return _f


@pytest.fixture
def make_receipt(session_factory):
    """Receipt created through ReceiptService, so balances move as well."""
    from services.receipt_service import ReceiptService
    from services.dto import DocumentItemInput, ReceiptCreate
    _n = [0]
    def _f(*lines, number=None, on=date(2026, 1, 15)):
        _n[0] += 1
        items = [DocumentItemInput(resource_id=r.id, unit_id=u.id, quantity=Decimal(str(q)))
                 for r, u, q in lines]
        return ReceiptService(session_factory).create(
            ReceiptCreate(number=number or f"R-{_n[0]:04d}", date=on, items=items)
        )
    return _f


@pytest.fixture
def make_shipment(session_factory):
    """Draft shipment created through ShipmentService."""
    from services.shipment_service import ShipmentService
    from services.dto import DocumentItemInput, ShipmentCreate
    _n = [0]
    def _f(client, *lines, number=None, on=date(2026, 1, 20)):
        _n[0] += 1
        items = [DocumentItemInput(resource_id=r.id, unit_id=u.id, quantity=Decimal(str(q)))
                 for r, u, q in lines]
        return ShipmentService(session_factory).create(
            ShipmentCreate(number=number or f"S-{_n[0]:04d}", date=on,
                           client_id=client.id, items=items)
        )
    return _f
