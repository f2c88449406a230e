from .base import Base, get_engine, get_session_local, reset_engine, unit_of_work

# ---- Reference data ------------------------------------------------------
from .client import Client
from .resource import Resource
from .unit import Unit

# ---- Documents -----------------------------------------------------------
from .receipt import ReceiptDocument, ReceiptItem
from .shipment import ShipmentDocument, ShipmentItem

# ---- Derived -------------------------------------------------------------
from .balance import Balance

__all__ = [
    # session / base
    "Base", "get_engine", "get_session_local", "reset_engine", "unit_of_work", "init_db",
    # models
    "Client", "Resource", "Unit",
    "ReceiptDocument", "ReceiptItem", "ShipmentDocument", "ShipmentItem",
    "Balance",
]

import sqlite3 as _sqlite3
from sqlalchemy import event as _sa_event
from sqlalchemy.engine import Engine as _Engine


@_sa_event.listens_for(_Engine, "connect")
def _set_sqlite_pragma(dbapi_conn, _record):
    """Enable foreign_keys on every new SQLite connection (ON DELETE CASCADE/RESTRICT)."""
    if isinstance(dbapi_conn, _sqlite3.Connection):
        dbapi_conn.execute("PRAGMA foreign_keys = ON")


def init_db(engine=None):
    """Create every table directly from the metadata (tests, throwaway databases)."""
    Base.metadata.create_all(bind=engine or get_engine())
