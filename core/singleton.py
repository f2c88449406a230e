"""
singleton.py - Warehouse
========================
Thread-safe singleton metaclass for plain (non-ORM) classes.

    class MyService(metaclass=SingletonMeta):
        def __init__(self):
            ...

    svc1 = MyService()
    svc2 = MyService()
    assert svc1 is svc2

Supports clear_instance() / clear_all_instances() for tests.
"""
from __future__ import annotations

import threading
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class SingletonMeta(type):
    """Metaclass that turns any regular class into a double-checked singleton."""

    _instances: Dict[type, Any] = {}
    _lock: threading.Lock = threading.Lock()

    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            with cls._lock:
                if cls not in cls._instances:
                    instance = super().__call__(*args, **kwargs)
                    cls._instances[cls] = instance
                    logger.debug(f"[Singleton] Created: {cls.__name__}")
        return cls._instances[cls]

    def get_instance(cls, *args, **kwargs):
        """Same as calling the class."""
        return cls(*args, **kwargs)

    def clear_instance(cls) -> None:
        """Drop the cached instance (tests only)."""
        with cls._lock:
            if cls in cls._instances:
                del cls._instances[cls]
                logger.debug(f"[Singleton] Cleared: {cls.__name__}")

    def clear_all_instances(cls) -> None:
        """Drop every cached instance (tests only)."""
        with cls._lock:
            count = len(cls._instances)
            cls._instances.clear()
            logger.debug(f"[Singleton] Cleared all ({count} instances)")


__all__ = ["SingletonMeta"]
