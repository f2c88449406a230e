# core/__init__.py
"""
Warehouse Core Module
=====================

Process-wide plumbing shared by the database and service layers.

Public API:
    - Configuration: Config, config
    - Logging: LoggingConfig
    - Utilities: SingletonMeta
"""

from .config import Config, config
from .logging_config import LoggingConfig
from .singleton import SingletonMeta

__all__ = [
    "Config",
    "config",
    "LoggingConfig",
    "SingletonMeta",
]
