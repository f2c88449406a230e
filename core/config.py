"""
Configuration Manager with Environment Variables Support

Usage:
    from core.config import config

    db_url = config.get("DATABASE_URL")
    origins = get_cors_origins()
"""
import os
import re
import json
import logging
from core.singleton import SingletonMeta
from typing import Any, Dict, List
from pathlib import Path
from dotenv import load_dotenv

from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///warehouse.db"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


class Config(metaclass=SingletonMeta):
    """
    Unified configuration manager that supports:
    - Environment variables (.env)
    - JSON configuration file
    - Default values and type conversion
    """

    def __init__(self, env_file: str = ".env", config_file: str = "config/settings.json"):
        self._env_loaded = False
        self._config_cache: Dict[str, Any] = {}
        self._env_file_path = Path(env_file)
        self._config_file_path = Path(config_file)

        self._load_env()
        self._load_json_config()

    def _load_env(self):
        """Load environment variables from .env file"""
        if self._env_file_path.exists():
            load_dotenv(self._env_file_path)
            self._env_loaded = True
            logger.info(f"Environment variables loaded from {self._env_file_path}")
        else:
            logger.debug(".env file not found, using system environment only")

    def _load_json_config(self):
        """Load configuration from JSON file"""
        if not self._config_file_path.exists():
            self._config_cache = {}
            return
        try:
            with open(self._config_file_path, 'r', encoding='utf-8') as f:
                self._config_cache = json.load(f)
            logger.info(f"Configuration loaded from {self._config_file_path}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load config file: {e}")
            self._config_cache = {}

    def get(
            self,
            key: str,
            default: Any = None,
            required: bool = False,
            from_env: bool = True
    ) -> Any:
        """
        Get configuration value.

        Priority order:
        1. Environment variable (if from_env=True)
        2. JSON config file
        3. Default value

        Raises:
            ConfigurationError: If required=True and key not found
        """
        if from_env:
            env_value = os.getenv(key)
            if env_value is not None:
                return env_value

        if key in self._config_cache:
            return self._config_cache[key]

        if default is not None:
            return default

        if required:
            raise ConfigurationError(
                f"Required configuration '{key}' not found. "
                f"Set it in .env or {self._config_file_path}"
            )

        return None

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get boolean configuration value"""
        value = self.get(key, default)

        if isinstance(value, bool):
            return value

        if isinstance(value, str):
            return value.strip().lower() in ('true', '1', 'yes', 'on')

        return bool(value)

    def get_int(self, key: str, default: int = 0) -> int:
        """Get integer configuration value"""
        value = self.get(key, default)

        try:
            return int(value)
        except (ValueError, TypeError):
            logger.warning(f"Invalid int value for '{key}': {value}, using default")
            return default

    def get_list(self, key: str, default: list = None, separator: str = ',') -> list:
        """
        Get list configuration value.

        Supports:
        - JSON arrays: ["item1", "item2"]
        - Comma-separated strings: "item1,item2,item3"
        """
        if default is None:
            default = []

        value = self.get(key, default)

        if isinstance(value, list):
            return value

        if isinstance(value, str):
            return [item.strip() for item in value.split(separator) if item.strip()]

        return default

    def set(self, key: str, value: Any):
        """Override a value for the lifetime of the process."""
        self._config_cache[key] = value

    def validate(self, schema: Dict[str, Dict[str, Any]]):
        """
        Validate configuration against schema.

        Example schema:
        {
            "DATABASE_URL": {"type": str, "required": True, "pattern": r"^sqlite"},
        }
        """
        errors = []

        for key, rules in schema.items():
            value = self.get(key, rules.get("default"))
            if value is None:
                if rules.get("required", False):
                    errors.append(f"Required config '{key}' is missing")
                continue

            if "type" in rules and not isinstance(value, rules["type"]):
                errors.append(
                    f"Config '{key}' must be {rules['type'].__name__}, "
                    f"got {type(value).__name__}"
                )

            if "pattern" in rules and not re.match(rules["pattern"], str(value)):
                errors.append(
                    f"Config '{key}' does not match pattern {rules['pattern']}"
                )

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(f"- {e}" for e in errors)
            )


# Singleton instance
config = Config.get_instance()


def get_database_url() -> str:
    """Get database URL, falling back to a local SQLite file."""
    return config.get("DATABASE_URL", default=DEFAULT_DATABASE_URL)


def get_cors_origins() -> List[str]:
    """Frontend origins allowed to call the API."""
    return config.get_list("CORS_ORIGINS", default=list(DEFAULT_CORS_ORIGINS))


def get_log_level() -> str:
    """Get logging level"""
    return str(config.get("LOG_LEVEL", default="INFO")).upper()


def is_db_echo() -> bool:
    return config.get_bool("DB_ECHO", default=False)


def is_auto_migrate() -> bool:
    return config.get_bool("AUTO_MIGRATE", default=True)


CONFIG_SCHEMA = {
    "DATABASE_URL": {
        "type": str,
        "required": True,
        "default": DEFAULT_DATABASE_URL,
        "pattern": r"^(sqlite|postgresql|mysql)(\+\w+)?://.*"
    },
    "LOG_LEVEL": {
        "type": str,
        "required": False,
        "default": "INFO",
        "pattern": r"^(?i:debug|info|warning|error|critical)$"
    },
}


def validate_config():
    """Validate configuration on startup"""
    try:
        config.validate(CONFIG_SCHEMA)
        logger.info("Configuration validated successfully")
    except ConfigurationError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise
