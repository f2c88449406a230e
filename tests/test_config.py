# -*- coding: utf-8 -*-
"""
tests/test_config.py
======================
Config lookup order, typed getters and startup validation.
"""
import json

import pytest
from core.config import (
    Config, DEFAULT_CORS_ORIGINS, DEFAULT_DATABASE_URL,
    get_cors_origins, get_database_url, get_log_level, is_auto_migrate, is_db_echo,
    validate_config,
)
from exceptions import ConfigurationError


@pytest.fixture
def fresh_config(tmp_path, monkeypatch):
    """A Config instance reading its own .env / settings.json."""
    monkeypatch.delenv("WH_TEST_FROM_DOTENV", raising=False)
    monkeypatch.delenv("WH_TEST_FROM_JSON", raising=False)
    (tmp_path / ".env").write_text("WH_TEST_FROM_DOTENV=dotenv-value\n", encoding="utf-8")
    (tmp_path / "settings.json").write_text(
        json.dumps({"WH_TEST_FROM_JSON": "json-value", "WH_TEST_LIST": ["a", "b"]}),
        encoding="utf-8",
    )
    previous = Config._instances.pop(Config, None)
    cfg = Config(env_file=str(tmp_path / ".env"), config_file=str(tmp_path / "settings.json"))
    yield cfg
    Config.clear_instance()
    if previous is not None:
        Config._instances[Config] = previous


# ── Config ────────────────────────────────────────────────────────────────────

class TestConfig:

    def test_is_singleton(self, fresh_config):
        assert Config() is fresh_config

    def test_reads_dotenv(self, fresh_config):
        assert fresh_config.get("WH_TEST_FROM_DOTENV") == "dotenv-value"

    def test_reads_json(self, fresh_config):
        assert fresh_config.get("WH_TEST_FROM_JSON") == "json-value"
        assert fresh_config.get_list("WH_TEST_LIST") == ["a", "b"]

    def test_environment_wins_over_json(self, fresh_config, monkeypatch):
        monkeypatch.setenv("WH_TEST_FROM_JSON", "env-value")
        assert fresh_config.get("WH_TEST_FROM_JSON") == "env-value"

    def test_default_and_required(self, fresh_config):
        assert fresh_config.get("WH_TEST_NOPE", default=3) == 3
        with pytest.raises(ConfigurationError):
            fresh_config.get("WH_TEST_NOPE", required=True)

    def test_typed_getters(self, fresh_config, monkeypatch):
        monkeypatch.setenv("WH_TEST_BOOL", "yes")
        monkeypatch.setenv("WH_TEST_INT", "12")
        monkeypatch.setenv("WH_TEST_BAD_INT", "twelve")
        monkeypatch.setenv("WH_TEST_CSV", " x, y ,,z ")
        assert fresh_config.get_bool("WH_TEST_BOOL") is True
        assert fresh_config.get_int("WH_TEST_INT") == 12
        assert fresh_config.get_int("WH_TEST_BAD_INT", default=5) == 5
        assert fresh_config.get_list("WH_TEST_CSV") == ["x", "y", "z"]

    def test_set_overrides_json(self, fresh_config):
        fresh_config.set("WH_TEST_FROM_JSON", "overridden")
        assert fresh_config.get("WH_TEST_FROM_JSON") == "overridden"

    def test_validate_reports_every_problem(self, fresh_config, monkeypatch):
        monkeypatch.setenv("WH_TEST_PORT", "not-a-port")
        schema = {
            "WH_TEST_PORT": {"type": str, "pattern": r"^\d+$"},
            "WH_TEST_MISSING": {"required": True},
        }
        with pytest.raises(ConfigurationError) as exc:
            fresh_config.validate(schema)
        assert "WH_TEST_PORT" in exc.value.message
        assert "WH_TEST_MISSING" in exc.value.message


# ── module helpers ────────────────────────────────────────────────────────────

class TestHelpers:

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch):
        for key in ("DATABASE_URL", "CORS_ORIGINS", "LOG_LEVEL", "DB_ECHO", "AUTO_MIGRATE"):
            monkeypatch.delenv(key, raising=False)

    def test_defaults(self):
        assert get_database_url() == DEFAULT_DATABASE_URL
        assert get_cors_origins() == DEFAULT_CORS_ORIGINS
        assert get_log_level() == "INFO"
        assert is_db_echo() is False
        assert is_auto_migrate() is True

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://wh@localhost/wh")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example,https://b.example")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("AUTO_MIGRATE", "false")
        assert get_database_url().startswith("postgresql+psycopg://")
        assert get_cors_origins() == ["https://a.example", "https://b.example"]
        assert get_log_level() == "DEBUG"
        assert is_auto_migrate() is False

    def test_validate_config_accepts_defaults(self):
        validate_config()

    def test_validate_config_rejects_unknown_scheme(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "mongodb://localhost/wh")
        with pytest.raises(ConfigurationError):
            validate_config()
