"""
Tests for configuration loading, environment overrides and validation.
"""

import json

from chili_cookoff.config import CookoffConfig


def test_default_config_file_created(tmp_path):
    path = tmp_path / "cookoff_config.json"

    config = CookoffConfig(str(path))

    assert path.exists()
    assert json.loads(path.read_text())["competition_name"] == "Chili Cook-Off"
    assert config.get("database", "busy_timeout_ms") == 5000
    assert config.is_production() is False
    assert config.is_cors_enabled() is True


def test_file_values_merge_over_defaults(tmp_path):
    path = tmp_path / "cookoff_config.json"
    path.write_text(json.dumps({"features": {"debug_endpoints": True}}))

    config = CookoffConfig(str(path))

    assert config.is_feature_enabled("debug_endpoints") is True
    assert config.is_feature_enabled("request_logging") is True
    assert CookoffConfig.DEFAULT_CONFIG["features"]["debug_endpoints"] is False


def test_invalid_json_falls_back_to_defaults(tmp_path):
    path = tmp_path / "cookoff_config.json"
    path.write_text("{broken")

    config = CookoffConfig(str(path))

    assert config.get("competition_name") == "Chili Cook-Off"


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("BUSY_TIMEOUT_MS", "250")
    monkeypatch.setenv("REQUIRE_ACTIVE_BONUS_ROUND", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = CookoffConfig(str(tmp_path / "cookoff_config.json"))

    assert config.get("database", "busy_timeout_ms") == 250
    assert config.is_feature_enabled("require_active_bonus_round") is True
    assert config.get("logging", "level") == "DEBUG"


def test_docker_selects_production_without_cors(tmp_path, monkeypatch):
    monkeypatch.setenv("DOCKER", "true")

    config = CookoffConfig(str(tmp_path / "cookoff_config.json"))

    assert config.is_production() is True
    assert config.is_cors_enabled() is False


def test_cors_can_be_forced_on_in_production(tmp_path, monkeypatch):
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.setenv("CORS_ENABLED", "true")

    config = CookoffConfig(str(tmp_path / "cookoff_config.json"))

    assert config.is_cors_enabled() is True


def test_invalid_values_replaced(tmp_path):
    path = tmp_path / "cookoff_config.json"
    path.write_text(
        json.dumps(
            {
                "environment": "staging",
                "database": {"busy_timeout_ms": -5},
                "logging": {"level": "LOUD"},
            }
        )
    )

    config = CookoffConfig(str(path))

    assert config.get("environment") == "development"
    assert config.get("database", "busy_timeout_ms") == 5000
    assert config.get("logging", "level") == "INFO"


def test_missing_key_returns_none(config):
    assert config.get("features", "nonexistent") is None
    assert config.get("nope", "deeper") is None
