"""
Tests for settings loading, clamping and startup validation.
"""

from __future__ import annotations

import pytest

from achievement_minter.config import MinterSettings, run_startup_checks, validate_startup_config
from achievement_minter.config.env import MAINNET_RPC_URL, get_solana_rpc_url, mask_rpc_url, parse_bool_env
from achievement_minter.core.exceptions import ConfigurationError

PROGRAM_ID = "So11111111111111111111111111111111111111112"


def _settings(**overrides) -> MinterSettings:
    values = {
        "app_env": "development",
        "database_url": "sqlite:///achievements.db",
        "minter_private_key": "key",
        "achievement_program_id": PROGRAM_ID,
    }
    values.update(overrides)
    return MinterSettings(**values)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("MINT_BATCH_SIZE", "25")
    monkeypatch.setenv("CONFIRM_TIMEOUT_SEC", "12.5")
    monkeypatch.setenv("MINT_CRON_HOUR", "3")
    monkeypatch.setenv("MINT_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("MINT_SCHEDULER_ENABLED", "false")
    settings = MinterSettings()
    assert settings.batch_size == 25
    assert settings.confirm_timeout_sec == 12.5
    assert settings.cron_hour == 3
    assert settings.timezone == "Europe/Berlin"
    assert settings.scheduler_enabled is False


def test_malformed_env_falls_back_to_defaults(monkeypatch):
    monkeypatch.setenv("MINT_BATCH_SIZE", "lots")
    monkeypatch.setenv("CONFIRM_TIMEOUT_SEC", "-1")
    monkeypatch.setenv("MINT_CRON_MINUTE", "75")
    settings = MinterSettings()
    assert settings.batch_size == 100
    assert settings.confirm_timeout_sec == 60.0
    assert settings.cron_minute == 0


def test_batch_size_is_clamped():
    assert _settings(batch_size=0).batch_size == 1
    assert _settings(batch_size=50_000).batch_size == 1000


def test_rpc_url_defaults_to_network(monkeypatch):
    monkeypatch.delenv("SOLANA_RPC_URL", raising=False)
    monkeypatch.setenv("SOLANA_NETWORK", "mainnet-beta")
    assert get_solana_rpc_url() == MAINNET_RPC_URL
    monkeypatch.setenv("SOLANA_RPC_URL", "https://rpc.example.com/?api-key=secret")
    assert get_solana_rpc_url() == "https://rpc.example.com/?api-key=secret"
    assert "secret" not in mask_rpc_url(get_solana_rpc_url())


def test_parse_bool_env(monkeypatch):
    monkeypatch.setenv("FLAG", "yes")
    assert parse_bool_env("FLAG") is True
    monkeypatch.setenv("FLAG", "0")
    assert parse_bool_env("FLAG", True) is False
    monkeypatch.setenv("FLAG", "maybe")
    assert parse_bool_env("FLAG", True) is True


def test_complete_config_has_no_problems():
    settings = _settings()
    assert settings.chain_configured is True
    assert validate_startup_config(settings) == []
    assert run_startup_checks(settings) is True


def test_missing_chain_config_reported_outside_production():
    settings = _settings(minter_private_key="", achievement_program_id="")
    problems = validate_startup_config(settings)
    assert "MINTER_PRIVATE_KEY is not set" in problems
    assert "ACHIEVEMENT_PROGRAM_ID is not set" in problems
    assert settings.chain_configured is False
    assert run_startup_checks(settings) is False


def test_invalid_program_id_reported():
    problems = validate_startup_config(_settings(achievement_program_id="not-base58!"))
    assert problems == ["ACHIEVEMENT_PROGRAM_ID is not a valid Solana address"]


def test_production_refuses_incomplete_config():
    settings = _settings(app_env="production", database_url="postgresql://db/app", minter_private_key="")
    with pytest.raises(ConfigurationError, match="MINTER_PRIVATE_KEY"):
        run_startup_checks(settings)


def test_production_rejects_sqlite():
    settings = _settings(app_env="prod")
    assert settings.is_production is True
    assert validate_startup_config(settings) == ["DATABASE_URL points at SQLite in production"]
