"""
Application settings and environment configuration.

Loads configuration from environment variables and the project .env file,
normalizes out-of-range values, and exposes one typed settings object used by
the chain client, orchestrator, scheduler and API server.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from achievement_minter.config.env import (
    get_solana_network,
    get_solana_rpc_url,
    load_minter_env,
    parse_bool_env,
)

DEFAULT_DATABASE_URL = "sqlite:///achievements.db"
DEFAULT_BATCH_SIZE = 100
DEFAULT_CONFIRM_TIMEOUT_SEC = 60.0
DEFAULT_CONFIRM_POLL_INTERVAL_SEC = 1.0
DEFAULT_CRON_HOUR = 0
DEFAULT_CRON_MINUTE = 0
DEFAULT_TIMEZONE = "UTC"
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000
MAX_BATCH_SIZE = 1000


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass
class MinterSettings:
    """Settings for the minting pipeline (env or explicit)."""

    app_env: str = field(default_factory=lambda: _env_str("APP_ENV", "development").lower())
    database_url: str = field(
        default_factory=lambda: _env_str("DATABASE_URL") or DEFAULT_DATABASE_URL
    )
    solana_network: str = field(default_factory=get_solana_network)
    solana_rpc_url: str = field(default_factory=get_solana_rpc_url)
    minter_private_key: str = field(default_factory=lambda: _env_str("MINTER_PRIVATE_KEY"))
    achievement_program_id: str = field(default_factory=lambda: _env_str("ACHIEVEMENT_PROGRAM_ID"))
    batch_size: int = field(default_factory=lambda: _env_int("MINT_BATCH_SIZE", DEFAULT_BATCH_SIZE))
    confirm_timeout_sec: float = field(
        default_factory=lambda: _env_float("CONFIRM_TIMEOUT_SEC", DEFAULT_CONFIRM_TIMEOUT_SEC)
    )
    confirm_poll_interval_sec: float = field(
        default_factory=lambda: _env_float("CONFIRM_POLL_INTERVAL_SEC", DEFAULT_CONFIRM_POLL_INTERVAL_SEC)
    )
    cron_hour: int = field(default_factory=lambda: _env_int("MINT_CRON_HOUR", DEFAULT_CRON_HOUR))
    cron_minute: int = field(default_factory=lambda: _env_int("MINT_CRON_MINUTE", DEFAULT_CRON_MINUTE))
    timezone: str = field(default_factory=lambda: _env_str("MINT_TIMEZONE", DEFAULT_TIMEZONE))
    scheduler_enabled: bool = field(default_factory=lambda: parse_bool_env("MINT_SCHEDULER_ENABLED", True))
    api_host: str = field(default_factory=lambda: _env_str("API_HOST", DEFAULT_API_HOST))
    api_port: int = field(default_factory=lambda: _env_int("API_PORT", DEFAULT_API_PORT))

    def __post_init__(self) -> None:
        self.batch_size = max(1, min(MAX_BATCH_SIZE, int(self.batch_size)))
        if self.confirm_timeout_sec <= 0:
            self.confirm_timeout_sec = DEFAULT_CONFIRM_TIMEOUT_SEC
        if self.confirm_poll_interval_sec <= 0:
            self.confirm_poll_interval_sec = DEFAULT_CONFIRM_POLL_INTERVAL_SEC
        if not 0 <= self.cron_hour <= 23:
            self.cron_hour = DEFAULT_CRON_HOUR
        if not 0 <= self.cron_minute <= 59:
            self.cron_minute = DEFAULT_CRON_MINUTE

    @property
    def is_production(self) -> bool:
        return self.app_env in ("production", "prod")

    @property
    def chain_configured(self) -> bool:
        """True when both the signing key and the program id are set."""
        return bool(self.minter_private_key and self.achievement_program_id)


def get_settings() -> MinterSettings:
    """
    Return the current application settings.

    Reads the project .env first so values defined there are visible to the
    dataclass defaults; variables already present in the environment win.
    """
    load_minter_env()
    return MinterSettings()
