"""
Startup configuration checks.

validate_startup_config() lists every problem found; run_startup_checks() logs
them and, in production, refuses to continue. Outside production the API can
still serve read-only endpoints while minting stays disabled.
"""

from __future__ import annotations

from achievement_minter.achievement_logging import get_logger
from achievement_minter.config.env import mask_rpc_url
from achievement_minter.config.settings import MinterSettings
from achievement_minter.core.exceptions import ConfigurationError
from achievement_minter.utils.wallet_utils import is_valid_wallet

logger = get_logger(__name__)


def validate_startup_config(settings: MinterSettings) -> list[str]:
    """Return human-readable problems with the settings; empty when all is well."""
    problems: list[str] = []
    if not settings.minter_private_key:
        problems.append("MINTER_PRIVATE_KEY is not set")
    if not settings.achievement_program_id:
        problems.append("ACHIEVEMENT_PROGRAM_ID is not set")
    elif not is_valid_wallet(settings.achievement_program_id):
        problems.append("ACHIEVEMENT_PROGRAM_ID is not a valid Solana address")
    if not settings.database_url:
        problems.append("DATABASE_URL is empty")
    if settings.is_production and settings.database_url.startswith("sqlite"):
        problems.append("DATABASE_URL points at SQLite in production")
    return problems


def run_startup_checks(settings: MinterSettings) -> bool:
    """
    Log the effective configuration and every problem found.

    Returns True when the configuration is complete. Raises ConfigurationError
    in production when anything is missing.
    """
    problems = validate_startup_config(settings)
    logger.info(
        "startup_config",
        app_env=settings.app_env,
        network=settings.solana_network,
        rpc=mask_rpc_url(settings.solana_rpc_url),
        program_id=settings.achievement_program_id or None,
        batch_size=settings.batch_size,
        confirm_timeout_sec=settings.confirm_timeout_sec,
        scheduler_enabled=settings.scheduler_enabled,
    )
    for problem in problems:
        logger.error("startup_config_invalid", problem=problem)
    if problems and settings.is_production:
        raise ConfigurationError("; ".join(problems))
    return not problems
