"""
Configuration management for Achievement Minter.

Loads and validates settings from environment variables and the optional
.env file. Exposes a single source of truth for all service configuration.
"""

from achievement_minter.config.settings import MinterSettings, get_settings  # noqa: F401
from achievement_minter.config.startup import run_startup_checks, validate_startup_config  # noqa: F401

__all__ = ["MinterSettings", "get_settings", "run_startup_checks", "validate_startup_config"]
