"""
Environment variable loading for Achievement Minter.

- SOLANA_NETWORK: devnet | mainnet (default: devnet)
- SOLANA_RPC_URL: RPC endpoint; falls back to the public endpoint of the network
- ACHIEVEMENT_PROGRAM_ID: Deployed achievement program ID
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is achievement_minter/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEVNET_RPC_URL = "https://api.devnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"


def load_minter_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def parse_bool_env(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


def get_solana_network() -> str:
    """
    Return SOLANA_NETWORK from env: devnet | mainnet.
    Default: devnet.
    """
    load_minter_env()
    raw = (os.getenv("SOLANA_NETWORK") or os.getenv("SOLANA_CLUSTER") or "devnet").strip().lower()
    if raw in ("mainnet", "mainnet-beta"):
        return "mainnet"
    return "devnet"


def get_solana_rpc_url() -> str:
    """Resolve Solana RPC URL. Order: SOLANA_RPC_URL > network default."""
    load_minter_env()
    url = (os.getenv("SOLANA_RPC_URL") or "").strip()
    if url:
        return url
    return DEVNET_RPC_URL if get_solana_network() == "devnet" else MAINNET_RPC_URL


def mask_rpc_url(url: str) -> str:
    """Hide API keys embedded in RPC URLs before logging them."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
