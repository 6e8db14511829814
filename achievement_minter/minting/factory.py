"""Build a production orchestrator from settings."""

from __future__ import annotations

from achievement_minter.chain.solana_client import SolanaChainClient
from achievement_minter.config.settings import MinterSettings
from achievement_minter.database.connection import Database, get_database
from achievement_minter.minting.orchestrator import MintingOrchestrator, OrchestratorConfig


def build_orchestrator(settings: MinterSettings, db: Database | None = None) -> MintingOrchestrator:
    """
    Wire database, Solana chain client and orchestrator config.
    Raises ConfigurationError when the signing key or program id is missing.
    """
    db = db or get_database(settings.database_url)
    chain = SolanaChainClient.from_settings(settings)
    return MintingOrchestrator.from_database(db, chain, OrchestratorConfig.from_settings(settings))
