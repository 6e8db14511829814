"""
Achievement Minter — daily job that turns completed goals into on-chain achievements.

Finds goals a user has completed, mints one achievement token per goal on the
Solana achievement program, and records each confirmed mint so the same goal
is never minted twice. Modular layout: chain client, database, minting
orchestrator, scheduler, and a thin API server.
"""

__version__ = "0.1.0"
