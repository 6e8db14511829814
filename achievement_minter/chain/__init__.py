"""
Ledger access: chain client contract, Solana implementation, and the
achievement program's instruction and event encoding.
"""

from achievement_minter.chain.client import ChainClient, ChainEvent, MintReceipt
from achievement_minter.chain.program import (
    ACHIEVEMENT_MINTED_EVENT,
    build_mint_achievement_instruction,
    find_minted_token_id,
    load_keypair,
    parse_program_events,
)

__all__ = [
    "ACHIEVEMENT_MINTED_EVENT",
    "ChainClient",
    "ChainEvent",
    "MintReceipt",
    "build_mint_achievement_instruction",
    "find_minted_token_id",
    "load_keypair",
    "parse_program_events",
]
