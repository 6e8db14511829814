"""
Chain client contract used by the minting orchestrator.

The ledger is external and append-only: a submitted mint cannot be rolled back,
so the orchestrator only writes a mint record after await_confirmation returns.
SolanaChainClient is the production implementation; tests provide in-memory ones.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MintReceipt:
    """Confirmation record for a submitted transaction."""

    signature: str
    slot: int | None
    block_time: int | None = None
    """Unix seconds reported with the transaction, when the RPC node has it."""
    log_messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChainEvent:
    """One program event decoded from a receipt's logs."""

    name: str
    program_id: str | None
    data: dict[str, Any] = field(default_factory=dict)


class ChainClient(ABC):
    """Submit mints and read confirmations from the ledger."""

    @property
    @abstractmethod
    def program_id(self) -> str:
        """Ledger endpoint identifier recorded with every mint."""
        ...

    @abstractmethod
    def submit_mint(
        self,
        recipient: str,
        description: str,
        user_info: str,
        completion_timestamp_ms: int,
    ) -> str:
        """Sign and send one mint call. Returns the transaction signature. Raises SubmissionError."""
        ...

    @abstractmethod
    def await_confirmation(self, signature: str, timeout: float) -> MintReceipt:
        """
        Block until the transaction is confirmed, at most timeout seconds.
        Raises ConfirmationTimeoutError or TransactionFailedError.
        """
        ...

    @abstractmethod
    def parse_events(self, receipt: MintReceipt) -> list[ChainEvent]:
        """Decode this program's events from the receipt. Best effort; never raises."""
        ...

    @abstractmethod
    def get_block_time(self, slot: int) -> int | None:
        """Unix seconds of the block at slot, or None if unavailable."""
        ...
