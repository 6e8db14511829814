"""
Solana implementation of the chain client.

Sends mint_achievement to the achievement program signed by the minter keypair,
polls signature status until confirmed (bounded by a timeout), and reads the
transaction logs for the AchievementMinted event.
Config: SOLANA_RPC_URL, MINTER_PRIVATE_KEY, ACHIEVEMENT_PROGRAM_ID, CONFIRM_TIMEOUT_SEC.
"""

from __future__ import annotations

import time
from typing import Any

from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from achievement_minter.achievement_logging import get_logger
from achievement_minter.chain.client import ChainClient, ChainEvent, MintReceipt
from achievement_minter.chain.program import (
    build_mint_achievement_instruction,
    load_keypair,
    parse_program_events,
)
from achievement_minter.config.env import mask_rpc_url
from achievement_minter.config.settings import DEFAULT_CONFIRM_POLL_INTERVAL_SEC, MinterSettings
from achievement_minter.core.exceptions import (
    ConfigurationError,
    ConfirmationTimeoutError,
    SubmissionError,
    TransactionFailedError,
)

logger = get_logger(__name__)

CONFIRMED_STATUSES = (
    TransactionConfirmationStatus.Confirmed,
    TransactionConfirmationStatus.Finalized,
)


class SolanaChainClient(ChainClient):
    """
    Mint achievements through the Solana achievement program.

    One keypair signs every mint, so callers must submit sequentially; the
    orchestrator does.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        program_id: str,
        *,
        poll_interval_sec: float = DEFAULT_CONFIRM_POLL_INTERVAL_SEC,
        client: Any = None,
    ) -> None:
        self._keypair: Keypair = load_keypair(private_key)
        if not (program_id or "").strip():
            raise ConfigurationError("ACHIEVEMENT_PROGRAM_ID must be set")
        try:
            self._program_id = Pubkey.from_string(program_id.strip())
        except Exception as e:
            raise ConfigurationError(f"Invalid ACHIEVEMENT_PROGRAM_ID: {e}") from e
        self._rpc_url = rpc_url
        self._poll_interval_sec = max(0.05, poll_interval_sec)
        self._client = client

    @classmethod
    def from_settings(cls, settings: MinterSettings) -> "SolanaChainClient":
        return cls(
            settings.solana_rpc_url,
            settings.minter_private_key,
            settings.achievement_program_id,
            poll_interval_sec=settings.confirm_poll_interval_sec,
        )

    @property
    def program_id(self) -> str:
        return str(self._program_id)

    @property
    def authority(self) -> str:
        return str(self._keypair.pubkey())

    def _client_ensure(self) -> Any:
        if self._client is None:
            self._client = Client(self._rpc_url, commitment=Confirmed)
            logger.info("chain_client_connected", rpc=mask_rpc_url(self._rpc_url), program_id=self.program_id)
        return self._client

    def submit_mint(
        self,
        recipient: str,
        description: str,
        user_info: str,
        completion_timestamp_ms: int,
    ) -> str:
        try:
            recipient_pubkey = Pubkey.from_string(recipient.strip())
            achievement = Keypair()
            ix = build_mint_achievement_instruction(
                self._program_id,
                self._keypair.pubkey(),
                achievement.pubkey(),
                recipient_pubkey,
                description,
                user_info,
                completion_timestamp_ms,
            )
            client = self._client_ensure()
            blockhash = client.get_latest_blockhash().value.blockhash
            message = Message([ix], self._keypair.pubkey())
            tx = Transaction([self._keypair, achievement], message, blockhash)
            resp = client.send_transaction(tx, opts=TxOpts(preflight_commitment=Confirmed))
        except Exception as e:
            raise SubmissionError(str(e)) from e
        sig_val = getattr(resp, "value", None)
        if not sig_val:
            raise SubmissionError(f"no signature in send_transaction response: {resp}")
        signature = str(sig_val)
        logger.info("chain_tx_sent", signature=signature, recipient=recipient)
        return signature

    def await_confirmation(self, signature: str, timeout: float) -> MintReceipt:
        """Poll for confirmation until timeout, then fetch the transaction for its logs."""
        client = self._client_ensure()
        sig = Signature.from_string(signature)
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            try:
                resp = client.get_signature_statuses([sig])
                statuses = getattr(resp, "value", None) or []
                st = statuses[0] if statuses else None
                if st is not None:
                    if st.err is not None:
                        raise TransactionFailedError(signature, str(st.err))
                    if st.confirmation_status in CONFIRMED_STATUSES:
                        receipt = self._fetch_receipt(sig)
                        if receipt is not None:
                            logger.info(
                                "chain_tx_confirmed",
                                signature=signature,
                                slot=receipt.slot,
                                confirmation_status=str(st.confirmation_status),
                            )
                            return receipt
            except TransactionFailedError:
                raise
            except Exception as e:
                logger.warning("chain_tx_confirm_poll_error", signature=signature, error=str(e))
            remaining = deadline - time.monotonic()
            if remaining > 0:
                time.sleep(min(self._poll_interval_sec, remaining))
        logger.warning("chain_tx_confirm_failed", signature=signature, reason="timeout", timeout_sec=timeout)
        raise ConfirmationTimeoutError(signature, timeout)

    def _fetch_receipt(self, sig: Signature) -> MintReceipt | None:
        resp = self._client_ensure().get_transaction(
            sig,
            encoding="json",
            commitment=Confirmed,
            max_supported_transaction_version=0,
        )
        tx = getattr(resp, "value", None)
        if tx is None:
            return None
        meta = tx.transaction.meta
        if meta is not None and meta.err is not None:
            raise TransactionFailedError(str(sig), str(meta.err))
        logs = tuple(meta.log_messages or ()) if meta is not None else ()
        return MintReceipt(signature=str(sig), slot=tx.slot, block_time=tx.block_time, log_messages=logs)

    def parse_events(self, receipt: MintReceipt) -> list[ChainEvent]:
        try:
            return parse_program_events(receipt.log_messages, self.program_id)
        except Exception as e:
            logger.warning("chain_event_parse_failed", signature=receipt.signature, error=str(e))
            return []

    def get_block_time(self, slot: int) -> int | None:
        try:
            resp = self._client_ensure().get_block_time(slot)
            value = getattr(resp, "value", None)
            return int(value) if value is not None else None
        except Exception as e:
            logger.warning("chain_block_time_failed", slot=slot, error=str(e))
            return None
