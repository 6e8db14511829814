"""
Tests for SolanaChainClient with a mocked RPC client (no network).
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus

from achievement_minter.chain.client import MintReceipt
from achievement_minter.chain.solana_client import SolanaChainClient
from achievement_minter.config.settings import MinterSettings
from achievement_minter.core.exceptions import (
    ConfigurationError,
    ConfirmationTimeoutError,
    SubmissionError,
    TransactionFailedError,
)

VALID_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
PROGRAM_ID = "So11111111111111111111111111111111111111112"
SIGNATURE = str(Signature.default())


def _private_key() -> str:
    return json.dumps(list(bytes(Keypair())))


def _client(rpc: MagicMock) -> SolanaChainClient:
    return SolanaChainClient(
        "http://localhost:8899",
        _private_key(),
        PROGRAM_ID,
        poll_interval_sec=0.05,
        client=rpc,
    )


def _status(err=None, confirmation=TransactionConfirmationStatus.Confirmed):
    return MagicMock(err=err, confirmation_status=confirmation)


def _transaction(slot=42, block_time=1_700_000_000, logs=("Program log: hi",), err=None):
    meta = MagicMock(err=err, log_messages=list(logs))
    return MagicMock(value=MagicMock(slot=slot, block_time=block_time, transaction=MagicMock(meta=meta)))


def test_submit_mint_signs_and_sends():
    rpc = MagicMock()
    rpc.get_latest_blockhash.return_value.value.blockhash = Hash.default()
    rpc.send_transaction.return_value = MagicMock(value=Signature.default())
    client = _client(rpc)

    signature = client.submit_mint(VALID_WALLET, "Run 5k", "Ada-Lovelace-Engineer", 1_704_110_400_000)

    assert signature == SIGNATURE
    rpc.send_transaction.assert_called_once()
    tx = rpc.send_transaction.call_args.args[0]
    # fee payer (authority) and the fresh achievement account both sign
    assert len(tx.signatures) == 2
    assert str(tx.message.account_keys[0]) == client.authority


def test_submit_mint_wraps_rpc_errors():
    rpc = MagicMock()
    rpc.get_latest_blockhash.side_effect = RuntimeError("connection refused")
    with pytest.raises(SubmissionError, match="connection refused"):
        _client(rpc).submit_mint(VALID_WALLET, "d", "u", 1)


def test_submit_mint_rejects_bad_recipient():
    rpc = MagicMock()
    with pytest.raises(SubmissionError):
        _client(rpc).submit_mint("not-a-wallet", "d", "u", 1)
    rpc.send_transaction.assert_not_called()


def test_await_confirmation_returns_receipt():
    rpc = MagicMock()
    rpc.get_signature_statuses.return_value = MagicMock(value=[_status()])
    rpc.get_transaction.return_value = _transaction()

    receipt = _client(rpc).await_confirmation(SIGNATURE, timeout=2)

    assert receipt == MintReceipt(
        signature=SIGNATURE, slot=42, block_time=1_700_000_000, log_messages=("Program log: hi",)
    )


def test_await_confirmation_polls_until_confirmed():
    rpc = MagicMock()
    rpc.get_signature_statuses.side_effect = [
        MagicMock(value=[None]),
        MagicMock(value=[_status(confirmation=TransactionConfirmationStatus.Processed)]),
        MagicMock(value=[_status(confirmation=TransactionConfirmationStatus.Finalized)]),
    ]
    rpc.get_transaction.return_value = _transaction(slot=7)

    receipt = _client(rpc).await_confirmation(SIGNATURE, timeout=5)

    assert receipt.slot == 7
    assert rpc.get_signature_statuses.call_count == 3


def test_await_confirmation_times_out():
    rpc = MagicMock()
    rpc.get_signature_statuses.return_value = MagicMock(value=[None])
    with pytest.raises(ConfirmationTimeoutError) as excinfo:
        _client(rpc).await_confirmation(SIGNATURE, timeout=0.2)
    assert excinfo.value.signature == SIGNATURE
    assert excinfo.value.reason == "confirmation_timeout"


def test_await_confirmation_failed_transaction():
    rpc = MagicMock()
    rpc.get_signature_statuses.return_value = MagicMock(value=[_status(err="InstructionError(0, Custom(6000))")])
    with pytest.raises(TransactionFailedError):
        _client(rpc).await_confirmation(SIGNATURE, timeout=2)
    rpc.get_transaction.assert_not_called()


def test_parse_events_and_block_time():
    rpc = MagicMock()
    rpc.get_block_time.return_value = MagicMock(value=1_700_000_123)
    client = _client(rpc)

    assert client.parse_events(MintReceipt(signature=SIGNATURE, slot=1, log_messages=("garbage",))) == []
    assert client.get_block_time(1) == 1_700_000_123

    rpc.get_block_time.side_effect = RuntimeError("slot skipped")
    assert client.get_block_time(2) is None


def test_missing_or_invalid_config_raises():
    with pytest.raises(ConfigurationError):
        SolanaChainClient("http://localhost:8899", "", PROGRAM_ID, client=MagicMock())
    with pytest.raises(ConfigurationError):
        SolanaChainClient("http://localhost:8899", _private_key(), "", client=MagicMock())
    with pytest.raises(ConfigurationError):
        SolanaChainClient("http://localhost:8899", _private_key(), "not-a-program", client=MagicMock())


def test_from_settings():
    settings = MinterSettings(
        solana_rpc_url="http://localhost:8899",
        minter_private_key=_private_key(),
        achievement_program_id=PROGRAM_ID,
        confirm_poll_interval_sec=0.5,
    )
    client = SolanaChainClient.from_settings(settings)
    assert client.program_id == PROGRAM_ID
