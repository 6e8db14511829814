"""
Application-level exceptions.

MintError covers local reasons a goal cannot be minted (no owner, bad address);
ChainError covers ledger failures (submit, confirmation, failed transaction).
Both carry a short `reason` and are caught at the mint-unit boundary; they never
escape a run. ConfigurationError is fatal at startup. DuplicateMintError is
benign: another run already recorded the goal.
"""

from __future__ import annotations


class MinterError(Exception):
    """Base class for all achievement minter errors."""

    reason = "error"
    retryable = True


class ConfigurationError(MinterError):
    """Signing key, program id or another required setting is missing or malformed."""

    reason = "configuration"
    retryable = False


class MintError(MinterError):
    """A single goal cannot be minted because of its own data."""

    reason = "mint_rejected"
    retryable = False

    def __init__(self, goal_id: str, message: str = "") -> None:
        super().__init__(message or f"goal {goal_id}: {self.reason}")
        self.goal_id = goal_id


class MissingOwnerError(MintError):
    reason = "missing_owner"


class InvalidAddressError(MintError):
    reason = "invalid_address"


class ChainError(MinterError):
    """The ledger call failed; the goal stays eligible for the next run."""

    reason = "chain_error"


class SubmissionError(ChainError):
    """Building, signing or sending the mint transaction failed."""

    reason = "submission_failed"


class ConfirmationTimeoutError(ChainError):
    """The ledger did not confirm the transaction before the deadline."""

    reason = "confirmation_timeout"

    def __init__(self, signature: str, timeout_sec: float) -> None:
        super().__init__(f"transaction {signature} not confirmed within {timeout_sec}s")
        self.signature = signature
        self.timeout_sec = timeout_sec


class TransactionFailedError(ChainError):
    """The ledger included the transaction but it failed."""

    reason = "transaction_failed"

    def __init__(self, signature: str, err: str) -> None:
        super().__init__(f"transaction {signature} failed: {err}")
        self.signature = signature
        self.err = err


class DuplicateMintError(MinterError):
    """A mint record for this goal already exists (unique constraint on goal_id)."""

    reason = "already_minted"
    retryable = False

    def __init__(self, goal_id: str) -> None:
        super().__init__(f"goal {goal_id} already has a mint record")
        self.goal_id = goal_id
