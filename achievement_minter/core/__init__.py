# Core: exception hierarchy shared by chain, database and minting layers.

from achievement_minter.core.exceptions import (
    ChainError,
    ConfigurationError,
    ConfirmationTimeoutError,
    DuplicateMintError,
    InvalidAddressError,
    MintError,
    MinterError,
    MissingOwnerError,
    SubmissionError,
    TransactionFailedError,
)

__all__ = [
    "ChainError",
    "ConfigurationError",
    "ConfirmationTimeoutError",
    "DuplicateMintError",
    "InvalidAddressError",
    "MintError",
    "MinterError",
    "MissingOwnerError",
    "SubmissionError",
    "TransactionFailedError",
]
