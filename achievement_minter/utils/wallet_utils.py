"""Wallet address validation and small time helpers."""

from __future__ import annotations

from datetime import datetime, timezone

from solders.pubkey import Pubkey


def is_valid_wallet(w: str | None) -> bool:
    """Return True if w is a valid Solana wallet (Pubkey) address."""
    if not w or not w.strip():
        return False
    try:
        Pubkey.from_string(w.strip())
        return True
    except Exception:
        return False


def to_epoch_ms(value: datetime) -> int:
    """Milliseconds since epoch; naive datetimes are treated as UTC. Sub-ms precision is dropped."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp()) * 1000 + value.microsecond // 1000


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
