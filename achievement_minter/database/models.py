"""
Domain models handed out by the repository layer.

Plain dataclasses detached from any session, so the orchestrator never touches
lazy-loaded ORM attributes after the read transaction has closed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class GoalOwner:
    """Owner fields needed to build a mint call."""

    id: str
    first_name: str
    last_name: str
    current_role: str | None
    wallet_address: str | None


@dataclass(frozen=True)
class EligibleGoal:
    """A completed, non-deleted goal with no mint record yet."""

    id: str
    title: str
    updated_at: datetime
    """Last-modified time; doubles as the completion time sent on-chain."""
    owner: GoalOwner | None

    @property
    def cursor(self) -> tuple[datetime, str]:
        """Keyset position of this goal in the eligibility ordering."""
        return (self.updated_at, self.id)


@dataclass(frozen=True)
class MintRecordEntry:
    """A persisted mint record."""

    id: str
    user_id: str
    goal_id: str
    token_id: str | None
    tx_signature: str
    program_id: str
    description: str
    user_info: str
    completion_timestamp: int | None
    minted_at: datetime | None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "goalId": self.goal_id,
            "tokenId": self.token_id,
            "txSignature": self.tx_signature,
            "programId": self.program_id,
            "description": self.description,
            "userInfo": self.user_info,
            "completionTimestamp": self.completion_timestamp,
            "mintedAt": self.minted_at.isoformat() if self.minted_at else None,
        }
