"""
Pytest fixtures for achievement minter tests.

Temporary SQLite database per test, a seeding helper for users/goals/records,
and an in-memory chain client that stands in for the Solana program.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from achievement_minter.chain.client import ChainClient, ChainEvent, MintReceipt
from achievement_minter.chain.program import ACHIEVEMENT_MINTED_EVENT
from achievement_minter.core.exceptions import ConfirmationTimeoutError, SubmissionError
from achievement_minter.database import Database, Goal, GoalStatus, MintRecord, User

# Valid Solana pubkeys (base58, 32 bytes)
VALID_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
VALID_WALLET_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
PROGRAM_ID = "So11111111111111111111111111111111111111112"

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
BLOCK_TIME = 1_700_000_000


class Seeder:
    """Insert users, goals and mint records the way the planning service would."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self._goal_seq = 0

    def user(
        self,
        *,
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        current_role: str | None = "Engineer",
        wallet_address: str | None = VALID_WALLET,
        user_id: str | None = None,
    ) -> str:
        with self.db.session_scope() as session:
            user = User(
                first_name=first_name,
                last_name=last_name,
                current_role=current_role,
                wallet_address=wallet_address,
            )
            if user_id:
                user.id = user_id
            session.add(user)
            session.flush()
            return user.id

    def goal(
        self,
        user_id: str | None,
        *,
        title: str | None = None,
        status: GoalStatus = GoalStatus.COMPLETED,
        updated_at: datetime | None = None,
        deleted: bool = False,
        goal_id: str | None = None,
    ) -> str:
        self._goal_seq += 1
        seq = self._goal_seq
        with self.db.session_scope() as session:
            goal = Goal(
                id=goal_id or f"goal-{seq:04d}",
                user_id=user_id,
                title=title or f"Goal {seq}",
                status=status.value,
                updated_at=updated_at or BASE_TIME + timedelta(seconds=seq),
                deleted_at=BASE_TIME if deleted else None,
            )
            session.add(goal)
            session.flush()
            return goal.id

    def goals(self, user_id: str, count: int) -> list[str]:
        """Bulk-insert count completed goals with increasing updated_at."""
        ids: list[str] = []
        with self.db.session_scope() as session:
            for _ in range(count):
                self._goal_seq += 1
                seq = self._goal_seq
                goal_id = f"goal-{seq:04d}"
                session.add(
                    Goal(
                        id=goal_id,
                        user_id=user_id,
                        title=f"Goal {seq}",
                        status=GoalStatus.COMPLETED.value,
                        updated_at=BASE_TIME + timedelta(seconds=seq),
                    )
                )
                ids.append(goal_id)
        return ids

    def mint_record(self, user_id: str, goal_id: str, *, tx_signature: str = "seeded-sig") -> str:
        with self.db.session_scope() as session:
            row = MintRecord(
                user_id=user_id,
                goal_id=goal_id,
                token_id="0",
                tx_signature=tx_signature,
                program_id=PROGRAM_ID,
                description="seeded",
                user_info="seeded",
                completion_timestamp=0,
                minted_at=BASE_TIME,
            )
            session.add(row)
            session.flush()
            return row.id


class FakeChainClient(ChainClient):
    """
    In-memory chain client. Every submit gets a fresh signature and token id.

    fail_titles / timeout_titles: goal titles (mint descriptions) whose submit or
    confirmation fails. on_submit: hook called before each submit (barriers, events).
    broken_lookups: parse_events and get_block_time raise instead of answering.
    """

    def __init__(
        self,
        program_id: str = PROGRAM_ID,
        *,
        fail_titles: set[str] | None = None,
        timeout_titles: set[str] | None = None,
        emit_event: bool = True,
        block_time: int | None = BLOCK_TIME,
        on_submit: Callable[[str], None] | None = None,
        broken_lookups: bool = False,
    ) -> None:
        self._program_id = program_id
        self.fail_titles = set(fail_titles or ())
        self.timeout_titles = set(timeout_titles or ())
        self.emit_event = emit_event
        self.block_time = block_time
        self.on_submit = on_submit
        self.broken_lookups = broken_lookups
        self.submitted: list[dict[str, Any]] = []
        self._sent: dict[str, tuple[str, int]] = {}
        self._lock = threading.Lock()

    @property
    def program_id(self) -> str:
        return self._program_id

    def submit_mint(self, recipient, description, user_info, completion_timestamp_ms):
        if self.on_submit is not None:
            self.on_submit(description)
        if description in self.fail_titles:
            raise SubmissionError("rpc unavailable")
        with self._lock:
            token_id = len(self.submitted)
            self.submitted.append(
                {
                    "recipient": recipient,
                    "description": description,
                    "user_info": user_info,
                    "completion_timestamp_ms": completion_timestamp_ms,
                }
            )
            signature = f"sig-{id(self)}-{token_id}"
            self._sent[signature] = (description, token_id)
        return signature

    def await_confirmation(self, signature, timeout):
        description, token_id = self._sent[signature]
        if description in self.timeout_titles:
            raise ConfirmationTimeoutError(signature, timeout)
        return MintReceipt(signature=signature, slot=1000 + token_id, block_time=self.block_time)

    def parse_events(self, receipt):
        if self.broken_lookups:
            raise RuntimeError("log decoder crashed")
        if not self.emit_event:
            return []
        _, token_id = self._sent[receipt.signature]
        return [ChainEvent(name=ACHIEVEMENT_MINTED_EVENT, program_id=self._program_id, data={"token_id": token_id})]

    def get_block_time(self, slot):
        if self.broken_lookups:
            raise RuntimeError("getBlockTime unavailable")
        return self.block_time


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite database with all tables. Unset DATABASE_URL so nothing else is touched."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    database = Database(f"sqlite:///{tmp_path / 'achievements.db'}")
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def make_chain():
    """Factory for FakeChainClient instances (one per simulated replica)."""
    return FakeChainClient


@pytest.fixture
def chain():
    return FakeChainClient()
