"""
Minting orchestrator: drain the backlog of completed goals into on-chain achievements.

run_once() takes the single-flight guard, then pages through eligible goals
(keyset cursor on updated_at, id) and runs one mint-and-persist unit per goal:

    ELIGIBLE -> SUBMITTING -> AWAITING_CONFIRMATION -> PARSING_RESULT -> PERSISTED
    any state -> FAILED(goal_id, reason); duplicate insert -> ALREADY_MINTED

Per-goal errors are caught at the unit boundary and logged; the run continues.
Only a failure to read a backlog page aborts the run and reaches the caller.
A goal that fails stays eligible and is retried by the next run.
"""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from achievement_minter.achievement_logging import bind_goal, bind_run, get_logger
from achievement_minter.chain.client import ChainClient, MintReceipt
from achievement_minter.chain.program import find_minted_token_id
from achievement_minter.config.settings import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONFIRM_TIMEOUT_SEC,
    MinterSettings,
)
from achievement_minter.core.exceptions import (
    ChainError,
    DuplicateMintError,
    InvalidAddressError,
    MintError,
    MissingOwnerError,
)
from achievement_minter.database.connection import Database
from achievement_minter.database.models import EligibleGoal, GoalOwner
from achievement_minter.database.repositories import GoalRepository, MintRecordStore
from achievement_minter.minting.guard import SingleFlightGuard
from achievement_minter.utils.wallet_utils import is_valid_wallet, to_epoch_ms, utcnow

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


class MintState(str, Enum):
    ELIGIBLE = "eligible"
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PARSING_RESULT = "parsing_result"
    PERSISTED = "persisted"
    ALREADY_MINTED = "already_minted"
    FAILED = "failed"


@dataclass(frozen=True)
class MintOutcome:
    """Terminal state of one mint-and-persist unit."""

    goal_id: str
    state: MintState
    reason: str | None = None
    failed_at: MintState | None = None
    signature: str | None = None
    token_id: str | None = None

    @property
    def minted(self) -> bool:
        return self.state is MintState.PERSISTED


@dataclass
class MintRunResult:
    total_minted: int = 0
    already_minted: int = 0
    failed: int = 0
    pages: int = 0
    skipped: bool = False
    failures: dict[str, str] = field(default_factory=dict)
    """goal_id -> reason for goals that failed this run."""

    def record(self, outcome: MintOutcome) -> None:
        if outcome.state is MintState.PERSISTED:
            self.total_minted += 1
        elif outcome.state is MintState.ALREADY_MINTED:
            self.already_minted += 1
        else:
            self.failed += 1
            self.failures[outcome.goal_id] = outcome.reason or "unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalMinted": self.total_minted,
            "alreadyMinted": self.already_minted,
            "failed": self.failed,
            "pages": self.pages,
            "skipped": self.skipped,
        }


@dataclass
class OrchestratorConfig:
    page_size: int = DEFAULT_BATCH_SIZE
    confirm_timeout_sec: float = DEFAULT_CONFIRM_TIMEOUT_SEC

    def __post_init__(self) -> None:
        self.page_size = max(1, int(self.page_size))
        if self.confirm_timeout_sec <= 0:
            self.confirm_timeout_sec = DEFAULT_CONFIRM_TIMEOUT_SEC

    @classmethod
    def from_settings(cls, settings: MinterSettings) -> "OrchestratorConfig":
        return cls(page_size=settings.batch_size, confirm_timeout_sec=settings.confirm_timeout_sec)


def build_user_info(owner: GoalOwner) -> str:
    """Compact "first-last-role" string sent on-chain; all whitespace removed."""
    role = owner.current_role if isinstance(owner.current_role, str) else ""
    return _WHITESPACE.sub("", f"{owner.first_name}-{owner.last_name}-{role}")


class MintingOrchestrator:
    """
    Owns the guard, chain client and repositories for one minting pipeline.

    Construct one per process for production; tests construct as many as they
    need (two instances share nothing but the database, like two replicas).
    """

    def __init__(
        self,
        goals: GoalRepository,
        records: MintRecordStore,
        chain: ChainClient,
        config: OrchestratorConfig | None = None,
        *,
        guard: SingleFlightGuard | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._goals = goals
        self._records = records
        self._chain = chain
        self._config = config or OrchestratorConfig()
        self._guard = guard or SingleFlightGuard()
        self._clock = clock

    @classmethod
    def from_database(
        cls,
        db: Database,
        chain: ChainClient,
        config: OrchestratorConfig | None = None,
    ) -> "MintingOrchestrator":
        return cls(GoalRepository(db), MintRecordStore(db), chain, config)

    @property
    def running(self) -> bool:
        return self._guard.busy

    def pending_count(self) -> int:
        return self._goals.count_eligible()

    def run_once(self) -> MintRunResult:
        """
        Mint every currently eligible goal. Returns immediately with skipped=True
        when another run holds the guard in this process.
        """
        with self._guard.held() as acquired:
            if not acquired:
                logger.warning("mint_run_skipped", reason="already_running")
                return MintRunResult(skipped=True)
            with bind_run(uuid.uuid4().hex[:12]):
                return self._drain()

    def _drain(self) -> MintRunResult:
        result = MintRunResult()
        page_size = self._config.page_size
        cursor: tuple[datetime, str] | None = None
        started = time.monotonic()
        logger.info("mint_run_started", program_id=self._chain.program_id, page_size=page_size)
        while True:
            page = self._goals.find_eligible(page_size, after=cursor)
            if not page:
                break
            result.pages += 1
            logger.info("mint_page_loaded", page=result.pages, goals=len(page))
            for goal in page:
                result.record(self.mint_goal(goal))
            cursor = page[-1].cursor
            if len(page) < page_size:
                break
        logger.info(
            "mint_run_finished",
            program_id=self._chain.program_id,
            total_minted=result.total_minted,
            already_minted=result.already_minted,
            failed=result.failed,
            pages=result.pages,
            duration_sec=round(time.monotonic() - started, 2),
        )
        return result

    def mint_goal(self, goal: EligibleGoal) -> MintOutcome:
        """Run one mint-and-persist unit. Never raises."""
        log = bind_goal(goal.id, __name__)
        state = MintState.ELIGIBLE
        signature: str | None = None
        try:
            owner = self._require_owner(goal)
            user_info = build_user_info(owner)
            completion_ms = to_epoch_ms(goal.updated_at)

            state = MintState.SUBMITTING
            log.info("mint_submitting", user_id=owner.id, wallet=owner.wallet_address)
            signature = self._chain.submit_mint(owner.wallet_address, goal.title, user_info, completion_ms)

            state = MintState.AWAITING_CONFIRMATION
            log.info("mint_submitted", signature=signature)
            receipt = self._chain.await_confirmation(signature, self._config.confirm_timeout_sec)

            state = MintState.PARSING_RESULT
            token_id = self._extract_token_id(receipt, log)
            minted_at = self._resolve_confirmed_at(receipt, log)
            self._records.create(
                user_id=owner.id,
                goal_id=goal.id,
                token_id=token_id,
                tx_signature=receipt.signature,
                program_id=self._chain.program_id,
                description=goal.title,
                user_info=user_info,
                completion_timestamp=completion_ms,
                minted_at=minted_at,
            )
        except DuplicateMintError:
            log.info("mint_already_recorded", signature=signature)
            return MintOutcome(goal.id, MintState.ALREADY_MINTED, reason="already_minted", signature=signature)
        except (MintError, ChainError) as e:
            log.warning(
                "mint_failed",
                failed_at=state.value,
                reason=e.reason,
                retryable=e.retryable,
                error=str(e),
                signature=signature,
            )
            return MintOutcome(goal.id, MintState.FAILED, reason=e.reason, failed_at=state, signature=signature)
        except Exception as e:
            if state is MintState.PARSING_RESULT:
                # Confirmed on-chain but not recorded: the next run will mint this goal again.
                log.error("mint_persist_failed_after_confirmation", signature=signature, error=str(e), exc_info=True)
                reason = "persist_failed"
            else:
                log.error("mint_failed_unexpected", failed_at=state.value, error=str(e), exc_info=True)
                reason = "unexpected_error"
            return MintOutcome(goal.id, MintState.FAILED, reason=reason, failed_at=state, signature=signature)

        log.info("mint_persisted", user_id=owner.id, signature=signature, token_id=token_id)
        return MintOutcome(goal.id, MintState.PERSISTED, signature=signature, token_id=token_id)

    def _require_owner(self, goal: EligibleGoal) -> GoalOwner:
        owner = goal.owner
        if owner is None:
            raise MissingOwnerError(goal.id, f"goal {goal.id} has no associated user")
        if not owner.wallet_address:
            raise InvalidAddressError(goal.id, f"user {owner.id} has no wallet address")
        if not is_valid_wallet(owner.wallet_address):
            raise InvalidAddressError(goal.id, f"user {owner.id} wallet address is invalid: {owner.wallet_address}")
        return owner

    def _extract_token_id(self, receipt: MintReceipt, log: Any) -> str | None:
        try:
            token_id = find_minted_token_id(self._chain.parse_events(receipt))
        except Exception as e:
            log.warning("mint_event_parse_failed", signature=receipt.signature, error=str(e))
            return None
        if token_id is None:
            log.warning("mint_event_not_found", signature=receipt.signature)
        return token_id

    def _resolve_confirmed_at(self, receipt: MintReceipt, log: Any) -> datetime:
        block_time: int | None = None
        if receipt.slot is not None:
            try:
                block_time = self._chain.get_block_time(receipt.slot)
            except Exception as e:
                log.warning("mint_block_time_failed", slot=receipt.slot, error=str(e))
        if block_time is None:
            block_time = receipt.block_time
        if block_time is None:
            return self._clock()
        return datetime.fromtimestamp(block_time, tz=timezone.utc)
