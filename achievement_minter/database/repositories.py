"""
Repositories: eligibility query over goals and the mint record store.

GoalRepository reads the planning service's tables; it never writes them.
MintRecordStore is the only writer of mint_records and exposes insert and read
paths only. A unique violation on goal_id surfaces as DuplicateMintError.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, desc, func, or_, select
from sqlalchemy.exc import IntegrityError

from achievement_minter.achievement_logging import get_logger
from achievement_minter.core.exceptions import DuplicateMintError
from achievement_minter.database.connection import Database
from achievement_minter.database.models import EligibleGoal, GoalOwner, MintRecordEntry
from achievement_minter.database.tables import Goal, GoalStatus, MintRecord, User

logger = get_logger(__name__)

GoalCursor = tuple[datetime, str]


def _eligible(stmt: Any) -> Any:
    """Anti-join against mint_records: completed, not soft-deleted, never minted."""
    return stmt.outerjoin(MintRecord, MintRecord.goal_id == Goal.id).where(
        Goal.status == GoalStatus.COMPLETED.value,
        Goal.deleted_at.is_(None),
        MintRecord.id.is_(None),
    )


def _owner_snapshot(user: User | None) -> GoalOwner | None:
    if user is None:
        return None
    return GoalOwner(
        id=user.id,
        first_name=user.first_name or "",
        last_name=user.last_name or "",
        current_role=user.current_role,
        wallet_address=user.wallet_address,
    )


def _entry(row: MintRecord) -> MintRecordEntry:
    return MintRecordEntry(
        id=row.id,
        user_id=row.user_id,
        goal_id=row.goal_id,
        token_id=row.token_id,
        tx_signature=row.tx_signature,
        program_id=row.program_id,
        description=row.description,
        user_info=row.user_info,
        completion_timestamp=row.completion_timestamp,
        minted_at=row.minted_at,
        created_at=row.created_at,
    )


class GoalRepository:
    """Read-only queries over goals for the minting pipeline."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def find_eligible(self, page_size: int, after: GoalCursor | None = None) -> list[EligibleGoal]:
        """
        Return up to page_size eligible goals ordered by (updated_at, id) ascending.

        after: keyset cursor (updated_at, id) of the last goal already seen in this
        run; only goals strictly after it are returned. One SELECT, no side effects.
        """
        if page_size < 1:
            return []
        stmt = _eligible(
            select(Goal, User).outerjoin(User, User.id == Goal.user_id)
        )
        if after is not None:
            after_ts, after_id = after
            stmt = stmt.where(
                or_(
                    Goal.updated_at > after_ts,
                    and_(Goal.updated_at == after_ts, Goal.id > after_id),
                )
            )
        stmt = stmt.order_by(Goal.updated_at.asc(), Goal.id.asc()).limit(page_size)
        with self._db.session_scope() as session:
            rows = session.execute(stmt).all()
            page = [
                EligibleGoal(
                    id=goal.id,
                    title=goal.title,
                    updated_at=goal.updated_at,
                    owner=_owner_snapshot(user),
                )
                for goal, user in rows
            ]
        logger.debug("eligible_page_loaded", page_size=page_size, returned=len(page), has_cursor=after is not None)
        return page

    def count_eligible(self) -> int:
        """Backlog size: same predicate as find_eligible without limit or cursor."""
        stmt = _eligible(select(func.count(Goal.id)).select_from(Goal))
        with self._db.session_scope() as session:
            return int(session.scalar(stmt) or 0)


class MintRecordStore:
    """Durable record of confirmed mints; one row per goal."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(
        self,
        *,
        user_id: str,
        goal_id: str,
        token_id: str | None,
        tx_signature: str,
        program_id: str,
        description: str,
        user_info: str,
        completion_timestamp: int | None,
        minted_at: datetime | None,
    ) -> MintRecordEntry:
        """
        Insert one mint record and return it.

        Raises DuplicateMintError when goal_id already has a record (another run
        won the race). Any other integrity error is re-raised.
        """
        try:
            with self._db.session_scope() as session:
                row = MintRecord(
                    user_id=user_id,
                    goal_id=goal_id,
                    token_id=token_id,
                    tx_signature=tx_signature,
                    program_id=program_id,
                    description=description[:500],
                    user_info=user_info[:500],
                    completion_timestamp=completion_timestamp,
                    minted_at=minted_at,
                )
                session.add(row)
                session.flush()
                entry = _entry(row)
        except IntegrityError as e:
            if self.exists_for_goal(goal_id):
                raise DuplicateMintError(goal_id) from e
            raise
        logger.debug("mint_record_created", goal_id=goal_id, user_id=user_id, record_id=entry.id)
        return entry

    def exists_for_goal(self, goal_id: str) -> bool:
        with self._db.session_scope() as session:
            found = session.scalar(select(MintRecord.id).where(MintRecord.goal_id == goal_id))
            return found is not None

    def get_for_goal(self, goal_id: str) -> MintRecordEntry | None:
        with self._db.session_scope() as session:
            row = session.scalar(select(MintRecord).where(MintRecord.goal_id == goal_id))
            return _entry(row) if row else None

    def list_for_user(self, user_id: str, *, limit: int = 100) -> list[MintRecordEntry]:
        """Achievements of one user, newest first."""
        stmt = (
            select(MintRecord)
            .where(MintRecord.user_id == user_id)
            .order_by(MintRecord.created_at.desc(), MintRecord.id.desc())
            .limit(limit)
        )
        with self._db.session_scope() as session:
            return [_entry(r) for r in session.scalars(stmt).all()]

    def holder_leaderboard(self, limit: int = 10) -> list[tuple[str, int]]:
        """(user_id, achievements) pairs, most achievements first; ties by user_id."""
        total = func.count(MintRecord.id).label("total")
        stmt = (
            select(MintRecord.user_id, total)
            .group_by(MintRecord.user_id)
            .order_by(desc(total), MintRecord.user_id.asc())
            .limit(limit)
        )
        with self._db.session_scope() as session:
            return [(user_id, int(count)) for user_id, count in session.execute(stmt).all()]

    def count(self) -> int:
        with self._db.session_scope() as session:
            return int(session.scalar(select(func.count(MintRecord.id))) or 0)
