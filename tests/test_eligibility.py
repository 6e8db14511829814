"""
Tests for GoalRepository: eligibility predicate, ordering, keyset cursor, backlog count.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from achievement_minter.database import GoalRepository, GoalStatus

SAME_TIME = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


def test_only_completed_live_unminted_goals_are_eligible(db, seed):
    """In-progress, abandoned, soft-deleted and already-minted goals are excluded."""
    uid = seed.user()
    eligible = seed.goal(uid, title="done")
    seed.goal(uid, status=GoalStatus.IN_PROGRESS)
    seed.goal(uid, status=GoalStatus.NOT_STARTED)
    seed.goal(uid, status=GoalStatus.ABANDONED)
    seed.goal(uid, deleted=True)
    minted = seed.goal(uid)
    seed.mint_record(uid, minted)

    repo = GoalRepository(db)
    page = repo.find_eligible(10)
    assert [g.id for g in page] == [eligible]
    assert page[0].title == "done"
    assert repo.count_eligible() == 1


def test_eligible_goal_carries_owner_snapshot(db, seed):
    """Owner fields come back detached from the session."""
    uid = seed.user(first_name="Grace", last_name="Hopper", current_role="Admiral")
    seed.goal(uid)
    (goal,) = GoalRepository(db).find_eligible(10)
    assert goal.owner is not None
    assert goal.owner.id == uid
    assert goal.owner.first_name == "Grace"
    assert goal.owner.current_role == "Admiral"


def test_goal_without_owner_is_still_returned(db, seed):
    """Owner problems are reported by the mint unit, not hidden by the query."""
    gid = seed.goal(None)
    (goal,) = GoalRepository(db).find_eligible(10)
    assert goal.id == gid
    assert goal.owner is None


def test_ordered_by_updated_at_then_id(db, seed):
    """Ties on updated_at are broken by id ascending."""
    uid = seed.user()
    seed.goal(uid, goal_id="b", updated_at=SAME_TIME)
    seed.goal(uid, goal_id="a", updated_at=SAME_TIME)
    seed.goal(uid, goal_id="z", updated_at=datetime(2024, 2, 1, tzinfo=timezone.utc))
    page = GoalRepository(db).find_eligible(10)
    assert [g.id for g in page] == ["z", "a", "b"]


def test_ordering_uses_utc_instant_not_wall_clock(db, seed):
    """10:00+07:00 (03:00Z) sorts before 05:00Z; timestamps come back as aware UTC."""
    uid = seed.user()
    seed.goal(uid, goal_id="utc", updated_at=datetime(2024, 5, 1, 5, 0, tzinfo=timezone.utc))
    seed.goal(uid, goal_id="jakarta", updated_at=datetime(2024, 5, 1, 10, 0, tzinfo=timezone(timedelta(hours=7))))

    page = GoalRepository(db).find_eligible(10)

    assert [g.id for g in page] == ["jakarta", "utc"]
    assert page[0].updated_at == datetime(2024, 5, 1, 3, 0, tzinfo=timezone.utc)
    assert page[0].updated_at.tzinfo is not None
    second = GoalRepository(db).find_eligible(10, after=page[0].cursor)
    assert [g.id for g in second] == ["utc"]


def test_cursor_pages_without_overlap(db, seed):
    """Pages after a cursor start strictly past it, including on timestamp ties."""
    uid = seed.user()
    for gid in ("c", "a", "b"):
        seed.goal(uid, goal_id=gid, updated_at=SAME_TIME)
    seed.goal(uid, goal_id="late", updated_at=datetime(2024, 4, 1, tzinfo=timezone.utc))

    repo = GoalRepository(db)
    first = repo.find_eligible(2)
    assert [g.id for g in first] == ["a", "b"]
    second = repo.find_eligible(2, after=first[-1].cursor)
    assert [g.id for g in second] == ["c", "late"]
    assert repo.find_eligible(2, after=second[-1].cursor) == []


def test_page_size_limits_results(db, seed):
    uid = seed.user()
    seed.goals(uid, 7)
    repo = GoalRepository(db)
    assert len(repo.find_eligible(5)) == 5
    assert repo.find_eligible(0) == []
    assert repo.count_eligible() == 7


def test_find_eligible_has_no_side_effects(db, seed):
    """Reading a page twice returns the same goals."""
    uid = seed.user()
    seed.goals(uid, 3)
    repo = GoalRepository(db)
    assert [g.id for g in repo.find_eligible(10)] == [g.id for g in repo.find_eligible(10)]
