"""
Database layer — users and goals (read), mint records (write once).

SQLAlchemy engine per Database instance; SQLite for local runs and tests,
PostgreSQL through DATABASE_URL in deployment.
"""

from achievement_minter.database.connection import (
    Database,
    get_database,
    reset_databases_for_test,
)
from achievement_minter.database.models import (
    EligibleGoal,
    GoalOwner,
    MintRecordEntry,
)
from achievement_minter.database.repositories import GoalRepository, MintRecordStore
from achievement_minter.database.tables import Goal, GoalStatus, MintRecord, User

__all__ = [
    "Database",
    "get_database",
    "reset_databases_for_test",
    "EligibleGoal",
    "GoalOwner",
    "MintRecordEntry",
    "GoalRepository",
    "MintRecordStore",
    "Goal",
    "GoalStatus",
    "MintRecord",
    "User",
]
