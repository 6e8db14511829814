"""
FastAPI router: manual mint trigger and read-only achievement endpoints.

POST /nft/mint             run the orchestrator now, report the count minted
GET  /nft/pending-count    backlog size
GET  /nft/users/{user_id}  achievements of one user
GET  /nft/leaderboard      users with the most achievements
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from achievement_minter.achievement_logging import get_logger
from achievement_minter.database.repositories import GoalRepository, MintRecordStore
from achievement_minter.minting.orchestrator import MintingOrchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/nft", tags=["nft"])


class MintTriggerResponse(BaseModel):
    """POST /nft/mint response."""

    success: bool = Field(..., description="True when the run completed or was skipped as already running")
    message: str
    totalMinted: int = Field(..., ge=0, description="Goals minted and recorded by this run")
    alreadyMinted: int = Field(0, ge=0, description="Goals recorded concurrently by another run")
    failed: int = Field(0, ge=0, description="Goals that failed and stay eligible")
    skipped: bool = Field(False, description="True if another run was in progress in this process")


class PendingCountResponse(BaseModel):
    """GET /nft/pending-count response."""

    success: bool
    pendingCount: int = Field(..., ge=0, description="Completed goals waiting to be minted")


class AchievementResponse(BaseModel):
    id: str
    userId: str
    goalId: str
    tokenId: str | None = None
    txSignature: str
    programId: str
    description: str
    userInfo: str
    completionTimestamp: int | None = None
    mintedAt: str | None = None


class LeaderboardEntry(BaseModel):
    userId: str
    totalMinted: int


def get_goal_repository(request: Request) -> GoalRepository:
    return GoalRepository(request.app.state.database)


def get_mint_store(request: Request) -> MintRecordStore:
    return MintRecordStore(request.app.state.database)


def get_orchestrator(request: Request) -> MintingOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Minting is not configured (signing key or program id missing)")
    return orchestrator


@router.post("/mint", response_model=MintTriggerResponse)
async def mint_now(orchestrator: MintingOrchestrator = Depends(get_orchestrator)) -> MintTriggerResponse:
    """
    Trigger the mint job now. Same run as the daily schedule; safe to repeat since
    each call only processes goals that are still eligible.
    """
    logger.info("api_mint_triggered")
    try:
        result = await run_in_threadpool(orchestrator.run_once)
    except Exception as e:
        logger.exception("api_mint_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Mint job failed") from e
    return MintTriggerResponse(
        success=True,
        message="Mint job already running" if result.skipped else "Mint job completed",
        totalMinted=result.total_minted,
        alreadyMinted=result.already_minted,
        failed=result.failed,
        skipped=result.skipped,
    )


@router.get("/pending-count", response_model=PendingCountResponse)
def pending_count(goals: GoalRepository = Depends(get_goal_repository)) -> PendingCountResponse:
    try:
        count = goals.count_eligible()
    except Exception as e:
        logger.exception("api_pending_count_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to count pending goals") from e
    return PendingCountResponse(success=True, pendingCount=count)


@router.get("/users/{user_id}", response_model=list[AchievementResponse])
def user_achievements(
    user_id: str,
    limit: int = Query(100, ge=1, le=500),
    store: MintRecordStore = Depends(get_mint_store),
) -> list[dict[str, Any]]:
    user_id = user_id.strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="user_id must be non-empty")
    return [entry.to_dict() for entry in store.list_for_user(user_id, limit=limit)]


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    store: MintRecordStore = Depends(get_mint_store),
) -> list[LeaderboardEntry]:
    return [LeaderboardEntry(userId=uid, totalMinted=n) for uid, n in store.holder_leaderboard(limit)]
