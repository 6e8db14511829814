# Daily mint scheduling: APScheduler cron job around the orchestrator.

from achievement_minter.scheduler.engine import (
    JOB_ID,
    add_daily_mint_job,
    mint_job,
    start_background_scheduler,
)

__all__ = [
    "JOB_ID",
    "add_daily_mint_job",
    "mint_job",
    "start_background_scheduler",
]
