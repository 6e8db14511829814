"""
Daily achievement mint scheduler (APScheduler cron).

Runs the minting orchestrator once a day at MINT_CRON_HOUR:MINT_CRON_MINUTE in
MINT_TIMEZONE. The orchestrator's single-flight guard still applies, so a manual
trigger racing the cron tick is skipped rather than run twice.

Usage:
  python -m achievement_minter.scheduler            # start scheduler (blocks)
  python -m achievement_minter.scheduler --run-now  # run once, then exit
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from pytz import timezone

from achievement_minter.achievement_logging import get_logger
from achievement_minter.config import get_settings, run_startup_checks
from achievement_minter.config.settings import MinterSettings
from achievement_minter.core.exceptions import ConfigurationError
from achievement_minter.database import get_database
from achievement_minter.minting.orchestrator import MintingOrchestrator

logger = get_logger(__name__)

JOB_ID = "achievement_daily_mint"
MISFIRE_GRACE_SEC = 3600


def mint_job(orchestrator: MintingOrchestrator) -> None:
    """Scheduled job: log start, run the orchestrator, log the counts."""
    logger.info("mint_scheduler_job_start")
    try:
        result = orchestrator.run_once()
        logger.info("mint_scheduler_job_end", **result.to_dict())
    except Exception as e:
        logger.exception("mint_scheduler_job_error", error=str(e))
        raise


def add_daily_mint_job(scheduler: Any, orchestrator: MintingOrchestrator, settings: MinterSettings) -> Any:
    """Register the daily cron job on scheduler. One instance at a time; missed ticks coalesce."""
    return scheduler.add_job(
        mint_job,
        "cron",
        args=[orchestrator],
        hour=settings.cron_hour,
        minute=settings.cron_minute,
        timezone=timezone(settings.timezone),
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=MISFIRE_GRACE_SEC,
    )


def start_background_scheduler(orchestrator: MintingOrchestrator, settings: MinterSettings) -> BackgroundScheduler:
    """Start a daemon scheduler thread for the API process."""
    scheduler = BackgroundScheduler(timezone=timezone(settings.timezone))
    add_daily_mint_job(scheduler, orchestrator, settings)
    scheduler.start()
    logger.info(
        "mint_scheduler_started",
        run_time=f"{settings.cron_hour:02d}:{settings.cron_minute:02d} {settings.timezone} daily",
    )
    return scheduler


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Mint on-chain achievements for completed goals once a day."
    )
    parser.add_argument(
        "--run-now",
        action="store_true",
        help="Run the mint job once immediately, then exit.",
    )
    args = parser.parse_args(argv)

    from achievement_minter.minting.factory import build_orchestrator

    settings = get_settings()
    try:
        run_startup_checks(settings)
        db = get_database(settings.database_url)
        db.init_db()
        orchestrator = build_orchestrator(settings, db)
    except ConfigurationError as e:
        logger.error("mint_scheduler_config_error", error=str(e))
        return 2

    if args.run_now:
        logger.info("mint_scheduler_manual_run_start")
        result = orchestrator.run_once()
        logger.info("mint_scheduler_manual_run_end", **result.to_dict())
        return 0

    scheduler = BlockingScheduler(timezone=timezone(settings.timezone))
    add_daily_mint_job(scheduler, orchestrator, settings)
    logger.info(
        "mint_scheduler_started",
        run_time=f"{settings.cron_hour:02d}:{settings.cron_minute:02d} {settings.timezone} daily",
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("mint_scheduler_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
