"""
Main entrypoint: FastAPI server in the main thread, daily mint scheduler in a background thread.

The API lifespan builds the minting orchestrator and starts the APScheduler
background scheduler, so the cron job and POST /nft/mint share one process-wide
single-flight guard. On SIGINT/SIGTERM the server shuts down and the scheduler stops.

Env: DATABASE_URL, SOLANA_NETWORK, SOLANA_RPC_URL, MINTER_PRIVATE_KEY,
ACHIEVEMENT_PROGRAM_ID, MINT_CRON_HOUR, MINT_CRON_MINUTE, MINT_TIMEZONE, API_HOST, API_PORT.

Scheduler only (no API): python -m achievement_minter.scheduler
"""

import os

# Configure structured JSON logging before other imports that may log
from achievement_minter.achievement_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings, then run the FastAPI server (scheduler starts in its lifespan)."""
    from achievement_minter.api_server.server import create_app
    from achievement_minter.config import get_settings
    import uvicorn

    settings = get_settings()
    app = create_app(settings=settings)

    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        scheduler_enabled=settings.scheduler_enabled,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
