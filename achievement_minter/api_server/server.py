"""
FastAPI server — manual mint trigger, backlog status and achievement listings.

The lifespan opens the database, builds the minting orchestrator when the
signing key and program id are configured, and starts the daily scheduler in a
background thread. Without chain config (outside production) the read-only
endpoints still work and POST /nft/mint answers 503.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from achievement_minter import __version__
from achievement_minter.achievement_logging import get_logger
from achievement_minter.api_server.nft_routes import router as nft_router
from achievement_minter.config import MinterSettings, get_settings, run_startup_checks
from achievement_minter.core.exceptions import ConfigurationError
from achievement_minter.database import Database, get_database
from achievement_minter.minting.orchestrator import MintingOrchestrator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire database, orchestrator and scheduler; stop the scheduler on shutdown."""
    state = app.state
    settings: MinterSettings = state.settings
    if state.database is None:
        state.database = get_database(settings.database_url)
    state.database.init_db()

    if state.orchestrator is None:
        from achievement_minter.minting.factory import build_orchestrator

        try:
            run_startup_checks(settings)
            state.orchestrator = build_orchestrator(settings, state.database)
        except ConfigurationError as e:
            if settings.is_production:
                raise
            logger.error("api_minting_disabled", error=str(e))

    scheduler = None
    if state.orchestrator is not None and settings.scheduler_enabled and state.start_scheduler:
        from achievement_minter.scheduler.engine import start_background_scheduler

        scheduler = start_background_scheduler(state.orchestrator, settings)

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("mint_scheduler_stopped")


def create_app(
    *,
    settings: MinterSettings | None = None,
    database: Database | None = None,
    orchestrator: MintingOrchestrator | None = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """Build the ASGI app. Tests inject database and orchestrator."""
    app = FastAPI(
        title="Achievement Minter API",
        description="Trigger and inspect minting of on-chain achievements for completed goals.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()
    app.state.database = database
    app.state.orchestrator = orchestrator
    app.state.start_scheduler = start_scheduler

    app.include_router(nft_router)

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Liveness probe: API is up."""
        orch = app.state.orchestrator
        return {
            "status": "ok",
            "minting_enabled": orch is not None,
            "mint_running": bool(orch and orch.running),
        }

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        """Consistent JSON error response for HTTPException."""
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    return app
