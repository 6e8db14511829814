# Minting pipeline: single-flight guard + orchestrator (page -> mint -> persist).

from achievement_minter.minting.guard import SingleFlightGuard
from achievement_minter.minting.orchestrator import (
    MintingOrchestrator,
    MintOutcome,
    MintRunResult,
    MintState,
    OrchestratorConfig,
    build_user_info,
)

__all__ = [
    "MintingOrchestrator",
    "MintOutcome",
    "MintRunResult",
    "MintState",
    "OrchestratorConfig",
    "SingleFlightGuard",
    "build_user_info",
]
