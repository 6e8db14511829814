"""
Structured logging for the minting pipeline.

Every record is one JSON object with event_type, level, timestamp and logger,
plus whatever the call site passes (goal_id, user_id, signature, reason, ...).
A mint run binds run_id through structlog contextvars, so all goal-level lines
of one run share it. Secrets (signing key, RPC api keys) are masked before
rendering.

Uses only stdlib logging and structlog; no achievement_minter imports to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# json for deployment; console for local runs
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

SECRET_KEYS = frozenset({"private_key", "minter_private_key", "secret", "password"})
REDACTED = "***"


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _redact_secrets(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask secret fields and api-key query params in any string value."""
    for key, value in event_dict.items():
        if key in SECRET_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, str) and "api-key=" in value:
            event_dict[key] = value.split("api-key=")[0] + "api-key=" + REDACTED
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type; keep message if present."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog(level: int = LOG_LEVEL_VALUE, fmt: str = LOG_FORMAT) -> None:
    """Configure structlog: contextvars, level, timestamp, redaction, event_type, renderer."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _redact_secrets,
        _normalize_event,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    else:
        processors.append(structlog.processors.JSONRenderer())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("mint_persisted", goal_id=goal_id, signature=sig, token_id="7")

    Output (JSON): {"event_type": "mint_persisted", "goal_id": "...", "signature": "...",
    "token_id": "7", "run_id": "...", "timestamp": "...", "level": "info", "logger": "module.name"}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_goal(goal_id: str, name: str = "achievement_minter") -> structlog.BoundLogger:
    """Return a logger with goal_id bound to all subsequent log calls."""
    return get_logger(name).bind(goal_id=goal_id)


@contextmanager
def bind_run(run_id: str) -> Iterator[str]:
    """Bind run_id to every log line emitted in this context (thread/task local)."""
    with structlog.contextvars.bound_contextvars(run_id=run_id):
        yield run_id
