"""
Structured logging for Lumina engines, the ledger and the API.

One structlog pipeline, configured on first import. Each line carries an ISO
8601 UTC timestamp, the level, the originating module (`logger`) and an
`event_type` naming what happened, followed by keyword context:

    {"event_type": "signals_ranked", "artists": 41, "returned": 24,
     "level": "debug", "logger": "lumina.analysis_engine.signals", "timestamp": "..."}

LOG_FORMAT=json (default) renders one JSON object per line on stdout; any
other value renders coloured console output. LOG_LEVEL filters (default INFO).

Imports nothing else from lumina so every module can use it.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

WALLET_LOG_CHARS = 16


def _event_to_event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """JSON lines use event_type instead of structlog's event key."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _renderer_chain(fmt: str) -> list[Any]:
    if fmt == "json":
        return [_event_to_event_type, structlog.processors.JSONRenderer()]
    # ConsoleRenderer reads the `event` key, so it is left in place
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_structlog(level: int = LOG_LEVEL_VALUE, fmt: str = LOG_FORMAT) -> None:
    """Install the Lumina processor chain. Called once at import; tests may call again."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            *_renderer_chain(fmt),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def short_wallet(wallet: str) -> str:
    """Wallet prefix for log lines; full addresses never go to logs."""
    if len(wallet) <= WALLET_LOG_CHARS:
        return wallet
    return wallet[:WALLET_LOG_CHARS] + "..."


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger tagged with the module name.

        logger = get_logger(__name__)
        logger.debug("signals_ranked", artists=41, returned=24)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet: str, name: str = "lumina.ledger") -> structlog.BoundLogger:
    """Logger with the (truncated) wallet bound to every subsequent call."""
    return get_logger(name).bind(wallet=short_wallet(wallet))
