"""
structlog setup for WalletView.

Every record carries event_type (the snake_case event name passed first),
level, an ISO-8601 UTC timestamp, the emitting module as logger, and whatever
key/value context the call site adds (address, block_number, error, ...).

LOG_FORMAT=json (default) renders one JSON object per line on stdout; any
other value uses the structlog console renderer. LOG_LEVEL filters records.

Imports nothing from backend_walletview so any module can import it first.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog


def _add_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _normalize_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Move structlog's positional event into event_type and mirror it as message."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


def configure_structlog() -> None:
    """Apply LOG_FORMAT / LOG_LEVEL from the environment to structlog."""
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO)
    if os.getenv("LOG_FORMAT", "json").strip().lower() == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            _add_timestamp,
            _normalize_event,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger, bound with logger=name.

        logger = get_logger(__name__)
        logger.info("wallet_state_served", address=addr, block_number=123, cached=True)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_address(address: str) -> structlog.BoundLogger:
    """Logger with address bound to every call; used where one event describes one wallet."""
    return get_logger("backend_walletview").bind(address=address)
