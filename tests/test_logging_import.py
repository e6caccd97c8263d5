"""
Test that walletview_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from walletview_logging and use the logger."""
    from backend_walletview.walletview_logging import bind_address, get_logger

    logger = get_logger("test")
    assert logger is not None
    for level in ("info", "debug", "warning", "error"):
        assert hasattr(logger, level)
    # Smoke test: should not raise
    logger.info("test_message", key="value")
    bind_address("0xabc").info("test_bound_message", block_number=1)


def test_event_processors_add_event_type_and_timestamp():
    """Processors rename event to event_type and stamp an ISO timestamp."""
    from backend_walletview.walletview_logging.logger import _add_timestamp, _normalize_event

    event = _add_timestamp(None, "info", {"event": "render_check", "address": "0xabc"})
    event = _normalize_event(None, "info", event)
    assert event["event_type"] == "render_check"
    assert event["message"] == "render_check"
    assert "event" not in event
    assert event["address"] == "0xabc"
    assert event["timestamp"].endswith("+00:00")
