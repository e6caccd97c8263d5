"""
Structured logging for Backend WalletView.

JSON logs with timestamp, event_type, address and request context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_walletview.walletview_logging.logger import bind_address, get_logger

__all__ = ["bind_address", "get_logger"]
