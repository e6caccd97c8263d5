"""
Analytics services — wallet state aggregation and recent transaction scanning.
"""

from backend_walletview.analytics.transaction_scanner import (
    ScanResult,
    StopReason,
    TransactionScanner,
)
from backend_walletview.analytics.wallet_state import (
    CACHE_CONTROL_HINT,
    TokenMetadata,
    WalletStateService,
    WalletStateView,
)

__all__ = [
    "CACHE_CONTROL_HINT",
    "ScanResult",
    "StopReason",
    "TokenMetadata",
    "TransactionScanner",
    "WalletStateService",
    "WalletStateView",
]
