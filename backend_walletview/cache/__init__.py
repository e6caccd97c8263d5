"""
Shared short-lived caches (chain tip, gas price).
"""

from backend_walletview.cache.ttl_cache import (
    BLOCK_NUMBER_KEY,
    BLOCK_NUMBER_TTL_SEC,
    GAS_PRICE_KEY,
    GAS_PRICE_TTL_SEC,
    TTLCache,
)

__all__ = [
    "BLOCK_NUMBER_KEY",
    "BLOCK_NUMBER_TTL_SEC",
    "GAS_PRICE_KEY",
    "GAS_PRICE_TTL_SEC",
    "TTLCache",
]
