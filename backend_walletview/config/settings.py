"""
Application settings and environment configuration.

Loads configuration from environment variables (and .env), applies defaults
for optional values, and exposes a typed, immutable Settings object used by
the API server, the chain reader, the snapshot store and the CLI tools.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from backend_walletview.config.env import (
    env_bool,
    env_float,
    env_int,
    env_str,
    get_database_url,
    get_rpc_url,
    load_walletview_env,
)

DEFAULT_BLOCK_NUMBER_TTL_SEC = 10.0
DEFAULT_GAS_PRICE_TTL_SEC = 30.0
DEFAULT_SCAN_MAX_RESULTS = 10
DEFAULT_SCAN_MAX_BLOCKS = 10_000


@dataclass(frozen=True)
class Settings:
    """Typed service configuration. Build with Settings.from_env() or get_settings()."""

    rpc_url: str = "http://127.0.0.1:8545"
    rpc_timeout_sec: float = 30.0
    network_label: str = ""
    """Optional display name for the chain; empty means derive from chain id."""

    token_address: str | None = None
    token_symbol: str = "T3T"
    token_name: str = "Tier3Token"
    token_decimals: int = 18

    database_url: str = "sqlite:///walletview.db"
    snapshots_enabled: bool = True

    block_number_ttl_sec: float = DEFAULT_BLOCK_NUMBER_TTL_SEC
    gas_price_ttl_sec: float = DEFAULT_GAS_PRICE_TTL_SEC
    request_timeout_sec: float | None = None
    """Deadline for one aggregation call; None disables it."""

    scan_max_results: int = DEFAULT_SCAN_MAX_RESULTS
    scan_max_blocks: int = DEFAULT_SCAN_MAX_BLOCKS
    scan_deadline_sec: float | None = None
    """Wall-clock bound for one history scan; None disables it."""

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_walletview_env()
        timeout = env_float("REQUEST_TIMEOUT_SEC", None)
        scan_deadline = env_float("SCAN_DEADLINE_SEC", None)
        return cls(
            rpc_url=get_rpc_url(),
            rpc_timeout_sec=env_float("RPC_TIMEOUT_SEC", 30.0) or 30.0,
            network_label=env_str("NETWORK"),
            token_address=env_str("TOKEN_CONTRACT_ADDRESS") or None,
            token_symbol=env_str("TOKEN_SYMBOL", "T3T"),
            token_name=env_str("TOKEN_NAME", "Tier3Token"),
            token_decimals=env_int("TOKEN_DECIMALS", 18),
            database_url=get_database_url(),
            snapshots_enabled=env_bool("SNAPSHOTS_ENABLED", True),
            block_number_ttl_sec=env_float("BLOCK_NUMBER_TTL_SEC", DEFAULT_BLOCK_NUMBER_TTL_SEC),
            gas_price_ttl_sec=env_float("GAS_PRICE_TTL_SEC", DEFAULT_GAS_PRICE_TTL_SEC),
            request_timeout_sec=timeout if timeout and timeout > 0 else None,
            scan_max_results=env_int("SCAN_MAX_RESULTS", DEFAULT_SCAN_MAX_RESULTS),
            scan_max_blocks=env_int("SCAN_MAX_BLOCKS", DEFAULT_SCAN_MAX_BLOCKS),
            scan_deadline_sec=scan_deadline if scan_deadline and scan_deadline > 0 else None,
            api_host=env_str("API_HOST", "0.0.0.0"),
            api_port=env_int("API_PORT", 8000),
            log_level=env_str("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment on first call."""
    return Settings.from_env()
