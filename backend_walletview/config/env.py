"""
Environment variable loading for WalletView.

- RPC_URL: JSON-RPC node endpoint (fallbacks: ALCHEMY_API_URL, SEPOLIA_RPC_URL)
- WALLETVIEW_DB_URL / DATABASE_URL: SQLAlchemy URL for the snapshot store
- DATABASE_PATH: SQLite file used when no database URL is set
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)

# Project root: config is backend_walletview/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_SQLITE_PATH = "walletview.db"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def load_walletview_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("config_invalid_int", name=name, value=raw, default=default)
        return default


def env_float(name: str, default: float | None) -> float | None:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("config_invalid_float", name=name, value=raw, default=default)
        return default


def env_bool(name: str, default: bool) -> bool:
    raw = env_str(name).lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def get_rpc_url() -> str:
    """
    Resolve JSON-RPC node URL from env.
    Order: RPC_URL > ALCHEMY_API_URL > SEPOLIA_RPC_URL > local node.
    """
    load_walletview_env()
    for name in ("RPC_URL", "ALCHEMY_API_URL", "SEPOLIA_RPC_URL"):
        url = env_str(name)
        if url:
            return url
    return DEFAULT_RPC_URL


def get_database_url() -> str:
    """Return WALLETVIEW_DB_URL or DATABASE_URL if set; else SQLite from DATABASE_PATH or default."""
    load_walletview_env()
    url = env_str("WALLETVIEW_DB_URL") or env_str("DATABASE_URL")
    if url:
        return url
    path = env_str("DATABASE_PATH", DEFAULT_SQLITE_PATH)
    return f"sqlite:///{path}"


def mask_url(url: str) -> str:
    """Hide API keys and credentials embedded in RPC / database URLs for logging."""
    if "api-key=" in url:
        url = url.split("api-key=")[0] + "api-key=***"
    if "@" in url and "://" in url:
        scheme, rest = url.split("://", 1)
        url = f"{scheme}://***@{rest.split('@', 1)[1]}"
    if "/v2/" in url:
        url = url.split("/v2/")[0] + "/v2/***"
    return url


def print_walletview_startup(script_name: str) -> None:
    """Print the node endpoint (credentials masked) at script start."""
    load_walletview_env()
    print(f"[walletview] {script_name} | rpc={mask_url(get_rpc_url())}")
