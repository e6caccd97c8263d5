"""
Health checks for the chain connection and the snapshot store.

Chain is up when the node answers eth_chainId. The store is up when a trivial
query round-trips, and "disabled" when snapshots are turned off. Overall status
is healthy iff chain is up and the store is up or disabled.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

from backend_walletview.chain_reader import ChainReader, network_name
from backend_walletview.database import SnapshotStore
from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)

STATUS_UP = "up"
STATUS_DOWN = "down"
STATUS_DISABLED = "disabled"


async def check_chain(reader: ChainReader, network_label: str = "") -> dict[str, Any]:
    try:
        chain_id = await reader.get_chain_id()
    except Exception as e:
        logger.warning("health_chain_down", error=str(e))
        return {"status": STATUS_DOWN}
    return {"status": STATUS_UP, "network": network_label or network_name(chain_id), "chainId": chain_id}


async def check_database(store: SnapshotStore | None) -> dict[str, Any]:
    if store is None:
        return {"status": STATUS_DISABLED}
    try:
        await asyncio.to_thread(store.ping)
    except Exception as e:
        logger.warning("health_database_down", error=str(e))
        return {"status": STATUS_DOWN}
    return {"status": STATUS_UP}


async def build_health_report(
    reader: ChainReader,
    store: SnapshotStore | None,
    *,
    network_label: str = "",
) -> tuple[int, dict[str, Any]]:
    """Return (http_status, body)."""
    ethereum, database = await asyncio.gather(
        check_chain(reader, network_label),
        check_database(store),
    )
    healthy = ethereum["status"] == STATUS_UP and database["status"] in (STATUS_UP, STATUS_DISABLED)
    body = {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "services": {"ethereum": ethereum, "database": database},
    }
    return (200 if healthy else 503), body
