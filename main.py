"""
Main entrypoint: FastAPI server for Backend WalletView.

Builds the chain reader, TTL cache and snapshot store from the environment,
wires them into the app, and serves it with uvicorn. Lifecycle of those
capabilities is owned by the app's lifespan (schema on startup, dispose on shutdown).

Env: RPC_URL, TOKEN_CONTRACT_ADDRESS, DATABASE_URL / DATABASE_PATH, SNAPSHOTS_ENABLED,
API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT, etc.

Equivalent: uvicorn backend_walletview.api_server.app:app --host 0.0.0.0 --port 8000
"""

import uvicorn

from backend_walletview.config import get_settings
from backend_walletview.config.env import mask_url
from backend_walletview.walletview_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Build the app from settings and run it in the main thread."""
    settings = get_settings()

    from backend_walletview.api_server.server import create_app

    app = create_app(settings)
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        rpc_url=mask_url(settings.rpc_url),
        snapshots_enabled=settings.snapshots_enabled,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
