"""
FastAPI server — wallet state, recent transactions, cache control, health.

Capabilities (chain reader, TTL cache, snapshot store) are constructed
explicitly in create_app() and held on app.state; route handlers reach them
through dependencies, so tests can inject fakes.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from backend_walletview import __version__
from backend_walletview.analytics import (
    CACHE_CONTROL_HINT,
    TokenMetadata,
    TransactionScanner,
    WalletStateService,
)
from backend_walletview.api_server.health import build_health_report
from backend_walletview.api_server.middleware import RequestTimingMiddleware
from backend_walletview.cache import TTLCache
from backend_walletview.chain_reader import ChainReader, Web3ChainReader
from backend_walletview.config import Settings, get_settings
from backend_walletview.core.exceptions import InvalidInput
from backend_walletview.database import SnapshotStore, build_snapshot_store
from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)

INVALID_ADDRESS_ERROR = "Invalid Ethereum address"
WALLET_FETCH_ERROR = "Failed to fetch wallet data"
TRANSACTIONS_FETCH_ERROR = "Failed to fetch transactions"

_FROM_SETTINGS: Any = object()


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class WalletResponse(BaseModel):
    """GET /wallet/{address} response."""

    model_config = ConfigDict(populate_by_name=True)

    address: str = Field(..., description="Lower-cased wallet address")
    block_number: int = Field(..., alias="blockNumber", description="Chain tip (cached)")
    gas_price: str = Field(..., alias="gasPrice", description='"<value> Gwei" (cached)')
    eth_balance: str = Field(..., alias="ethBalance", description='"<value> ETH" (fresh)')
    token_balance: str = Field(..., alias="tokenBalance", description="Token balance; 0 when unavailable")
    token_symbol: str = Field(..., alias="tokenSymbol")
    token_name: str = Field(..., alias="tokenName")
    cached: bool = Field(..., description="Block number and gas price were served from cache")
    timestamp: str = Field(..., description="ISO 8601 UTC time the view was composed")


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class RevalidateResponse(BaseModel):
    tag: str
    removed: int = Field(..., description="Number of cache entries dropped")


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------


def get_wallet_service(request: Request) -> WalletStateService:
    return request.app.state.wallet_service


def get_scanner(request: Request) -> TransactionScanner:
    return request.app.state.scanner


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _error(status_code: int, error: str, details: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(),
    )


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    reader: ChainReader | None = None,
    store: SnapshotStore | None = _FROM_SETTINGS,
    cache: TTLCache | None = None,
) -> FastAPI:
    """
    Build the ASGI app and its capabilities.

    reader / store / cache default to instances built from settings; pass
    store=None to run with persistence disabled.
    """
    if settings is None:
        settings = get_settings()
    if reader is None:
        reader = Web3ChainReader(settings.rpc_url, request_timeout_sec=settings.rpc_timeout_sec)
    if store is _FROM_SETTINGS:
        store = build_snapshot_store(settings)
    if cache is None:
        cache = TTLCache()

    wallet_service = WalletStateService(
        reader,
        cache,
        store,
        token=TokenMetadata(
            address=settings.token_address,
            symbol=settings.token_symbol,
            name=settings.token_name,
            decimals=settings.token_decimals,
        ),
        block_number_ttl_sec=settings.block_number_ttl_sec,
        gas_price_ttl_sec=settings.gas_price_ttl_sec,
        timeout_sec=settings.request_timeout_sec,
    )
    scanner = TransactionScanner(reader)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the snapshot table on startup; release connections on shutdown."""
        if store is not None:
            try:
                await asyncio.to_thread(store.ensure_schema)
            except Exception as e:
                logger.warning("snapshot_store_schema_failed", error=str(e))
        logger.info(
            "api_started",
            snapshots_enabled=store is not None,
            token_configured=bool(settings.token_address),
        )

        yield

        try:
            await reader.close()
        except Exception as e:
            logger.warning("chain_reader_close_failed", error=str(e))
        if store is not None:
            store.dispose()
        logger.info("api_stopped")

    app = FastAPI(
        title="Backend WalletView API",
        description="Wallet state (cached chain tip and gas price, fresh balances) and recent transaction history.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.chain_reader = reader
    app.state.snapshot_store = store
    app.state.cache = cache
    app.state.wallet_service = wallet_service
    app.state.scanner = scanner

    app.add_middleware(RequestTimingMiddleware)
    _register_routes(app)
    return app


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


def _register_routes(app: FastAPI) -> None:
    @app.get(
        "/wallet/{address}",
        response_model=WalletResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def get_wallet(
        address: str,
        service: WalletStateService = Depends(get_wallet_service),
    ) -> JSONResponse:
        """
        Return the current wallet state for an address.

        Block number and gas price come from a short-lived shared cache; ETH and
        token balances are always fresh. A snapshot is persisted best-effort.
        """
        return await _wallet_state_response(address, service)

    @app.post(
        "/wallet/{address}",
        response_model=WalletResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def post_wallet(
        address: str,
        service: WalletStateService = Depends(get_wallet_service),
    ) -> JSONResponse:
        """Same as GET /wallet/{address}; any request body is ignored."""
        return await _wallet_state_response(address, service)

    @app.get("/wallet/{address}/transactions")
    async def get_wallet_transactions(
        address: str,
        limit: int | None = Query(None, ge=0, le=100, description="Max transactions to return"),
        max_blocks: int | None = Query(None, ge=0, le=100_000, description="Max blocks to walk back"),
        scanner: TransactionScanner = Depends(get_scanner),
        settings: Settings = Depends(get_app_settings),
    ) -> JSONResponse:
        """
        Recent transactions touching address, found by walking blocks back from the tip.

        Best-effort: mayBeIncomplete=true means older matches may exist beyond the scanned window.
        """
        try:
            result = await scanner.scan_recent_transactions(
                address,
                settings.scan_max_results if limit is None else limit,
                settings.scan_max_blocks if max_blocks is None else max_blocks,
                deadline_sec=settings.scan_deadline_sec,
            )
        except InvalidInput as e:
            return _error(400, INVALID_ADDRESS_ERROR, str(e))
        except Exception as e:
            logger.exception("wallet_transactions_failed", error=str(e))
            return _error(500, TRANSACTIONS_FETCH_ERROR, str(e) or "Unknown error occurred")
        return JSONResponse(status_code=200, content=result.to_dict())

    @app.post("/cache/revalidate", response_model=RevalidateResponse)
    def revalidate_cache(
        tag: str = Query(..., min_length=1, description="Cache tag, e.g. block-number or gas-price"),
        service: WalletStateService = Depends(get_wallet_service),
    ) -> RevalidateResponse:
        """Drop every cached entry carrying tag; the next request recomputes it."""
        return RevalidateResponse(tag=tag, removed=service.invalidate(tag))

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Chain and snapshot store connectivity. 200 when healthy, 503 when degraded."""
        state = request.app.state
        status_code, body = await build_health_report(
            state.chain_reader,
            state.snapshot_store,
            network_label=state.settings.network_label,
        )
        return JSONResponse(status_code=status_code, content=body)


async def _wallet_state_response(address: str, service: WalletStateService) -> JSONResponse:
    try:
        view = await service.get_wallet_state(address)
    except InvalidInput as e:
        return _error(400, INVALID_ADDRESS_ERROR, str(e))
    except Exception as e:
        logger.exception("wallet_state_failed", error=str(e))
        return _error(500, WALLET_FETCH_ERROR, str(e) or "Unknown error occurred")
    return JSONResponse(
        status_code=200,
        content=view.to_dict(),
        headers={"Cache-Control": CACHE_CONTROL_HINT},
    )
