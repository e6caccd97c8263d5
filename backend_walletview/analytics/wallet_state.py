"""
Wallet state aggregation.

Answers "what is this address's wallet state right now": chain tip and gas
price come from the shared TTL cache; native balance and token balance are
always read fresh. The token balance is best-effort (defaults to zero) and the
snapshot write is best-effort (logged, never fails the request). Native
balance, block number and gas price are mandatory: their failure raises
UpstreamUnavailable.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from backend_walletview.cache.ttl_cache import (
    BLOCK_NUMBER_KEY,
    BLOCK_NUMBER_TTL_SEC,
    GAS_PRICE_KEY,
    GAS_PRICE_TTL_SEC,
    TTLCache,
)
from backend_walletview.chain_reader import ERC20_BALANCE_OF_ABI, ChainReader
from backend_walletview.core.exceptions import (
    PersistenceFailure,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from backend_walletview.core.result import Err, Ok, Result, capture
from backend_walletview.database import SnapshotStore, WalletSnapshot
from backend_walletview.utils.wallet_utils import format_ether, format_gwei, format_units, normalize_address
from backend_walletview.walletview_logging import bind_address, get_logger

logger = get_logger(__name__)

# Downstream caching guidance; informative only
CACHE_CONTROL_HINT = "public, s-maxage=5, stale-while-revalidate=10"

GAS_PRICE_UNAVAILABLE = "N/A"


@dataclass(frozen=True)
class TokenMetadata:
    address: str | None
    symbol: str = "T3T"
    name: str = "Tier3Token"
    decimals: int = 18


@dataclass(frozen=True)
class WalletStateView:
    address: str
    block_number: int
    gas_price_gwei: str
    eth_balance: str
    token_balance: str
    token_symbol: str
    token_name: str
    cached: bool
    """True when block number and gas price were both served by the shared cache."""
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "blockNumber": self.block_number,
            "gasPrice": f"{self.gas_price_gwei} Gwei",
            "ethBalance": f"{self.eth_balance} ETH",
            "tokenBalance": self.token_balance,
            "tokenSymbol": self.token_symbol,
            "tokenName": self.token_name,
            "cached": self.cached,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
        }


class WalletStateService:
    """
    Aggregates chain reader, TTL cache and snapshot store into a WalletStateView.

    Args:
        reader: Chain reader capability.
        cache: Shared TTL cache (the only state shared across requests).
        store: Snapshot store; None disables persistence.
        token: Token contract and fixed metadata reported in every view.
        block_number_ttl_sec / gas_price_ttl_sec: Cache policy for the shared values.
        timeout_sec: Optional deadline for one call; expiry raises UpstreamTimeout.
    """

    def __init__(
        self,
        reader: ChainReader,
        cache: TTLCache,
        store: SnapshotStore | None,
        *,
        token: TokenMetadata,
        block_number_ttl_sec: float = BLOCK_NUMBER_TTL_SEC,
        gas_price_ttl_sec: float = GAS_PRICE_TTL_SEC,
        timeout_sec: float | None = None,
    ) -> None:
        self._reader = reader
        self._cache = cache
        self._store = store
        self._token = token
        self._block_number_ttl = block_number_ttl_sec
        self._gas_price_ttl = gas_price_ttl_sec
        self._timeout_sec = timeout_sec

    @property
    def cache(self) -> TTLCache:
        return self._cache

    @property
    def store(self) -> SnapshotStore | None:
        return self._store

    def invalidate(self, tag: str) -> int:
        return self._cache.invalidate(tag)

    async def get_wallet_state(self, raw_address: str) -> WalletStateView:
        """Raises InvalidAddress (before any I/O) or UpstreamUnavailable."""
        address = normalize_address(raw_address)
        view = await self._collect_with_deadline(address)

        snapshot = WalletSnapshot.create(
            address,
            native_balance=Decimal(view.eth_balance),
            block_number=view.block_number,
            captured_at=view.timestamp,
        )
        self._settle_persistence(address, await self._persist(snapshot))

        bind_address(address).info(
            "wallet_state_served",
            block_number=view.block_number,
            cached=view.cached,
        )
        return view

    async def _collect_with_deadline(self, address: str) -> WalletStateView:
        if self._timeout_sec is None:
            return await self._collect(address)
        try:
            return await asyncio.wait_for(self._collect(address), timeout=self._timeout_sec)
        except asyncio.TimeoutError as e:
            logger.warning("wallet_state_timeout", address=address, timeout_sec=self._timeout_sec)
            raise UpstreamTimeout(f"wallet state not ready within {self._timeout_sec}s") from e

    async def _collect(self, address: str) -> WalletStateView:
        block_res, gas_res, balance_res, token_res = await asyncio.gather(
            self._cache.lookup(
                BLOCK_NUMBER_KEY, self._block_number_ttl, (BLOCK_NUMBER_KEY,), self._fetch_block_number
            ),
            self._cache.lookup(
                GAS_PRICE_KEY, self._gas_price_ttl, (GAS_PRICE_KEY,), self._fetch_gas_price_gwei
            ),
            self._reader.get_balance(address),
            capture(self._fetch_token_balance(address)),
            return_exceptions=True,
        )
        for name, res in (("block_number", block_res), ("gas_price", gas_res), ("balance", balance_res)):
            if isinstance(res, asyncio.CancelledError):
                raise res
            if isinstance(res, BaseException):
                logger.error("wallet_state_upstream_failed", address=address, call=name, error=str(res))
                raise UpstreamUnavailable(f"{name} request failed: {res}") from res
        if isinstance(token_res, BaseException):
            raise token_res

        block_number, block_hit = block_res
        gas_price_gwei, gas_hit = gas_res
        token_wei = self._settle_token_balance(address, token_res)

        return WalletStateView(
            address=address,
            block_number=int(block_number),
            gas_price_gwei=gas_price_gwei,
            eth_balance=format_ether(balance_res),
            token_balance=format_units(token_wei, self._token.decimals),
            token_symbol=self._token.symbol,
            token_name=self._token.name,
            cached=block_hit and gas_hit,
            timestamp=datetime.now(timezone.utc),
        )

    async def _fetch_block_number(self) -> int:
        logger.debug("fetching_block_number")
        return await self._reader.get_block_number()

    async def _fetch_gas_price_gwei(self) -> str:
        logger.debug("fetching_gas_price")
        fee_data = await self._reader.get_fee_data()
        if fee_data.gas_price is None:
            return GAS_PRICE_UNAVAILABLE
        return format_gwei(fee_data.gas_price)

    async def _fetch_token_balance(self, address: str) -> int:
        if not self._token.address:
            raise LookupError("token contract address not configured")
        raw = await self._reader.call_contract(
            self._token.address, ERC20_BALANCE_OF_ABI, "balanceOf", address
        )
        return int(raw)

    async def _persist(self, snapshot: WalletSnapshot) -> Result[None]:
        if self._store is None:
            return Ok(None)
        try:
            await asyncio.to_thread(self._store.upsert_snapshot, snapshot)
        except Exception as e:
            return Err(PersistenceFailure(str(e)))
        return Ok(None)

    @staticmethod
    def _settle_token_balance(address: str, result: Result[int]) -> int:
        if isinstance(result, Err):
            logger.warning("token_balance_fallback", address=address, error=str(result.error))
        return result.unwrap_or(0)

    @staticmethod
    def _settle_persistence(address: str, result: Result[None]) -> None:
        if isinstance(result, Err):
            logger.error("snapshot_persist_failed", address=address, error=str(result.error))
        else:
            logger.debug("snapshot_persisted", address=address)
