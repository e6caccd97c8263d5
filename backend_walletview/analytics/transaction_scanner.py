"""
Recent transaction history without an indexer.

Walks blocks backward from the chain tip, one block at a time, and collects
transactions whose sender or recipient is the target address. The walk is
bounded by two independent limits (matches collected, blocks examined) and
stops at genesis. A block that cannot be fetched is skipped and recorded; it
never aborts the scan. Results are therefore best-effort: a short or empty
result does not prove the address has no older activity.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator

from backend_walletview.chain_reader import Block, ChainReader, Transaction
from backend_walletview.core.exceptions import UpstreamUnavailable
from backend_walletview.core.result import Err, capture
from backend_walletview.utils.wallet_utils import addresses_equal, normalize_address
from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 10
DEFAULT_MAX_BLOCKS_TO_SCAN = 10_000


class StopReason(str, Enum):
    MAX_RESULTS = "max_results"
    BLOCK_BUDGET = "block_budget"
    GENESIS = "genesis"
    DEADLINE = "deadline"


@dataclass(frozen=True)
class ScanResult:
    """Matches ordered most-recent block first; native order within a block."""

    address: str
    transactions: tuple[Transaction, ...]
    chain_tip: int
    blocks_examined: int
    failed_blocks: tuple[int, ...]
    stop_reason: StopReason

    @property
    def may_be_incomplete(self) -> bool:
        """False only when no block was skipped and the walk was not cut short by budget or deadline."""
        if self.failed_blocks:
            return True
        return self.stop_reason in (StopReason.BLOCK_BUDGET, StopReason.DEADLINE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "chainTip": self.chain_tip,
            "blocksExamined": self.blocks_examined,
            "failedBlocks": list(self.failed_blocks),
            "stopReason": self.stop_reason.value,
            "mayBeIncomplete": self.may_be_incomplete,
        }


def iter_block_numbers(tip: int, budget: int) -> Iterator[int]:
    """Yield tip, tip-1, ... down to 0, at most budget numbers."""
    number = tip
    remaining = budget
    while remaining > 0 and number >= 0:
        yield number
        number -= 1
        remaining -= 1


def touches(tx: Transaction, address: str) -> bool:
    return addresses_equal(tx.from_address, address) or addresses_equal(tx.to_address, address)


class TransactionScanner:
    """
    Bounded backward block walk over a chain reader.

    Args:
        reader: Chain reader capability.
        clock: Monotonic time source used for the optional deadline.
    """

    def __init__(
        self,
        reader: ChainReader,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._reader = reader
        self._clock = clock

    async def scan_recent_transactions(
        self,
        address: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        max_blocks_to_scan: int = DEFAULT_MAX_BLOCKS_TO_SCAN,
        *,
        deadline_sec: float | None = None,
    ) -> ScanResult:
        """
        Collect up to max_results transactions touching address from the most
        recent max_blocks_to_scan blocks.

        Raises InvalidAddress for a malformed address and UpstreamUnavailable
        when the chain tip cannot be read. Deadline expiry returns the partial
        result collected so far.
        """
        target = normalize_address(address)
        if max_results < 0 or max_blocks_to_scan < 0:
            raise ValueError("max_results and max_blocks_to_scan must be non-negative")

        try:
            tip = await self._reader.get_block_number()
        except Exception as e:
            logger.error("scan_chain_tip_failed", address=target, error=str(e))
            raise UpstreamUnavailable(f"chain tip request failed: {e}") from e

        deadline = self._clock() + deadline_sec if deadline_sec is not None else None
        found: list[Transaction] = []
        failed: list[int] = []
        examined = 0
        stop_reason: StopReason | None = StopReason.MAX_RESULTS if max_results == 0 else None

        if stop_reason is None:
            for number in iter_block_numbers(tip, max_blocks_to_scan):
                if deadline is not None and self._clock() >= deadline:
                    stop_reason = StopReason.DEADLINE
                    break
                examined += 1
                block = await self._fetch_block(number, deadline)
                if block is None:
                    failed.append(number)
                    continue
                for tx in block.transactions:
                    if touches(tx, target):
                        found.append(tx)
                        if len(found) >= max_results:
                            break
                if len(found) >= max_results:
                    stop_reason = StopReason.MAX_RESULTS
                    break
            else:
                reached_genesis = max_blocks_to_scan > tip
                stop_reason = StopReason.GENESIS if reached_genesis else StopReason.BLOCK_BUDGET

        result = ScanResult(
            address=target,
            transactions=tuple(found),
            chain_tip=tip,
            blocks_examined=examined,
            failed_blocks=tuple(failed),
            stop_reason=stop_reason,
        )
        logger.info(
            "scan_completed",
            address=target,
            chain_tip=tip,
            matches=len(found),
            blocks_examined=examined,
            failed_blocks=len(failed),
            stop_reason=stop_reason.value,
        )
        return result

    async def _fetch_block(self, number: int, deadline: float | None) -> Block | None:
        """Fetch one block; None when it is missing or the fetch failed."""
        fetch = self._reader.get_block(number)
        if deadline is not None:
            fetch = asyncio.wait_for(fetch, timeout=max(deadline - self._clock(), 0.0))
        result = await capture(fetch)
        if isinstance(result, Err):
            logger.warning("scan_block_skipped", block_number=number, error=str(result.error) or type(result.error).__name__)
            return None
        if result.value is None:
            logger.warning("scan_block_missing", block_number=number)
        return result.value
