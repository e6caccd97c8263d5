"""
Canonical chain data models.

Normalized representation of blocks and transactions returned by the chain
reader. Immutable; produced by the normalizer, consumed by the scanner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from backend_walletview.utils.wallet_utils import format_ether


@dataclass(frozen=True)
class FeeData:
    """Fee information from the node. gas_price is None when the node does not report one."""

    gas_price: int | None


@dataclass(frozen=True)
class Transaction:
    """Single transaction touching the chain; to_address is None for contract creation."""

    hash: str
    from_address: str
    to_address: str | None
    value_wei: int
    block_number: int
    block_timestamp: int
    """Unix timestamp (seconds) of the containing block."""

    @property
    def value_eth(self) -> str:
        return format_ether(self.value_wei)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.value_eth,
            "valueWei": str(self.value_wei),
            "blockNumber": self.block_number,
            "timestamp": self.block_timestamp,
        }


@dataclass(frozen=True)
class Block:
    """Block with full transaction bodies, in the block's native order."""

    number: int
    timestamp: int
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)
