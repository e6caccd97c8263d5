"""
Domain models for database entities.

Wallet snapshots only: one row per normalized address, overwritten on every
successful wallet state request. No ORM coupling so backends stay swappable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from backend_walletview.utils.wallet_utils import normalize_address


@dataclass(frozen=True)
class WalletSnapshot:
    """Latest observed native balance of an address at a block."""

    address: str
    """Lower-cased hex address; the upsert key."""
    native_balance: Decimal
    """Native balance in ETH (not wei)."""
    block_number: int
    captured_at: datetime

    @classmethod
    def create(
        cls,
        address: str,
        native_balance: Decimal,
        block_number: int,
        captured_at: datetime | None = None,
    ) -> "WalletSnapshot":
        return cls(
            address=normalize_address(address),
            native_balance=native_balance,
            block_number=block_number,
            captured_at=captured_at or datetime.now(timezone.utc),
        )
