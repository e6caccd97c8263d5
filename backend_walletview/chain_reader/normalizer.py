"""
Normalize raw JSON-RPC block payloads into canonical models.

Accepts web3 AttributeDicts or plain dicts (hex-string or int quantities,
HexBytes or str hashes). Transaction entries that are bare hashes (block
fetched without full bodies) are skipped.
"""

from __future__ import annotations

from typing import Any, Mapping

from web3 import Web3

from backend_walletview.chain_reader.models import Block, Transaction


def _quantity(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value)


def _address(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_transaction(
    raw: Mapping[str, Any],
    *,
    block_number: int,
    block_timestamp: int,
) -> Transaction:
    raw_number = raw.get("blockNumber")
    return Transaction(
        hash=_hex(raw["hash"]),
        from_address=_address(raw.get("from")) or "",
        to_address=_address(raw.get("to")),
        value_wei=_quantity(raw.get("value")),
        block_number=_quantity(raw_number) if raw_number is not None else block_number,
        block_timestamp=block_timestamp,
    )


def normalize_block(raw: Mapping[str, Any]) -> Block:
    number = _quantity(raw.get("number"))
    timestamp = _quantity(raw.get("timestamp"))
    txs = tuple(
        normalize_transaction(tx, block_number=number, block_timestamp=timestamp)
        for tx in (raw.get("transactions") or [])
        if isinstance(tx, Mapping)
    )
    return Block(number=number, timestamp=timestamp, transactions=txs)
