"""
Scan recent blocks for transactions touching a wallet and print them.

Walks back from the chain tip through at most --max-blocks blocks and stops
after --limit matches. Results are best-effort: blocks the node cannot serve
are skipped and reported.

Usage:
  python -m backend_walletview.tools.scan_wallet_history 0xabc... --limit 10 --max-blocks 5000
  python -m backend_walletview.tools.scan_wallet_history 0xabc... --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone

from backend_walletview.analytics import ScanResult, TransactionScanner
from backend_walletview.chain_reader import Web3ChainReader
from backend_walletview.config import get_settings
from backend_walletview.config.env import print_walletview_startup
from backend_walletview.core.exceptions import InvalidInput, UpstreamUnavailable
from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)


def _short(value: str | None) -> str:
    if not value:
        return "Contract"
    return f"{value[:6]}...{value[-4:]}"


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return value


def format_table(result: ScanResult) -> str:
    lines = [
        f"address={result.address} tip={result.chain_tip} blocks_examined={result.blocks_examined} "
        f"stop={result.stop_reason.value} failed_blocks={len(result.failed_blocks)}",
    ]
    for tx in result.transactions:
        direction = "Sent" if tx.from_address.lower() == result.address else "Received"
        counterparty = tx.to_address if direction == "Sent" else tx.from_address
        when = datetime.fromtimestamp(tx.block_timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
        lines.append(
            f"{tx.block_number:>10}  {direction:<8}  {_short(tx.hash)}  {_short(counterparty):<13}  "
            f"{tx.value_eth:>24} ETH  {when}"
        )
    if not result.transactions:
        lines.append("No transactions found in the scanned window.")
    if result.may_be_incomplete:
        lines.append("Note: history may be incomplete; older transactions can exist beyond the scanned window.")
    return "\n".join(lines)


async def _run(address: str, limit: int, max_blocks: int, deadline_sec: float | None) -> ScanResult:
    settings = get_settings()
    reader = Web3ChainReader(settings.rpc_url, request_timeout_sec=settings.rpc_timeout_sec)
    try:
        scanner = TransactionScanner(reader)
        return await scanner.scan_recent_transactions(address, limit, max_blocks, deadline_sec=deadline_sec)
    finally:
        await reader.close()


def main() -> int:
    print_walletview_startup("scan_wallet_history")
    settings = get_settings()

    ap = argparse.ArgumentParser(description="Find recent transactions for a wallet by walking blocks back from the tip")
    ap.add_argument("address", help="Wallet address (0x...)")
    ap.add_argument("--limit", type=_non_negative_int, default=settings.scan_max_results, help="Max transactions to return")
    ap.add_argument("--max-blocks", type=_non_negative_int, default=settings.scan_max_blocks, help="Max blocks to examine")
    ap.add_argument("--deadline", type=float, default=settings.scan_deadline_sec, help="Wall-clock bound in seconds")
    ap.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    args = ap.parse_args()

    try:
        result = asyncio.run(_run(args.address, args.limit, args.max_blocks, args.deadline))
    except InvalidInput as e:
        print(f"[scan_wallet_history] ERROR: {e}", file=sys.stderr)
        return 2
    except UpstreamUnavailable as e:
        logger.error("scan_wallet_history_upstream_failed", error=str(e))
        print(f"[scan_wallet_history] ERROR: node unavailable: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_table(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
