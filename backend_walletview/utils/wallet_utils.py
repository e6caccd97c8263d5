"""Address validation, normalization and unit formatting for EVM wallets."""

from __future__ import annotations

from decimal import Context, Decimal

from web3 import Web3

from backend_walletview.core.exceptions import InvalidAddress

ETHER_DECIMALS = 18
GWEI_DECIMALS = 9

# 2**256 has 78 digits; enough precision to scale any uint256 exactly
_UNITS_CONTEXT = Context(prec=80)


def is_valid_address(raw: object) -> bool:
    """Return True if raw is 0x + 40 hex chars (mixed case must carry a valid EIP-55 checksum)."""
    if not isinstance(raw, str):
        return False
    candidate = raw.strip()
    if not candidate.startswith(("0x", "0X")) or len(candidate) != 42:
        return False
    return bool(Web3.is_address(candidate))


def normalize_address(raw: object) -> str:
    """Validate and lower-case an account identifier. Raises InvalidAddress."""
    if not is_valid_address(raw):
        raise InvalidAddress(raw)
    return "0x" + str(raw).strip()[2:].lower()


def addresses_equal(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    return a.lower() == b.lower()


def format_units(amount: int, decimals: int) -> str:
    """
    Render an integer amount of base units as a decimal string without float rounding.

    format_units(1500000000000000000, 18) -> "1.5"; format_units(0, 18) -> "0.0"
    """
    value = _UNITS_CONTEXT.scaleb(Decimal(int(amount)), -int(decimals))
    text = format(_UNITS_CONTEXT.normalize(value), "f")
    if "." not in text:
        text += ".0"
    return text


def format_ether(wei: int) -> str:
    return format_units(wei, ETHER_DECIMALS)


def format_gwei(wei: int) -> str:
    return format_units(wei, GWEI_DECIMALS)
