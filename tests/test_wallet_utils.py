"""
Pytest tests for address validation/normalization and unit formatting.
"""

from __future__ import annotations

import pytest

from backend_walletview.core.exceptions import InvalidAddress, InvalidInput
from backend_walletview.utils.wallet_utils import (
    addresses_equal,
    format_ether,
    format_gwei,
    format_units,
    is_valid_address,
    normalize_address,
)
from tests.fakes import WALLET, WALLET_LOWER


@pytest.mark.parametrize(
    "raw",
    [WALLET, WALLET_LOWER, "  " + WALLET + "  ", "0x" + WALLET_LOWER[2:].upper()],
)
def test_valid_addresses(raw):
    assert is_valid_address(raw)
    assert normalize_address(raw) == WALLET_LOWER


@pytest.mark.parametrize(
    "raw",
    [
        "not-an-address",
        "",
        None,
        12345,
        WALLET_LOWER[2:],  # missing 0x
        WALLET_LOWER + "00",
        "0x" + "g" * 40,
        # mixed case with a broken checksum
        WALLET[:-1] + ("D" if WALLET[-1] != "D" else "d"),
    ],
)
def test_invalid_addresses(raw):
    assert not is_valid_address(raw)
    with pytest.raises(InvalidAddress) as exc_info:
        normalize_address(raw)
    assert isinstance(exc_info.value, InvalidInput)


def test_addresses_equal():
    assert addresses_equal(WALLET, WALLET_LOWER)
    assert not addresses_equal(WALLET, None)
    assert not addresses_equal(None, None)


def test_format_units():
    assert format_ether(0) == "0.0"
    assert format_ether(1_500_000_000_000_000_000) == "1.5"
    assert format_ether(10**18) == "1.0"
    assert format_ether(1) == "0.000000000000000001"
    assert format_ether(100 * 10**18) == "100.0"
    assert format_gwei(20_000_000_000) == "20.0"
    assert format_gwei(1_234_567_890) == "1.23456789"
    assert format_units(12345, 2) == "123.45"
    # uint256 max stays exact
    big = 2**256 - 1
    digits = str(big)
    assert format_ether(big) == digits[:-18] + "." + digits[-18:]
