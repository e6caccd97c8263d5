"""
Pytest tests for wallet state aggregation (cache policy, fallbacks, persistence, errors).

Chain reader and snapshot store are fakes; the cache clock is controlled.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from backend_walletview.analytics import TokenMetadata, WalletStateService
from backend_walletview.cache import GAS_PRICE_KEY, TTLCache
from backend_walletview.core.exceptions import (
    InvalidAddress,
    InvalidInput,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from tests.fakes import GWEI, TOKEN, WALLET, WALLET_LOWER, FailingSnapshotStore


def _service(reader, store, clock, *, token_address=TOKEN, timeout_sec=None):
    return WalletStateService(
        reader,
        TTLCache(clock=clock),
        store,
        token=TokenMetadata(address=token_address),
        block_number_ttl_sec=10,
        gas_price_ttl_sec=30,
        timeout_sec=timeout_sec,
    )


def test_wallet_state_view_fields(reader, memory_store, clock):
    service = _service(reader, memory_store, clock)
    view = asyncio.run(service.get_wallet_state(WALLET))

    assert view.address == WALLET_LOWER
    assert view.block_number == 100
    assert view.gas_price_gwei == "20.0"
    assert view.eth_balance == "1.5"
    assert view.token_balance == "250.0"
    assert view.token_symbol == "T3T"
    assert view.token_name == "Tier3Token"
    body = view.to_dict()
    assert body["gasPrice"] == "20.0 Gwei"
    assert body["ethBalance"] == "1.5 ETH"
    assert body["timestamp"].endswith("Z")


def test_second_call_within_ttl_is_served_from_cache(reader, memory_store, clock):
    """Two calls inside the TTL window: identical blockNumber/gasPrice, cached flag true."""
    service = _service(reader, memory_store, clock)

    async def scenario():
        first = await service.get_wallet_state(WALLET)
        reader.block_number = 101
        reader.gas_price = 35 * GWEI
        clock.advance(5)
        second = await service.get_wallet_state(WALLET)
        return first, second

    first, second = asyncio.run(scenario())
    assert first.cached is False
    assert second.cached is True
    assert second.block_number == first.block_number == 100
    assert second.gas_price_gwei == first.gas_price_gwei == "20.0"
    assert reader.calls["get_block_number"] == 1
    assert reader.calls["get_fee_data"] == 1
    # balances are never cached
    assert reader.calls["get_balance"] == 2
    assert reader.calls["call_contract"] == 2


def test_expired_ttl_reflects_new_upstream_values(reader, memory_store, clock):
    service = _service(reader, memory_store, clock)

    async def scenario():
        await service.get_wallet_state(WALLET)
        reader.block_number = 103
        reader.gas_price = 35 * GWEI
        clock.advance(11)
        after_block_ttl = await service.get_wallet_state(WALLET)
        clock.advance(20)
        after_gas_ttl = await service.get_wallet_state(WALLET)
        return after_block_ttl, after_gas_ttl

    after_block_ttl, after_gas_ttl = asyncio.run(scenario())
    assert after_block_ttl.block_number == 103
    assert after_block_ttl.gas_price_gwei == "20.0"
    assert after_block_ttl.cached is False
    assert after_gas_ttl.gas_price_gwei == "35.0"


def test_invalid_address_makes_no_calls(reader, memory_store, clock):
    service = _service(reader, memory_store, clock)

    with pytest.raises(InvalidAddress) as exc_info:
        asyncio.run(service.get_wallet_state("not-an-address"))

    assert isinstance(exc_info.value, InvalidInput)
    assert reader.total_calls == 0
    assert memory_store.upserts == 0


def test_token_balance_failure_defaults_to_zero(reader, memory_store, clock):
    reader.fail_token = True
    service = _service(reader, memory_store, clock)

    view = asyncio.run(service.get_wallet_state(WALLET))

    assert Decimal(view.token_balance) == 0
    assert view.eth_balance == "1.5"
    assert memory_store.count() == 1


def test_missing_token_contract_defaults_to_zero(reader, memory_store, clock):
    service = _service(reader, memory_store, clock, token_address=None)

    view = asyncio.run(service.get_wallet_state(WALLET))

    assert view.token_balance == "0.0"
    assert reader.calls["call_contract"] == 0


def test_persistence_failure_does_not_fail_request(reader, clock):
    store = FailingSnapshotStore()
    service = _service(reader, store, clock)

    view = asyncio.run(service.get_wallet_state(WALLET))

    assert store.upserts == 1
    assert view.eth_balance == "1.5"
    assert view.block_number == 100


def test_snapshot_written_with_normalized_address(reader, memory_store, clock):
    service = _service(reader, memory_store, clock)

    view = asyncio.run(service.get_wallet_state(WALLET))

    snapshot = memory_store.get_snapshot(WALLET_LOWER)
    assert snapshot is not None
    assert snapshot.address == WALLET_LOWER
    assert snapshot.native_balance == Decimal("1.5")
    assert snapshot.block_number == 100
    assert snapshot.captured_at == view.timestamp


def test_persistence_disabled(reader, clock):
    service = _service(reader, None, clock)
    view = asyncio.run(service.get_wallet_state(WALLET))
    assert view.block_number == 100


def test_balance_failure_is_fatal(reader, memory_store, clock):
    reader.fail_balance = True
    service = _service(reader, memory_store, clock)

    with pytest.raises(UpstreamUnavailable):
        asyncio.run(service.get_wallet_state(WALLET))
    assert memory_store.upserts == 0


def test_block_number_failure_is_fatal_and_not_cached(reader, memory_store, clock):
    reader.fail_tip = True
    service = _service(reader, memory_store, clock)

    async def scenario():
        with pytest.raises(UpstreamUnavailable):
            await service.get_wallet_state(WALLET)
        reader.fail_tip = False
        return await service.get_wallet_state(WALLET)

    view = asyncio.run(scenario())
    assert view.block_number == 100
    assert reader.calls["get_block_number"] == 2


def test_gas_price_unavailable(reader, memory_store, clock):
    reader.gas_price = None
    service = _service(reader, memory_store, clock)
    view = asyncio.run(service.get_wallet_state(WALLET))
    assert view.to_dict()["gasPrice"] == "N/A Gwei"


def test_deadline_raises_upstream_timeout(reader, memory_store, clock):
    reader.balance_delay_sec = 1.0
    service = _service(reader, memory_store, clock, timeout_sec=0.05)

    with pytest.raises(UpstreamTimeout) as exc_info:
        asyncio.run(service.get_wallet_state(WALLET))

    assert isinstance(exc_info.value, UpstreamUnavailable)
    assert memory_store.upserts == 0


def test_manual_invalidation_forces_refresh(reader, memory_store, clock):
    service = _service(reader, memory_store, clock)

    async def scenario():
        await service.get_wallet_state(WALLET)
        reader.gas_price = 42 * GWEI
        removed = service.invalidate(GAS_PRICE_KEY)
        return removed, await service.get_wallet_state(WALLET)

    removed, view = asyncio.run(scenario())
    assert removed == 1
    assert view.gas_price_gwei == "42.0"
    assert view.cached is False


def test_concurrent_requests_share_one_tip_read(reader, memory_store, clock):
    reader.tip_delay_sec = 0.05
    service = _service(reader, memory_store, clock)

    async def scenario():
        return await asyncio.gather(
            service.get_wallet_state(WALLET),
            service.get_wallet_state(WALLET_LOWER),
        )

    first, second = asyncio.run(scenario())
    assert reader.calls["get_block_number"] == 1
    assert reader.calls["get_fee_data"] == 1
    assert sorted([first.cached, second.cached]) == [False, True]
    assert first.block_number == second.block_number == 100


def test_cancelled_request_does_not_fail_joined_request(reader, memory_store, clock):
    reader.tip_delay_sec = 0.05
    service = _service(reader, memory_store, clock)

    async def scenario():
        doomed = asyncio.create_task(service.get_wallet_state(WALLET))
        survivor = asyncio.create_task(service.get_wallet_state(WALLET))
        await asyncio.sleep(0.01)
        doomed.cancel()
        view = await survivor
        with pytest.raises(asyncio.CancelledError):
            await doomed
        return view

    view = asyncio.run(scenario())
    assert view.block_number == 100
    assert view.cached is True
    assert reader.calls["get_block_number"] == 1


def test_deadline_on_one_request_does_not_fail_a_request_without_one(reader, memory_store, clock):
    reader.tip_delay_sec = 0.2
    cache = TTLCache(clock=clock)
    token = TokenMetadata(address=TOKEN)
    hasty = WalletStateService(reader, cache, memory_store, token=token, timeout_sec=0.05)
    patient = WalletStateService(reader, cache, memory_store, token=token)

    async def scenario():
        hasty_task = asyncio.create_task(hasty.get_wallet_state(WALLET))
        await asyncio.sleep(0.01)
        patient_view = await patient.get_wallet_state(WALLET)
        with pytest.raises(UpstreamTimeout):
            await hasty_task
        return patient_view

    view = asyncio.run(scenario())
    assert view.block_number == 100
    assert view.cached is True
    assert reader.calls["get_block_number"] == 1
