"""
Pytest fixtures for WalletView tests. Chain access is faked; the snapshot
store uses a temporary SQLite database.
"""

from __future__ import annotations

import pytest

from tests.fakes import (
    ONE_ETH,
    TOKEN,
    WALLET,
    FakeChainReader,
    FakeClock,
    MemorySnapshotStore,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reader():
    """Chain at block 100, 20 gwei gas, WALLET holding 1.5 ETH and 250 tokens."""
    return FakeChainReader(
        block_number=100,
        balances={WALLET: ONE_ETH + ONE_ETH // 2},
        token_balances={WALLET: 250 * ONE_ETH},
    )


@pytest.fixture
def memory_store():
    return MemorySnapshotStore()


@pytest.fixture
def sqlite_store(tmp_path):
    """SQLAlchemy snapshot store on a temporary SQLite file, schema created."""
    from backend_walletview.database import SQLAlchemySnapshotStore

    store = SQLAlchemySnapshotStore(f"sqlite:///{tmp_path / 'snapshots.db'}")
    store.ensure_schema()
    yield store
    store.dispose()


@pytest.fixture
def settings():
    from backend_walletview.config import Settings

    return Settings(token_address=TOKEN, snapshots_enabled=True)


@pytest.fixture
def client(settings, reader, sqlite_store, clock):
    """FastAPI TestClient over fakes; lifespan runs inside the context manager."""
    from fastapi.testclient import TestClient

    from backend_walletview.api_server.server import create_app
    from backend_walletview.cache import TTLCache

    app = create_app(settings, reader=reader, store=sqlite_store, cache=TTLCache(clock=clock))
    with TestClient(app) as test_client:
        yield test_client
