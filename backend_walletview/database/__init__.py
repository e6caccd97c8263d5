"""
Database abstraction layer — wallet snapshot persistence.

SQLAlchemy-backed store; PostgreSQL via DATABASE_URL, SQLite otherwise.
"""

from backend_walletview.database.database import (
    SnapshotStore,
    SQLAlchemySnapshotStore,
    WalletSnapshotRow,
    build_snapshot_store,
)
from backend_walletview.database.models import WalletSnapshot

__all__ = [
    "SnapshotStore",
    "SQLAlchemySnapshotStore",
    "WalletSnapshot",
    "WalletSnapshotRow",
    "build_snapshot_store",
]
