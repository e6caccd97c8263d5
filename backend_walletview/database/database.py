"""
Snapshot store — keyed upsert of wallet snapshots.

All access goes through the abstract SnapshotStore interface; the SQLAlchemy
implementation works with any SQLAlchemy URL (PostgreSQL via DATABASE_URL,
SQLite file otherwise). The address is normalized again inside the store so
the same logical address never produces two rows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import timezone
from decimal import Decimal
from typing import Iterator

from sqlalchemy import BigInteger, Column, DateTime, String, create_engine, func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend_walletview.config.env import mask_url
from backend_walletview.config.settings import Settings
from backend_walletview.database.models import WalletSnapshot
from backend_walletview.utils.wallet_utils import normalize_address
from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

# -----------------------------------------------------------------------------
# SQLAlchemy models
# -----------------------------------------------------------------------------


class WalletSnapshotRow(Base):
    """One row per normalized address; overwritten on every upsert."""

    __tablename__ = "wallet_snapshots"

    address = Column(String(42), primary_key=True)
    balance_eth = Column(String(96), nullable=False)  # string avoids precision loss
    block_number = Column(BigInteger, nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False, index=True)

    def to_snapshot(self) -> WalletSnapshot:
        captured = self.last_updated
        if captured is not None and captured.tzinfo is None:
            # SQLite drops tzinfo; values are always written as UTC
            captured = captured.replace(tzinfo=timezone.utc)
        return WalletSnapshot(
            address=self.address,
            native_balance=Decimal(self.balance_eth),
            block_number=int(self.block_number),
            captured_at=captured,
        )


# -----------------------------------------------------------------------------
# Abstract store
# -----------------------------------------------------------------------------


class SnapshotStore(ABC):
    """Persistence capability for wallet snapshots."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables if they do not exist."""
        ...

    @abstractmethod
    def upsert_snapshot(self, snapshot: WalletSnapshot) -> None:
        """Insert or overwrite the snapshot keyed by normalized address."""
        ...

    @abstractmethod
    def get_snapshot(self, address: str) -> WalletSnapshot | None:
        """Return the stored snapshot for address, or None. For reporting; not used by the read path."""
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def ping(self) -> None:
        """Round-trip to the backend; raises on failure."""
        ...

    def dispose(self) -> None:
        return None


# -----------------------------------------------------------------------------
# SQLAlchemy store
# -----------------------------------------------------------------------------


class SQLAlchemySnapshotStore(SnapshotStore):
    """SnapshotStore over a SQLAlchemy engine; one session per operation."""

    def __init__(self, url: str) -> None:
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._url = url
        self._engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("snapshot_store_engine", url=mask_url(url.split("?")[0]))

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ensure_schema(self) -> None:
        Base.metadata.create_all(self._engine)
        logger.info("snapshot_store_schema_ready", table=WalletSnapshotRow.__tablename__)

    def upsert_snapshot(self, snapshot: WalletSnapshot) -> None:
        address = normalize_address(snapshot.address)
        try:
            self._write(address, snapshot)
        except IntegrityError:
            # concurrent insert for the same address won; overwrite it
            logger.debug("snapshot_upsert_conflict_retry", address=address)
            self._write(address, snapshot)

    def _write(self, address: str, snapshot: WalletSnapshot) -> None:
        with self._session_scope() as session:
            row = session.get(WalletSnapshotRow, address)
            if row is None:
                row = WalletSnapshotRow(address=address)
                session.add(row)
            row.balance_eth = str(snapshot.native_balance)
            row.block_number = snapshot.block_number
            row.last_updated = snapshot.captured_at

    def get_snapshot(self, address: str) -> WalletSnapshot | None:
        with self._session_scope() as session:
            row = session.get(WalletSnapshotRow, normalize_address(address))
            return row.to_snapshot() if row is not None else None

    def count(self) -> int:
        with self._session_scope() as session:
            return int(session.scalar(select(func.count()).select_from(WalletSnapshotRow)) or 0)

    def ping(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self._engine.dispose()


def build_snapshot_store(settings: Settings) -> SnapshotStore | None:
    """Return the configured store, or None when snapshots are disabled."""
    if not settings.snapshots_enabled:
        logger.info("snapshot_store_disabled")
        return None
    return SQLAlchemySnapshotStore(settings.database_url)
