"""
Record store.

This module provides:
- A key-value store mapping entity kind to a JSON-encoded collection
- SQLAlchemy engine and session management
- Per-kind locking for read-modify-write sequences
"""
import copy
import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from sqlalchemy import Column, DateTime, MetaData, String, Table, Text, create_engine, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aipro.core.errors import StorageError
from aipro.core.locks import KeyedLock

logger = logging.getLogger(__name__)

metadata = MetaData()

records = Table(
    "records",
    metadata,
    Column("kind", String(64), primary_key=True),
    Column("payload", Text, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

USERS = "users"
PLANS = "plans"
SUBSCRIPTIONS = "subscriptions"
PAYMENTS = "payments"
USAGE_LOGS = "usage_logs"
SETTINGS = "settings"

KINDS = (USERS, PLANS, SUBSCRIPTIONS, PAYMENTS, USAGE_LOGS, SETTINGS)


def _make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            # One shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


class RecordStore:
    """
    Durable mapping from entity kind to an ordered collection.

    Owns no policy. Mutations that read, modify and write a collection must
    run inside `locked(kind)` so concurrent callers do not lose writes.

    Usage:
        store = RecordStore.open("sqlite://")
        with store.locked(PAYMENTS):
            payments = store.get(PAYMENTS, [])
            payments.append(payment)
            store.put(PAYMENTS, payments)
    """

    def __init__(self, engine: Engine, locks: Optional[KeyedLock] = None):
        self.engine = engine
        self.locks = locks or KeyedLock()
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def open(cls, url: str, locks: Optional[KeyedLock] = None) -> "RecordStore":
        try:
            engine = _make_engine(url)
            metadata.create_all(engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not open record store: {e.__class__.__name__}") from e
        logger.info("[store] opened", extra={"dialect": engine.dialect.name})
        return cls(engine, locks)

    def close(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self):
        """
        Context manager for store sessions; commits on success.

        SQLAlchemy failures are surfaced as StorageError.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("[store] operation failed", exc_info=True)
            raise StorageError(f"Record store failure: {e.__class__.__name__}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def locked(self, kind: str) -> Iterator[None]:
        with self.locks.hold(f"kind:{kind}"):
            yield

    @contextmanager
    def locked_user(self, user_id: str) -> Iterator[None]:
        """Per-user serialization; take it before any kind lock."""
        with self.locks.hold(f"user:{user_id}"):
            yield

    def get(self, kind: str, default: Any = None) -> Any:
        """Return the stored collection for `kind`, or a copy of `default`."""
        with self.session() as session:
            row = session.execute(
                select(records.c.payload).where(records.c.kind == kind)
            ).first()
        if row is None:
            if default is None:
                return []
            return copy.deepcopy(default)
        try:
            return json.loads(row.payload)
        except ValueError as e:
            raise StorageError(f"Corrupt payload for kind {kind}") from e

    def put(self, kind: str, value: Any) -> None:
        payload = json.dumps(value, default=str)
        now = datetime.now(timezone.utc)
        with self.session() as session:
            existing = session.execute(
                select(records.c.kind).where(records.c.kind == kind)
            ).first()
            if existing:
                session.execute(
                    update(records)
                    .where(records.c.kind == kind)
                    .values(payload=payload, updated_at=now)
                )
            else:
                session.execute(
                    insert(records).values(kind=kind, payload=payload, updated_at=now)
                )

    def kinds(self) -> list:
        with self.session() as session:
            rows = session.execute(select(records.c.kind).order_by(records.c.kind)).all()
        return [row.kind for row in rows]

    def check_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
            return True
        except SQLAlchemyError:
            return False
