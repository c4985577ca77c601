"""
SQLite Database Adapter.

Implements the subscription store port using SQLite.
Designed to be Postgres-compatible (uses standard SQL patterns).

Connections come from a bounded pool; a caller that cannot obtain one
within the pool timeout gets PersistenceUnavailableError instead of
blocking indefinitely. Driver errors never leave this module: they are
translated into the subscription store error types.
"""

from __future__ import annotations

import logging
import queue
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from newsletter_api.components.subscriptions.models import (
    DuplicateEmailError,
    PersistenceUnavailableError,
    Subscriber,
    SubscriberStatus,
    SubscriptionToken,
    TokenCollisionError,
)

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str) -> datetime:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s)


# -----------------------------------------------------------------------------
# Connection Pool
# -----------------------------------------------------------------------------


class SQLiteConnectionPool:
    """
    Fixed-capacity pool of SQLite connections shared across request threads.

    Connections are created lazily up to ``pool_size`` and handed to one
    borrower at a time. Implicit transactions open with BEGIN IMMEDIATE, so
    concurrent writers queue on the busy timeout instead of failing on a
    read-to-write lock upgrade.
    """

    def __init__(
        self,
        db_path: str,
        pool_size: int = 5,
        timeout_seconds: float = 2.0,
    ) -> None:
        if pool_size < 1:
            raise ValueError("pool_size must be at least 1")
        self.db_path = db_path
        self.pool_size = pool_size
        self.timeout_seconds = timeout_seconds
        self._available: queue.LifoQueue[sqlite3.Connection] = queue.LifoQueue()
        self._created = 0
        self._lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.timeout_seconds,
            check_same_thread=False,
            isolation_level="IMMEDIATE",
        )
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _acquire(self) -> sqlite3.Connection:
        try:
            return self._available.get_nowait()
        except queue.Empty:
            pass

        with self._lock:
            can_create = self._created < self.pool_size
            if can_create:
                self._created += 1
        if can_create:
            try:
                return self._connect()
            except sqlite3.Error as e:
                with self._lock:
                    self._created -= 1
                raise PersistenceUnavailableError(f"cannot open database: {e}") from e

        try:
            return self._available.get(timeout=self.timeout_seconds)
        except queue.Empty:
            raise PersistenceUnavailableError(
                f"no database connection available within {self.timeout_seconds}s"
            ) from None

    def _release(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.rollback()
        self._available.put(conn)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Borrow a connection for the duration of the block."""
        conn = self._acquire()
        try:
            yield conn
        finally:
            self._release(conn)

    def close(self) -> None:
        """Close every idle connection."""
        while True:
            try:
                conn = self._available.get_nowait()
            except queue.Empty:
                break
            conn.close()
            with self._lock:
                self._created -= 1


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, pool: SQLiteConnectionPool):
        self.pool = pool

    @contextmanager
    def _get_conn(self) -> Iterator[sqlite3.Connection]:
        """Borrow a pooled connection, translating driver errors."""
        with self.pool.connection() as conn:
            try:
                yield conn
            except sqlite3.Error as e:
                raise PersistenceUnavailableError(str(e)) from e


def _map_subscriber(row: dict[str, Any]) -> Subscriber:
    return Subscriber(
        id=UUID(row["id"]),
        email=row["email"],
        name=row["name"],
        status=SubscriberStatus(row["status"]),
        subscribed_at=parse_dt(row["subscribed_at"]),
    )


# -----------------------------------------------------------------------------
# Subscription Store
# -----------------------------------------------------------------------------


class SQLiteSubscriptionTransaction:
    """Writes sharing one connection and one transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def insert_subscriber(self, subscriber: Subscriber) -> Subscriber:
        try:
            self._conn.execute(
                """
                INSERT INTO subscribers (id, email, name, subscribed_at, status)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(subscriber.id),
                    subscriber.email,
                    subscriber.name,
                    subscriber.subscribed_at.isoformat(),
                    subscriber.status.value,
                ),
            )
        except sqlite3.IntegrityError as e:
            if "subscribers.email" in str(e):
                raise DuplicateEmailError(subscriber.email) from e
            raise PersistenceUnavailableError(str(e)) from e
        except sqlite3.Error as e:
            raise PersistenceUnavailableError(str(e)) from e
        return subscriber

    def insert_token(self, token: SubscriptionToken) -> SubscriptionToken:
        try:
            self._conn.execute(
                """
                INSERT INTO subscription_tokens (subscription_token, subscriber_id)
                VALUES (?, ?)
                """,
                (token.token, str(token.subscriber_id)),
            )
        except sqlite3.IntegrityError as e:
            if "subscription_tokens.subscription_token" in str(e):
                raise TokenCollisionError() from e
            raise PersistenceUnavailableError(str(e)) from e
        except sqlite3.Error as e:
            raise PersistenceUnavailableError(str(e)) from e
        return token


class SQLiteSubscriptionStore(SQLiteRepoBase):
    """SQLite implementation of SubscriptionStorePort."""

    @contextmanager
    def transaction(self) -> Iterator[SQLiteSubscriptionTransaction]:
        """
        Atomic write scope.

        Commits when the block exits cleanly; any exception rolls back every
        write made through the yielded transaction.
        """
        with self.pool.connection() as conn:
            try:
                yield SQLiteSubscriptionTransaction(conn)
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistenceUnavailableError(str(e)) from e
            except BaseException:
                conn.rollback()
                raise

    def get_subscriber(self, subscriber_id: UUID) -> Subscriber | None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT * FROM subscribers WHERE id = ?",
                (str(subscriber_id),),
            ).fetchone()
        return _map_subscriber(row) if row else None

    def get_subscriber_by_email(self, email: str) -> Subscriber | None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT * FROM subscribers WHERE email = ?",
                (email,),
            ).fetchone()
        return _map_subscriber(row) if row else None

    def find_subscriber_by_token(self, token: str) -> Subscriber | None:
        with self._get_conn() as conn:
            row = conn.execute(
                """
                SELECT s.* FROM subscribers s
                JOIN subscription_tokens t ON t.subscriber_id = s.id
                WHERE t.subscription_token = ?
                """,
                (token,),
            ).fetchone()
        return _map_subscriber(row) if row else None

    def list_tokens(self, subscriber_id: UUID) -> list[SubscriptionToken]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM subscription_tokens WHERE subscriber_id = ?",
                (str(subscriber_id),),
            ).fetchall()
        return [
            SubscriptionToken(token=r["subscription_token"], subscriber_id=UUID(r["subscriber_id"]))
            for r in rows
        ]

    def update_status(self, subscriber_id: UUID, status: SubscriberStatus) -> None:
        with self._get_conn() as conn:
            conn.execute(
                "UPDATE subscribers SET status = ? WHERE id = ?",
                (status.value, str(subscriber_id)),
            )
            conn.commit()

    def withdraw_token(self, token: str) -> None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT subscriber_id FROM subscription_tokens WHERE subscription_token = ?",
                (token,),
            ).fetchone()
            if row is None:
                return
            conn.execute(
                "DELETE FROM subscription_tokens WHERE subscription_token = ?",
                (token,),
            )
            conn.execute(
                """
                DELETE FROM subscribers
                WHERE id = ?
                  AND status = ?
                  AND NOT EXISTS (
                      SELECT 1 FROM subscription_tokens WHERE subscriber_id = ?
                  )
                """,
                (
                    row["subscriber_id"],
                    SubscriberStatus.PENDING_CONFIRMATION.value,
                    row["subscriber_id"],
                ),
            )
            conn.commit()

    def list_by_status(self, status: SubscriberStatus) -> list[Subscriber]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM subscribers WHERE status = ? ORDER BY subscribed_at",
                (status.value,),
            ).fetchall()
        return [_map_subscriber(r) for r in rows]

