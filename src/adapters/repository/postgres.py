"""
PostgreSQL repository adapters - Implement PendingAccountStore and SessionStore.

This module provides the PostgreSQL implementation of the domain's
storage ports using psycopg3 with raw SQL.

Concurrency Design:
-------------------
Both create() and promote() open a transaction and take a per-username
transaction-scoped advisory lock (pg_advisory_xact_lock) before reading
anything. This serializes every state change for one username across
the pending_accounts and accounts tables, so:

1. **create()**: the "not already confirmed" check and the pending insert
   cannot interleave with a concurrent promotion of the same username.
   Concurrent creates resolve through the primary key (ON CONFLICT).

2. **promote()**: the pending row is read FOR UPDATE, the account row is
   inserted and the pending row deleted in one transaction. A second,
   concurrent promotion waits on the lock and then finds no pending row.

Registration keys are compared with secrets.compare_digest().
"""

import logging
import secrets
from pathlib import Path

import psycopg
from psycopg_pool import ConnectionPool

from src.domain.exceptions import ConfigurationError, SessionPersistenceError
from src.domain.ports import AccountRecord, ClaimResult, Promotion, PromoteResult, Session

logger = logging.getLogger(__name__)

_LOCK_SQL = "SELECT pg_advisory_xact_lock(hashtext(%s))"


class PostgresPendingAccountStore:
    """
    Implements PendingAccountStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create(
        self,
        username: str,
        email: str,
        credential_hash: str,
        registration_key: str,
        ttl_seconds: int,
    ) -> ClaimResult:
        """
        Atomically write a pending account.

        Uses INSERT ... ON CONFLICT DO UPDATE WHERE for atomic upsert.
        The WHERE clause ensures only expired pending rows are overwritten.

        Returns:
            CREATED if written, DUPLICATE if username is pending or confirmed
        """
        account_sql = "SELECT 1 FROM accounts WHERE username = %s"
        insert_sql = """
            INSERT INTO pending_accounts
                (username, email, credential_hash, registration_key, created_at, expires_at)
            VALUES (%s, %s, %s, %s, NOW(), NOW() + make_interval(secs => %s))
            ON CONFLICT (username) DO UPDATE
            SET email = EXCLUDED.email,
                credential_hash = EXCLUDED.credential_hash,
                registration_key = EXCLUDED.registration_key,
                created_at = EXCLUDED.created_at,
                expires_at = EXCLUDED.expires_at
            WHERE pending_accounts.expires_at <= NOW()
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(_LOCK_SQL, (username,))

            cursor.execute(account_sql, (username,))
            if cursor.fetchone() is not None:
                conn.commit()
                return ClaimResult.DUPLICATE

            cursor.execute(
                insert_sql,
                (username, email, credential_hash, registration_key, ttl_seconds),
            )
            # 1 if INSERT succeeded OR UPDATE WHERE matched (expired only)
            created = cursor.rowcount == 1
            conn.commit()

        return ClaimResult.CREATED if created else ClaimResult.DUPLICATE

    def promote(self, username: str, registration_key: str) -> Promotion:
        """
        Move a pending account into accounts if the key matches.

        Returns:
            Promotion tagged SUCCESS (with the account), UNKNOWN or INVALID_KEY
        """
        select_sql = """
            SELECT email, credential_hash, registration_key
            FROM pending_accounts
            WHERE username = %s AND expires_at > NOW()
            FOR UPDATE
        """
        insert_sql = """
            INSERT INTO accounts (username, email, credential_hash, created_at)
            VALUES (%s, %s, %s, NOW())
            RETURNING created_at
        """
        delete_sql = "DELETE FROM pending_accounts WHERE username = %s"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(_LOCK_SQL, (username,))

            cursor.execute(select_sql, (username,))
            row = cursor.fetchone()
            if row is None:
                conn.commit()
                return Promotion(PromoteResult.UNKNOWN)

            email, credential_hash, stored_key = row
            if not secrets.compare_digest(stored_key.encode(), registration_key.encode()):
                conn.commit()
                return Promotion(PromoteResult.INVALID_KEY)

            cursor.execute(insert_sql, (username, email, credential_hash))
            created_at = cursor.fetchone()[0]
            cursor.execute(delete_sql, (username,))
            conn.commit()

        account = AccountRecord(
            username=username,
            email=email,
            credential_hash=credential_hash,
            created_at=created_at,
        )
        return Promotion(PromoteResult.SUCCESS, account)


class PostgresSessionStore:
    """Implements SessionStore protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def bind(self, username: str, email: str, ttl_seconds: int) -> Session:
        """
        Insert a new session and commit before returning.

        Raises:
            SessionPersistenceError: On any database error
        """
        session_id = secrets.token_urlsafe(32)
        sql = """
            INSERT INTO sessions (session_id, username, email, created_at, expires_at)
            VALUES (%s, %s, %s, NOW(), NOW() + make_interval(secs => %s))
            RETURNING created_at, expires_at
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (session_id, username, email, ttl_seconds))
                created_at, expires_at = cursor.fetchone()
                conn.commit()
        except psycopg.Error as e:
            logger.error("Failed to save session for %s: %s", username, type(e).__name__)
            raise SessionPersistenceError() from e

        return Session(
            session_id=session_id,
            username=username,
            email=email,
            created_at=created_at,
            expires_at=expires_at,
        )

    def get(self, session_id: str) -> Session | None:
        sql = """
            SELECT username, email, created_at, expires_at
            FROM sessions
            WHERE session_id = %s AND expires_at > NOW()
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (session_id,))
            row = cursor.fetchone()

        if row is None:
            return None
        username, email, created_at, expires_at = row
        return Session(
            session_id=session_id,
            username=username,
            email=email,
            created_at=created_at,
            expires_at=expires_at,
        )

    def destroy(self, session_id: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM sessions WHERE session_id = %s", (session_id,))
            deleted = cursor.rowcount == 1
            conn.commit()
        return deleted


MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def run_migrations(pool: ConnectionPool, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """
    Apply every ``*.sql`` file in ``migrations_dir`` in filename order.

    Files must be idempotent (CREATE ... IF NOT EXISTS) since they run on
    every startup. Returns the names of the files applied.

    Raises:
        ConfigurationError: If a migration fails; the application must not start
    """
    if not migrations_dir.is_dir():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return []

    applied = []
    for sql_file in sorted(migrations_dir.glob("*.sql")):
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
        except psycopg.Error as e:
            logger.error("Migration %s failed: %s", sql_file.name, e)
            raise ConfigurationError(f"Database migration failed: {sql_file.name}") from e
        applied.append(sql_file.name)

    logger.info("Applied %d migration(s): %s", len(applied), ", ".join(applied) or "none")
    return applied
