"""
In-memory repository adapters - Implement PendingAccountStore and SessionStore.

Development and test backend with the same observable semantics as the
PostgreSQL adapters. A single lock per store makes every operation
atomic; state is lost when the process exits.
"""

import secrets
import threading
from datetime import datetime, timedelta, timezone

from src.domain.ports import (
    AccountRecord,
    ClaimResult,
    PendingAccount,
    Promotion,
    PromoteResult,
    Session,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryPendingAccountStore:
    """
    Implements PendingAccountStore protocol with dictionaries.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[str, PendingAccount] = {}
        self._accounts: dict[str, AccountRecord] = {}

    def create(
        self,
        username: str,
        email: str,
        credential_hash: str,
        registration_key: str,
        ttl_seconds: int,
    ) -> ClaimResult:
        now = _now()
        with self._lock:
            if username in self._accounts:
                return ClaimResult.DUPLICATE
            existing = self._pending.get(username)
            if existing is not None and existing.expires_at > now:
                return ClaimResult.DUPLICATE

            self._pending[username] = PendingAccount(
                username=username,
                email=email,
                credential_hash=credential_hash,
                registration_key=registration_key,
                created_at=now,
                expires_at=now + timedelta(seconds=ttl_seconds),
            )
        return ClaimResult.CREATED

    def promote(self, username: str, registration_key: str) -> Promotion:
        now = _now()
        with self._lock:
            pending = self._pending.get(username)
            if pending is None or pending.expires_at <= now:
                return Promotion(PromoteResult.UNKNOWN)

            if not secrets.compare_digest(
                pending.registration_key.encode(), registration_key.encode()
            ):
                return Promotion(PromoteResult.INVALID_KEY)

            account = AccountRecord(
                username=pending.username,
                email=pending.email,
                credential_hash=pending.credential_hash,
                created_at=now,
            )
            self._accounts[username] = account
            del self._pending[username]
        return Promotion(PromoteResult.SUCCESS, account)

    def get_pending(self, username: str) -> PendingAccount | None:
        with self._lock:
            return self._pending.get(username)

    def get_account(self, username: str) -> AccountRecord | None:
        with self._lock:
            return self._accounts.get(username)


class InMemorySessionStore:
    """Implements SessionStore protocol with a dictionary."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}

    def bind(self, username: str, email: str, ttl_seconds: int) -> Session:
        now = _now()
        session = Session(
            session_id=secrets.token_urlsafe(32),
            username=username,
            email=email,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None or session.expires_at <= _now():
            return None
        return session

    def destroy(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None
