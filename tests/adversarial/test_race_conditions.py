"""
Adversarial tests for race condition attack prevention.

Verifies that concurrent operations on the same username are handled
atomically by the PostgreSQL stores, preventing attackers from:
- Registering the same username twice
- Confirming one pending registration into two accounts
- Slipping a new pending record in while a username is being promoted

Requires PostgreSQL (DATABASE_URL); skipped otherwise.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresPendingAccountStore, PostgresSessionStore
from src.domain.exceptions import DuplicateUserError, UnknownRegistrationError
from src.domain.ports import CaptchaResult, ClaimResult, PromoteResult
from src.domain.registration import RegistrationService

pytestmark = [pytest.mark.adversarial, pytest.mark.usefixtures("clean_database")]


def count(pool: ConnectionPool, table: str, username: str) -> int:
    with pool.connection() as conn, conn.cursor() as cursor:
        cursor.execute(f"SELECT COUNT(*) FROM {table} WHERE username = %s", (username,))
        return cursor.fetchone()[0]


@pytest.fixture
def service(pool: ConnectionPool) -> RegistrationService:
    captcha = Mock()
    captcha.verify.return_value = CaptchaResult.SUCCESS
    return RegistrationService(
        pending_store=PostgresPendingAccountStore(pool),
        session_store=PostgresSessionStore(pool),
        captcha=captcha,
        email_sender=Mock(),
    )


class TestRaceConditionAttacks:
    """Concurrent requests against one username."""

    def test_concurrent_registration_exactly_one_succeeds(
        self, pool: ConnectionPool
    ) -> None:
        """
        Attack scenario: many simultaneous submissions for one username.

        Expected defense: exactly one pending record is created.
        """
        num_attackers = 10
        barrier = threading.Barrier(num_attackers)

        def attack(index: int) -> ClaimResult:
            barrier.wait()
            return PostgresPendingAccountStore(pool).create(
                "target", f"user{index}@x.com", "$2b$10$hash", f"key-{index}", 3600
            )

        with ThreadPoolExecutor(max_workers=num_attackers) as executor:
            results = [f.result() for f in [executor.submit(attack, i) for i in range(num_attackers)]]

        assert results.count(ClaimResult.CREATED) == 1
        assert results.count(ClaimResult.DUPLICATE) == num_attackers - 1
        assert count(pool, "pending_accounts", "target") == 1

    def test_concurrent_confirmation_exactly_one_succeeds(self, pool: ConnectionPool) -> None:
        """
        Attack scenario: the confirmation link is replayed concurrently.

        Expected defense: one promotion, the rest see UNKNOWN.
        """
        store = PostgresPendingAccountStore(pool)
        store.create("target", "t@x.com", "$2b$10$hash", "key", 3600)
        num_attackers = 8
        barrier = threading.Barrier(num_attackers)

        def attack() -> PromoteResult:
            barrier.wait()
            return PostgresPendingAccountStore(pool).promote("target", "key").result

        with ThreadPoolExecutor(max_workers=num_attackers) as executor:
            results = [f.result() for f in [executor.submit(attack) for _ in range(num_attackers)]]

        assert results.count(PromoteResult.SUCCESS) == 1
        assert results.count(PromoteResult.UNKNOWN) == num_attackers - 1
        assert count(pool, "accounts", "target") == 1
        assert count(pool, "pending_accounts", "target") == 0

    def test_register_during_promotion_never_duplicates(self, pool: ConnectionPool) -> None:
        """
        Attack scenario: re-register a username while it is being confirmed.

        Expected defense: the username ends up in exactly one of
        pending_accounts or accounts.
        """
        store = PostgresPendingAccountStore(pool)
        store.create("target", "t@x.com", "$2b$10$hash", "key", 3600)
        barrier = threading.Barrier(2)

        def confirm() -> None:
            barrier.wait()
            store.promote("target", "key")

        def register() -> None:
            barrier.wait()
            store.create("target", "evil@x.com", "$2b$10$evil", "evil-key", 3600)

        with ThreadPoolExecutor(max_workers=2) as executor:
            for future in [executor.submit(confirm), executor.submit(register)]:
                future.result()

        pending = count(pool, "pending_accounts", "target")
        accounts = count(pool, "accounts", "target")
        assert pending + accounts == 1

    def test_service_level_races(self, service: RegistrationService, pool: ConnectionPool) -> None:
        """Two submissions race, then two confirmations race, through the service."""

        def register() -> str | None:
            try:
                return service.register("r@x.com", "racer", "pw123", "token").registration_key
            except DuplicateUserError:
                return None

        with ThreadPoolExecutor(max_workers=2) as executor:
            keys = [f.result() for f in [executor.submit(register) for _ in range(2)]]

        created = [key for key in keys if key is not None]
        assert len(created) == 1

        def confirm() -> bool:
            try:
                service.confirm("racer", created[0])
                return True
            except UnknownRegistrationError:
                return False

        with ThreadPoolExecutor(max_workers=2) as executor:
            outcomes = [f.result() for f in [executor.submit(confirm) for _ in range(2)]]

        assert sorted(outcomes) == [False, True]
        assert count(pool, "sessions", "racer") == 1
