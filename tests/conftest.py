"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Settings for an in-memory application
- Test client setup with a controllable CAPTCHA verifier
- Mock factories for domain ports
- A PostgreSQL pool for integration and adversarial tests (skipped when
  the database is unreachable)
"""

from collections.abc import Generator
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.memory import InMemoryPendingAccountStore, InMemorySessionStore
from src.adapters.repository.postgres import run_migrations
from src.api.main import create_app
from src.config.settings import Settings, get_settings
from src.domain.events import EventChannel
from src.domain.ports import CaptchaResult, ClaimResult
from src.domain.registration import RegistrationService


@pytest.fixture
def settings() -> Settings:
    """Settings for an in-memory application served over plain HTTP."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        recaptcha_secret="test-secret",
        session_cookie_secure=False,
        home_url="https://app.example.com/",
        public_base_url="https://app.example.com",
    )


@pytest.fixture
def captcha() -> Mock:
    """CAPTCHA verifier that accepts every token."""
    verifier = Mock()
    verifier.verify.return_value = CaptchaResult.SUCCESS
    return verifier


@pytest.fixture
def email_sender() -> Mock:
    return Mock()


@pytest.fixture
def app(settings: Settings, captcha: Mock, email_sender: Mock) -> FastAPI:
    """In-memory application with mocked CAPTCHA verifier and email sender."""
    application = create_app(settings)
    application.state.captcha = captcha
    application.state.email_sender = email_sender
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def pending_store() -> InMemoryPendingAccountStore:
    return InMemoryPendingAccountStore()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def service(
    pending_store: InMemoryPendingAccountStore,
    session_store: InMemorySessionStore,
    captcha: Mock,
    email_sender: Mock,
) -> RegistrationService:
    """Service over real in-memory stores with mocked verifier and sender."""
    return RegistrationService(
        pending_store=pending_store,
        session_store=session_store,
        captcha=captcha,
        email_sender=email_sender,
        events=EventChannel(),
    )


@pytest.fixture
def make_service():
    """Factory for a RegistrationService with every port mocked (claims succeed)."""

    def build(**overrides) -> RegistrationService:
        ports = {
            "pending_store": Mock(),
            "session_store": Mock(),
            "captcha": Mock(),
            "email_sender": Mock(),
        }
        ports["pending_store"].create.return_value = ClaimResult.CREATED
        ports["captcha"].verify.return_value = CaptchaResult.SUCCESS
        ports.update(overrides)
        return RegistrationService(**ports)

    return build


@pytest.fixture
def sent_key(email_sender: Mock):
    """Registration key passed to the most recent send_registration_link()."""
    return lambda: email_sender.send_registration_link.call_args[0][2]


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Connection pool on DATABASE_URL with migrations applied."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=False,
    )
    pool.open()
    try:
        pool.wait(timeout=5.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")

    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty all tables before the test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM sessions")
        conn.execute("DELETE FROM pending_accounts")
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield
