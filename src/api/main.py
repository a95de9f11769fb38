"""
FastAPI application factory and configuration.

This module builds the FastAPI application: it wires adapters, installs
the endpoint families and exception handlers, and manages lifespan events.

Configuration is validated when the application is built, so serve it
through the factory:

    uvicorn --factory src.api.main:create_app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.captcha.recaptcha import RecaptchaVerifier
from src.adapters.repository.memory import InMemoryPendingAccountStore, InMemorySessionStore
from src.adapters.repository.postgres import (
    PostgresPendingAccountStore,
    PostgresSessionStore,
    run_migrations,
)
from src.adapters.smtp.console import ConsoleEmailSender
from src.api.errors import install_error_handlers
from src.api.registry import RouteFamilies
from src.api.v1 import install_routes
from src.config.settings import Settings, get_settings
from src.domain.events import EventChannel, SessionEvent
from src.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "registration",
        "description": "Register an account and confirm it from the emailed link",
    },
    {
        "name": "session",
        "description": "Inspect and end the session bound at confirmation",
    },
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _log_session_event(event: SessionEvent) -> None:
    logger.info("Session %s for %s", event.kind, event.username)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown for the postgres backend:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Closes connection pool on shutdown
    """
    settings: Settings = app.state.settings

    logger.info("Starting application...")

    if settings.storage_backend != "postgres":
        logger.info("Using in-memory storage backend")
        yield
        return

    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    # Stores and pool live in app state for dependency injection
    app.state.pool = pool
    app.state.pending_store = PostgresPendingAccountStore(pool)
    app.state.session_store = PostgresSessionStore(pool)

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    pool.close()
    logger.info("Database connection pool closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Raises:
        ConfigurationError: If the reCAPTCHA secret is blank or endpoint
            families collide; startup must abort
    """
    settings = settings or get_settings()
    if not settings.recaptcha_secret.get_secret_value().strip():
        raise ConfigurationError("RECAPTCHA_SECRET must be set")
    configure_logging(settings.log_level)

    app = FastAPI(
        title="regflow",
        description="Two-phase user registration API with reCAPTCHA and email confirmation",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.captcha = RecaptchaVerifier(
        secret=settings.recaptcha_secret.get_secret_value(),
        verify_url=settings.recaptcha_verify_url,
        timeout=settings.recaptcha_timeout_seconds,
    )
    app.state.email_sender = ConsoleEmailSender(base_url=settings.public_base_url)
    app.state.session_events = EventChannel()
    app.state.session_events.subscribe(_log_session_event)

    if settings.storage_backend == "memory":
        app.state.pending_store = InMemoryPendingAccountStore()
        app.state.session_store = InMemorySessionStore()

    install_error_handlers(app)

    app.state.route_families = RouteFamilies()
    install_routes(app, app.state.route_families)

    app.add_api_route("/health", health_check, methods=["GET"])
    return app


async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = getattr(request.app.state, "pool", None)
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}

