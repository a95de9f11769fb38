"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.

Adapters are created once by the application factory (or its lifespan)
and kept on app.state; the service is assembled per request.
"""

from fastapi import Request

from src.config.settings import Settings
from src.domain.events import EventChannel
from src.domain.ports import CaptchaVerifier, EmailSender, PendingAccountStore, SessionStore
from src.domain.registration import RegistrationService


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was built with."""
    return request.app.state.settings


def get_pending_store(request: Request) -> PendingAccountStore:
    return request.app.state.pending_store


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_captcha_verifier(request: Request) -> CaptchaVerifier:
    return request.app.state.captcha


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


def get_session_events(request: Request) -> EventChannel:
    return request.app.state.session_events


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the stores, CAPTCHA verifier, email sender and session
    event channel for the domain service.
    """
    settings = get_app_settings(request)
    return RegistrationService(
        pending_store=get_pending_store(request),
        session_store=get_session_store(request),
        captcha=get_captcha_verifier(request),
        email_sender=get_email_sender(request),
        events=get_session_events(request),
        bcrypt_cost=settings.bcrypt_cost,
        pending_ttl_seconds=settings.pending_ttl_seconds,
        session_ttl_seconds=settings.session_ttl_seconds,
    )
