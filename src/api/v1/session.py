"""
Session endpoint family.

- GET /session - Identity bound to the current session cookie
- POST /logout - Destroy the current session
"""

from fastapi import Depends, Request, Response

from src.api.dependencies import get_app_settings, get_registration_service, get_session_store
from src.api.models import (
    AccountIdentity,
    ErrorResponse,
    LogoutResponse,
    LogoutResults,
    SessionResponse,
)
from src.api.registry import HTTPMethod, RouteFamilies, RouteRegistry
from src.config.settings import Settings
from src.domain.exceptions import NoActiveSessionError
from src.domain.ports import SessionStore
from src.domain.registration import RegistrationService

FAMILY = "session"


def current_session(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    sessions: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session_id = request.cookies.get(settings.session_cookie_name)
    session = sessions.get(session_id) if session_id else None
    if session is None:
        raise NoActiveSessionError()
    return SessionResponse(results=AccountIdentity(email=session.email, username=session.username))


def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    service: RegistrationService = Depends(get_registration_service),
) -> LogoutResponse:
    session_id = request.cookies.get(settings.session_cookie_name)
    if session_id:
        service.end_session(session_id)
    response.delete_cookie(settings.session_cookie_name)
    return LogoutResponse(results=LogoutResults(logged_out=True))


def build_session_routes(families: RouteFamilies) -> RouteRegistry:
    """Stage the session family's routes."""
    registry = families.create(FAMILY)

    registry.register(
        HTTPMethod.GET,
        "/session",
        current_session,
        response_model=SessionResponse,
        responses={401: {"model": ErrorResponse, "description": "Not logged in"}},
        summary="Current session",
        tags=[FAMILY],
    )
    registry.register(
        HTTPMethod.POST,
        "/logout",
        logout,
        response_model=LogoutResponse,
        summary="End the current session",
        tags=[FAMILY],
    )
    return registry
