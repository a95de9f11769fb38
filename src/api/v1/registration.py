"""
Registration endpoint family.

- POST /register-user - Begin registration (pending account + email link)
- GET /confirm-user-registration/{username}/{registration_key} - Confirm
  registration, bind a session and redirect to the application home
"""

from fastapi import Depends, status
from fastapi.responses import RedirectResponse

from src.api.dependencies import get_app_settings, get_registration_service
from src.api.models import AccountIdentity, ErrorResponse, RegisterRequest, RegisterResponse
from src.api.registry import HTTPMethod, RouteFamilies, RouteRegistry
from src.config.settings import Settings
from src.domain.registration import RegistrationService

FAMILY = "registration"
REGISTER_USER = "/register-user"
# Paths are routed decoded, so a quoted "/" in a username arrives as a separator;
# the path converter takes every segment but the last (keys never contain "/")
CONFIRM_USER_REGISTRATION = "/confirm-user-registration/{username:path}/:registration_key"


def register_user(
    request_data: RegisterRequest | None = None,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    """
    Register a new user and send the confirmation link.

    - **email**: Contact address the confirmation link is sent to
    - **username**: Unique username
    - **password**: Password
    - **reCaptchaResponse**: Token from the reCAPTCHA widget
    """
    data = request_data or RegisterRequest()
    receipt = service.register(
        data.email,
        data.username,
        data.password,
        data.recaptcha_response,
    )
    return RegisterResponse(
        results=AccountIdentity(email=receipt.email, username=receipt.username)
    )


def confirm_user_registration(
    username: str,
    registration_key: str,
    service: RegistrationService = Depends(get_registration_service),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """
    Confirm a pending registration from the emailed link.

    The session is saved before the redirect is returned. Failures are
    reported as a structured error body instead of a redirect.
    """
    confirmed = service.confirm(username, registration_key)

    response = RedirectResponse(url=settings.home_url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=confirmed.session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response


def build_registration_routes(families: RouteFamilies) -> RouteRegistry:
    """Stage the registration family's routes."""
    registry = families.create(FAMILY)

    registry.register(
        HTTPMethod.POST,
        REGISTER_USER,
        register_user,
        response_model=RegisterResponse,
        status_code=status.HTTP_201_CREATED,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid input or reCAPTCHA failure"},
            409: {"model": ErrorResponse, "description": "Username already taken"},
        },
        summary="Register a new user",
        tags=[FAMILY],
    )
    registry.register(
        HTTPMethod.GET,
        CONFIRM_USER_REGISTRATION,
        confirm_user_registration,
        status_code=status.HTTP_302_FOUND,
        responses={
            403: {"model": ErrorResponse, "description": "Invalid registration key"},
            404: {"model": ErrorResponse, "description": "No pending registration"},
            500: {"model": ErrorResponse, "description": "Session could not be saved"},
        },
        summary="Confirm a pending registration",
        tags=[FAMILY],
    )
    return registry
