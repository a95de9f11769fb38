"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.

Request fields are optional at this layer: presence and email shape are
checked by the domain service so that the first missing field is
reported in a fixed order.
"""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    username: str | None = None
    password: str | None = None
    recaptcha_response: str | None = Field(
        default=None,
        alias="reCaptchaResponse",
        description="Response token from the reCAPTCHA widget",
    )


class AccountIdentity(BaseModel):
    """Public identity of a registered or confirmed user."""

    email: str
    username: str


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    results: AccountIdentity


class SessionResponse(BaseModel):
    """Response model for the current session."""

    results: AccountIdentity


class LogoutResults(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    logged_out: bool = Field(alias="loggedOut")


class LogoutResponse(BaseModel):
    """Response model for logout."""

    results: LogoutResults


class ErrorBody(BaseModel):
    message: str
    code: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: ErrorBody
