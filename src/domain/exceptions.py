"""
Domain exceptions - Semantic error types for registration.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Every per-request failure derives from RegistrationError and carries the
message, machine-readable code and HTTP status the API layer reports.
ConfigurationError is separate: it signals a wiring mistake at startup
and must never be converted into a response.
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    code = "registration_error"
    status_code = 400
    default_message = "Registration failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidParametersError(RegistrationError):
    """A required request field is missing or blank."""

    code = "invalid_parameters"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"No {field} given")


class InvalidEmailError(RegistrationError):
    """Email address is not syntactically valid."""

    code = "invalid_email"
    default_message = "Invalid email address"


class VerificationFailedError(RegistrationError):
    """CAPTCHA verification was rejected or could not be performed."""

    code = "verification_failed"
    default_message = "reCAPTCHA verification failed"

    def __init__(self, reason: object = None, message: str | None = None) -> None:
        # Kept for diagnostics only, never reported to the client
        self.reason = reason
        super().__init__(message)


class DuplicateUserError(RegistrationError):
    """Username is already pending confirmation or confirmed."""

    code = "duplicate_user"
    status_code = 409
    default_message = "Username is already taken"


class UnknownRegistrationError(RegistrationError):
    """No pending registration exists for the username."""

    code = "unknown_registration"
    status_code = 404
    default_message = "No pending registration found"


class InvalidRegistrationKeyError(RegistrationError):
    """Registration key does not match the pending registration."""

    code = "invalid_registration_key"
    status_code = 403
    default_message = "Invalid registration key"


class SessionPersistenceError(RegistrationError):
    """Session could not be saved."""

    code = "session_persistence"
    status_code = 500
    default_message = "Failed to save session"


class NoActiveSessionError(RegistrationError):
    """Request carries no valid session."""

    code = "no_session"
    status_code = 401
    default_message = "Not logged in"


class ConfigurationError(Exception):
    """Fatal error while building the application; startup must abort."""

    pass
