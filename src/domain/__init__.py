"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for the two-phase
registration workflow. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture
decoupling.
"""

from .events import EventChannel, SessionEvent, Subscription
from .exceptions import (
    ConfigurationError,
    DuplicateUserError,
    InvalidEmailError,
    InvalidParametersError,
    InvalidRegistrationKeyError,
    NoActiveSessionError,
    RegistrationError,
    SessionPersistenceError,
    UnknownRegistrationError,
    VerificationFailedError,
)
from .ports import (
    AccountRecord,
    CaptchaResult,
    CaptchaVerifier,
    ClaimResult,
    EmailSender,
    PendingAccount,
    PendingAccountStore,
    Promotion,
    PromoteResult,
    RegistrationState,
    Session,
    SessionStore,
)
from .registration import ConfirmedSession, RegistrationReceipt, RegistrationService

__all__ = [
    "AccountRecord",
    "CaptchaResult",
    "CaptchaVerifier",
    "ClaimResult",
    "ConfigurationError",
    "ConfirmedSession",
    "DuplicateUserError",
    "EmailSender",
    "EventChannel",
    "InvalidEmailError",
    "InvalidParametersError",
    "InvalidRegistrationKeyError",
    "NoActiveSessionError",
    "PendingAccount",
    "PendingAccountStore",
    "Promotion",
    "PromoteResult",
    "RegistrationError",
    "RegistrationReceipt",
    "RegistrationService",
    "RegistrationState",
    "Session",
    "SessionEvent",
    "SessionPersistenceError",
    "SessionStore",
    "Subscription",
    "UnknownRegistrationError",
    "VerificationFailedError",
]
