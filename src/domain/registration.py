"""
Registration domain service - two-phase account lifecycle.

This module contains the core business logic for user registration:
an initial submission creates a pending account, and a later
confirmation (from the emailed link) promotes it into a permanent
account and binds a session.

Registration Workflow (Forward-Only Transitions)
================================================

    RECEIVED -> VALIDATED -> VERIFIED -> PENDING -> CONFIRMED

Each step returns a tagged result (CaptchaResult, ClaimResult,
PromoteResult). The service inspects the tag and either proceeds or
stops the attempt with the matching RegistrationError. Nothing is
written before the CAPTCHA check passes, so a failed attempt never
leaves a pending record behind.

Atomicity of pending-account creation and promotion is the store's job
(see PendingAccountStore in ports.py).
"""

import logging
import secrets
from dataclasses import dataclass, field

import bcrypt
from email_validator import EmailNotValidError, validate_email

from .events import EventChannel, SessionEvent
from .exceptions import (
    DuplicateUserError,
    InvalidEmailError,
    InvalidParametersError,
    InvalidRegistrationKeyError,
    UnknownRegistrationError,
    VerificationFailedError,
)
from .ports import (
    CaptchaResult,
    CaptchaVerifier,
    ClaimResult,
    EmailSender,
    PendingAccountStore,
    PromoteResult,
    RegistrationState,
    SessionStore,
)

logger = logging.getLogger(__name__)

# Fixed presence-check order; the first missing field is reported
REQUIRED_FIELDS = ("email", "username", "password", "reCAPTCHA response")

# bcrypt only accepts this many bytes of input
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class RegistrationReceipt:
    """Result of a successful initial submission."""

    email: str
    username: str
    registration_key: str = field(repr=False)


@dataclass(frozen=True)
class ConfirmedSession:
    """Result of a successful confirmation."""

    email: str
    username: str
    session_id: str = field(repr=False)


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the registration flow: field validation, CAPTCHA
    verification, password hashing, registration key generation,
    pending-account persistence, confirmation and session binding.
    """

    pending_store: PendingAccountStore
    session_store: SessionStore
    captcha: CaptchaVerifier
    email_sender: EmailSender
    events: EventChannel = field(default_factory=EventChannel)
    bcrypt_cost: int = 10
    pending_ttl_seconds: int = 86400
    session_ttl_seconds: int = 1209600

    def register(
        self,
        email: str | None,
        username: str | None,
        password: str | None,
        captcha_token: str | None,
    ) -> RegistrationReceipt:
        """
        Create a pending account for a new user.

        Args:
            email: Contact address (will be normalized)
            username: Unique human-chosen identifier
            password: Plaintext password (will be hashed)
            captcha_token: Client-side reCAPTCHA response token

        Returns:
            RegistrationReceipt with normalized email, username and key

        Raises:
            InvalidParametersError: A field is missing (first in fixed order)
                or the password is longer than MAX_PASSWORD_BYTES
            InvalidEmailError: Email is malformed
            VerificationFailedError: CAPTCHA rejected or unreachable
            DuplicateUserError: Username already pending or confirmed
        """
        state = RegistrationState.RECEIVED

        values = (email, username, password, captcha_token)
        for name, value in zip(REQUIRED_FIELDS, values):
            if value is None or not str(value).strip():
                raise InvalidParametersError(name)

        normalized_email = self._normalize_email(email)
        username = username.strip()
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise InvalidParametersError(
                "password", message=f"Password must not exceed {MAX_PASSWORD_BYTES} bytes"
            )
        state = RegistrationState.VALIDATED

        outcome = self.captcha.verify(captcha_token)
        if outcome is not CaptchaResult.SUCCESS:
            logger.warning(
                "Registration for %s stopped at %s: captcha %s",
                username,
                state.value,
                outcome.value,
            )
            raise VerificationFailedError(outcome)
        state = RegistrationState.VERIFIED

        registration_key = self._generate_registration_key()
        claim = self.pending_store.create(
            username,
            normalized_email,
            self._hash_password(password),
            registration_key,
            self.pending_ttl_seconds,
        )
        if claim is ClaimResult.DUPLICATE:
            logger.info("Registration for %s stopped at %s: duplicate", username, state.value)
            raise DuplicateUserError()
        state = RegistrationState.PENDING

        logger.info("Registration for %s is %s", username, state.value)
        self.email_sender.send_registration_link(normalized_email, username, registration_key)
        return RegistrationReceipt(
            email=normalized_email,
            username=username,
            registration_key=registration_key,
        )

    def confirm(self, username: str, registration_key: str) -> ConfirmedSession:
        """
        Promote a pending account and bind a new session.

        The session is saved before this method returns; the caller must
        not respond until it does.

        Raises:
            UnknownRegistrationError: No pending registration for username
            InvalidRegistrationKeyError: Key mismatch (record untouched)
            SessionPersistenceError: Session could not be saved
        """
        promotion = self.pending_store.promote(username, registration_key)

        if promotion.result is PromoteResult.UNKNOWN:
            raise UnknownRegistrationError()
        if promotion.result is PromoteResult.INVALID_KEY:
            logger.warning("Rejected confirmation for %s: invalid registration key", username)
            raise InvalidRegistrationKeyError()

        account = promotion.account
        logger.info("Registration for %s is %s", username, RegistrationState.CONFIRMED.value)

        session = self.session_store.bind(account.username, account.email, self.session_ttl_seconds)
        self.events.publish(
            SessionEvent(kind="bound", username=session.username, session_id=session.session_id)
        )
        return ConfirmedSession(
            email=session.email,
            username=session.username,
            session_id=session.session_id,
        )

    def end_session(self, session_id: str) -> bool:
        """Destroy a session and announce it. Returns True if one existed."""
        session = self.session_store.get(session_id)
        if not self.session_store.destroy(session_id):
            return False
        if session is not None:
            self.events.publish(
                SessionEvent(kind="ended", username=session.username, session_id=session_id)
            )
        return True

    def _normalize_email(self, email: str) -> str:
        """
        Validate and normalize email address.

        Applies: syntax check (no DNS lookup), strip whitespace + lowercase
        """
        email = email.strip()
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise InvalidEmailError() from None
        return email.lower()

    def _generate_registration_key(self) -> str:
        """Generate an unguessable, URL-safe registration key."""
        return secrets.token_urlsafe(32)

    def _hash_password(self, password: str) -> str:
        """Hash password using bcrypt with the configured cost factor."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()
