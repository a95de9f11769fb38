"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure, together with the records and tagged results that
cross them. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class RegistrationState(str, Enum):
    """
    Registration workflow states for one attempt.

    Transitions (forward-only):
    - RECEIVED -> VALIDATED (all fields present, email well-formed)
    - VALIDATED -> VERIFIED (CAPTCHA accepted)
    - VERIFIED -> PENDING (pending account written)
    - PENDING -> CONFIRMED (registration key matched, account promoted)

    Failures are terminal for the attempt and may occur from RECEIVED,
    VALIDATED or VERIFIED.
    """

    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    VERIFIED = "VERIFIED"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"


class CaptchaResult(Enum):
    """Outcome of a CAPTCHA verification call."""

    SUCCESS = "success"
    REJECTED = "rejected"
    TRANSPORT_FAILURE = "transport_failure"


class ClaimResult(Enum):
    """Outcome of writing a pending account."""

    CREATED = "created"
    DUPLICATE = "duplicate"


class PromoteResult(Enum):
    """Outcome of promoting a pending account to a confirmed account."""

    SUCCESS = "success"
    UNKNOWN = "unknown"
    INVALID_KEY = "invalid_key"


@dataclass(frozen=True)
class PendingAccount:
    """Registration awaiting email confirmation."""

    username: str
    email: str
    credential_hash: str
    registration_key: str
    created_at: datetime
    expires_at: datetime

    def __repr__(self) -> str:
        # Hash and key stay out of logs and tracebacks
        return f"PendingAccount(username={self.username!r}, email={self.email!r})"


@dataclass(frozen=True)
class AccountRecord:
    """Confirmed, permanent account."""

    username: str
    email: str
    credential_hash: str
    created_at: datetime

    def __repr__(self) -> str:
        return f"AccountRecord(username={self.username!r}, email={self.email!r})"


@dataclass(frozen=True)
class Promotion:
    """Tagged result of PendingAccountStore.promote()."""

    result: PromoteResult
    account: AccountRecord | None = None


@dataclass(frozen=True)
class Session:
    """Server-side session bound after confirmation."""

    session_id: str
    username: str
    email: str
    created_at: datetime
    expires_at: datetime


class PendingAccountStore(Protocol):
    """Port interface for pending and confirmed account persistence."""

    def create(
        self,
        username: str,
        email: str,
        credential_hash: str,
        registration_key: str,
        ttl_seconds: int,
    ) -> ClaimResult:
        """
        Atomically write a pending account.

        Must return DUPLICATE, without modifying anything, when the username
        is already pending (and unexpired) or confirmed. An expired pending
        record may be replaced.
        """
        ...

    def promote(self, username: str, registration_key: str) -> Promotion:
        """
        Atomically move a pending account into the confirmed account store.

        Return values by scenario:
        - SUCCESS: key matched, pending record removed, account created
        - UNKNOWN: no (unexpired) pending record for username
        - INVALID_KEY: key mismatch, pending record left untouched

        At most one concurrent promotion of the same username succeeds;
        the others observe UNKNOWN.
        """
        ...


class SessionStore(Protocol):
    """Port interface for session persistence."""

    def bind(self, username: str, email: str, ttl_seconds: int) -> Session:
        """
        Create and durably save a session.

        Raises:
            SessionPersistenceError: If the session could not be saved
        """
        ...

    def get(self, session_id: str) -> Session | None:
        """Return the unexpired session for session_id, if any."""
        ...

    def destroy(self, session_id: str) -> bool:
        """Delete a session. Returns True if one existed."""
        ...


class CaptchaVerifier(Protocol):
    """Port interface for the CAPTCHA verification gateway."""

    def verify(self, token: str) -> CaptchaResult:
        """
        Verify a client-side CAPTCHA response token.

        Raises:
            InvalidParametersError: If token is empty (no request is made)
        """
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_registration_link(self, email: str, username: str, registration_key: str) -> None:
        """
        Send the confirmation link to a newly registered user.

        Args:
            email: Recipient email address
            username: Username embedded in the link
            registration_key: Registration key embedded in the link
        """
        ...
