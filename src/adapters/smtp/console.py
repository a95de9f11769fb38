"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging confirmation links for demo purposes.
"""

import logging
from urllib.parse import quote

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - logs confirmation links.
    """

    def __init__(self, base_url: str = "http://localhost:8000") -> None:
        self._base_url = base_url.rstrip("/")

    def confirmation_link(self, username: str, registration_key: str) -> str:
        """Build the confirmation URL for a pending registration."""
        return (
            f"{self._base_url}/confirm-user-registration/"
            f"{quote(username, safe='')}/{quote(registration_key, safe='')}"
        )

    def send_registration_link(self, email: str, username: str, registration_key: str) -> None:
        """
        Log confirmation link to console (simulates email delivery).

        In production, this would be replaced with an SMTP adapter.

        Args:
            email: Recipient email address (normalized by domain layer)
            username: Username of the pending registration
            registration_key: Registration key of the pending registration
        """
        logger.info(
            "[CONFIRMATION] Email: %s Link: %s",
            email,
            self.confirmation_link(username, registration_key),
        )
