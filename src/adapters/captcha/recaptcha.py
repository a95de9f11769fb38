"""
reCAPTCHA adapter - Implements CaptchaVerifier protocol.

This module verifies client-side reCAPTCHA response tokens against
Google's siteverify endpoint using httpx.

The token and shared secret are sent as form-encoded parameters on a
single POST (kept out of the URL, which httpx logs). The response is
read in full and parsed as JSON; verification succeeds only when the
parsed object's "success" flag is true.

Failure kinds (both terminal, never retried - tokens are single-use):
- REJECTED: success flag false, or body undecodable or not a JSON object
- TRANSPORT_FAILURE: connection error, timeout or other request failure

Neither the token nor the secret is ever logged.
"""

import logging

import httpx

from src.domain.exceptions import InvalidParametersError
from src.domain.ports import CaptchaResult

logger = logging.getLogger(__name__)


class RecaptchaVerifier:
    """
    Implements CaptchaVerifier protocol via Google reCAPTCHA.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        secret: str,
        verify_url: str = "https://www.google.com/recaptcha/api/siteverify",
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize verifier.

        Args:
            secret: Server-held reCAPTCHA shared secret
            verify_url: siteverify endpoint URL
            timeout: Bound on the outbound call, in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._secret = secret
        self._verify_url = verify_url
        self._timeout = timeout
        self._transport = transport

    def verify(self, token: str) -> CaptchaResult:
        """
        Verify a reCAPTCHA response token.

        Args:
            token: Response token from the client-side widget

        Returns:
            CaptchaResult.SUCCESS, REJECTED or TRANSPORT_FAILURE

        Raises:
            InvalidParametersError: If token is empty (no request is made)
        """
        if not token:
            raise InvalidParametersError("reCAPTCHA response")

        params = {"response": token, "secret": self._secret}

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(
                    self._verify_url,
                    data=params,
                    headers={"Accept": "application/json"},
                )
                response.read()
        except httpx.TimeoutException:
            logger.warning("reCAPTCHA verification timed out after %ss", self._timeout)
            return CaptchaResult.TRANSPORT_FAILURE
        except httpx.TransportError as e:
            logger.warning("reCAPTCHA verification request failed: %s", type(e).__name__)
            return CaptchaResult.TRANSPORT_FAILURE
        except httpx.DecodingError:
            logger.warning("reCAPTCHA returned an undecodable body")
            return CaptchaResult.REJECTED
        except httpx.RequestError as e:
            logger.warning("reCAPTCHA verification request failed: %s", type(e).__name__)
            return CaptchaResult.TRANSPORT_FAILURE

        try:
            payload = response.json()
        except ValueError:
            logger.warning(
                "reCAPTCHA returned a non-JSON body (HTTP %s)", response.status_code
            )
            return CaptchaResult.REJECTED

        if not isinstance(payload, dict):
            logger.warning("reCAPTCHA returned an unexpected payload type")
            return CaptchaResult.REJECTED

        if payload.get("success") is True:
            return CaptchaResult.SUCCESS

        logger.warning("reCAPTCHA rejected token: %s", payload.get("error-codes", []))
        return CaptchaResult.REJECTED
