"""CAPTCHA adapters - Verification gateway implementations."""

from .recaptcha import RecaptchaVerifier

__all__ = ["RecaptchaVerifier"]
