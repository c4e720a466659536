"""
Service-layer exceptions. The HTTP layer maps each to a status code;
anything else propagates as a 500.
"""
from typing import Optional


class WaitlistError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(WaitlistError):
    """Malformed or missing input. Raised before any state is touched."""

    status_code = 400


class NotFound(WaitlistError):
    """Unknown waitlist, slug, token or referral code."""

    status_code = 404


class Conflict(WaitlistError):
    """Uniqueness violation the caller can act on (email already on the list)."""

    status_code = 409


class FraudRejected(WaitlistError):
    """Evaluation succeeded but the signup is denied."""

    status_code = 400

    def __init__(self, result, message: Optional[str] = None):
        super().__init__(message or result.reason or "Unable to process signup")
        self.result = result
