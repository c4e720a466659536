"""
Email validation - format check and normalization for waitlist signups.
"""
import re
from typing import Optional

# RFC 5322 simplified - covers 99%+ of valid emails
EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*\.[a-zA-Z]{2,}$"
)


def normalize_email(email: Optional[str]) -> str:
    """Strip whitespace and lower-case. Signups are unique on this form."""
    return (email or "").strip().lower()


def is_valid_email_format(email: str) -> bool:
    """
    Check if email matches a valid format (RFC 5322 simplified).

    Args:
        email: Email address to validate

    Returns:
        True if format is valid
    """
    if not email or len(email) > 254:
        return False
    return bool(EMAIL_REGEX.match(email.strip()))


def split_email(email: str) -> tuple[str, Optional[str]]:
    """
    Split into (local_part, domain). Domain is None when there is no '@'
    or nothing after it. With several '@' the domain is the text between
    the first and the second.
    """
    parts = email.split("@")
    domain = parts[1] if len(parts) > 1 else None
    return parts[0], (domain or None)
