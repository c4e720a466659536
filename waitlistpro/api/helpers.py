"""
Shared route helpers - client IP extraction and service error translation.
"""
from fastapi import HTTPException, Request

from waitlistpro.services.errors import WaitlistError


def get_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, falling back to the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def to_http_exception(exc: WaitlistError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
