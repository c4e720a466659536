"""
Public waitlist endpoints used by the embeddable signup widget.
No authentication; everything is keyed by waitlist slug.
"""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.api.helpers import get_client_ip, to_http_exception
from waitlistpro.database import get_db
from waitlistpro.schemas.api_responses import PositionRequest, SignupRequest, VerifyRequest
from waitlistpro.services.errors import WaitlistError
from waitlistpro.services.signups import register_signup, verify_signup
from waitlistpro.services.waitlists import get_position, get_public_info

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/waitlist", tags=["waitlist"])


@router.get("/{slug}")
async def public_info(slug: str, db: AsyncSession = Depends(get_db)):
    try:
        return await get_public_info(db, slug)
    except WaitlistError as e:
        raise to_http_exception(e)


@router.post("/{slug}/signup")
async def signup(
    slug: str,
    payload: SignupRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Join a waitlist. Fraud rejections return 400 with the rejection reason."""
    try:
        return await register_signup(
            db,
            slug,
            payload.email,
            ref=payload.ref,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            referrer_url=request.headers.get("referer"),
        )
    except WaitlistError as e:
        raise to_http_exception(e)


@router.post("/{slug}/verify")
async def verify(slug: str, payload: VerifyRequest, db: AsyncSession = Depends(get_db)):
    try:
        return await verify_signup(db, slug, payload.token)
    except WaitlistError as e:
        raise to_http_exception(e)


@router.post("/{slug}/position")
async def position(slug: str, payload: PositionRequest, db: AsyncSession = Depends(get_db)):
    try:
        return await get_position(db, slug, payload.referralCode)
    except WaitlistError as e:
        raise to_http_exception(e)
