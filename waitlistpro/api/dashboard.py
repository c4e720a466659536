"""
Owner dashboard API - waitlist management, analytics, batch invites, export.
All endpoints require JWT authentication via Bearer token and only expose
waitlists owned by the caller.
"""
import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.api.auth import get_current_user
from waitlistpro.api.helpers import to_http_exception
from waitlistpro.database import get_db
from waitlistpro.models.user import User
from waitlistpro.models.waitlist import Waitlist
from waitlistpro.schemas.api_responses import (
    BatchInviteRequest,
    BatchInviteResponse,
    CreateRewardRequest,
    CreateWaitlistRequest,
    ExportRequest,
    UpdateWaitlistRequest,
)
from waitlistpro.services.batch_invite import get_invite_status, run_batch_invite
from waitlistpro.services.errors import WaitlistError
from waitlistpro.services.export import export_signups
from waitlistpro.services.fraud_detection import get_waitlist_fraud_stats
from waitlistpro.services.referrals import get_rewards
from waitlistpro.services.viral_metrics import (
    compute_daily_trend,
    compute_super_advocates,
    compute_viral_metrics,
)
from waitlistpro.services.waitlists import (
    add_reward,
    create_waitlist,
    get_owned_waitlist,
    list_owner_waitlists,
    reward_to_dict,
    update_waitlist,
    waitlist_to_dict,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


async def _load_waitlist(db: AsyncSession, waitlist_id: str, user: User) -> Waitlist:
    try:
        wid = uuid.UUID(waitlist_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Waitlist not found")
    try:
        return await get_owned_waitlist(db, wid, user.id)
    except WaitlistError as e:
        raise to_http_exception(e)


# === WAITLISTS ===

@router.get("/waitlists")
async def list_waitlists(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"waitlists": await list_owner_waitlists(db, user.id)}


@router.post("/waitlists")
async def new_waitlist(
    payload: CreateWaitlistRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        waitlist = await create_waitlist(db, user.id, payload.name, payload.description)
    except WaitlistError as e:
        raise to_http_exception(e)
    return {"success": True, "waitlist": waitlist_to_dict(waitlist, rewards=[])}


@router.get("/waitlists/{waitlist_id}")
async def get_waitlist(
    waitlist_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    waitlist = await _load_waitlist(db, waitlist_id, user)
    return waitlist_to_dict(waitlist, rewards=await get_rewards(db, waitlist.id))


@router.patch("/waitlists/{waitlist_id}")
async def patch_waitlist(
    waitlist_id: str,
    payload: UpdateWaitlistRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Update description and display settings. Unset settings keys are kept."""
    waitlist = await _load_waitlist(db, waitlist_id, user)
    settings = payload.settings.model_dump(exclude_none=True) if payload.settings else None
    waitlist = await update_waitlist(db, waitlist, payload.description, settings)
    return {"success": True, "waitlist": waitlist_to_dict(waitlist)}


# === REWARDS ===

@router.get("/waitlists/{waitlist_id}/rewards")
async def list_rewards(
    waitlist_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    waitlist = await _load_waitlist(db, waitlist_id, user)
    return {"rewards": [reward_to_dict(r) for r in await get_rewards(db, waitlist.id)]}


@router.post("/waitlists/{waitlist_id}/rewards")
async def create_reward(
    waitlist_id: str,
    payload: CreateRewardRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    waitlist = await _load_waitlist(db, waitlist_id, user)
    try:
        reward = await add_reward(
            db, waitlist, payload.threshold, payload.title, payload.description,
        )
    except WaitlistError as e:
        raise to_http_exception(e)
    return {"success": True, "reward": reward_to_dict(reward)}


# === ANALYTICS ===

@router.get("/waitlists/{waitlist_id}/dashboard")
async def get_dashboard(
    waitlist_id: str,
    days: int = Query(30, ge=1, le=365),
    zeroFill: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Everything the dashboard overview renders, in one round trip."""
    waitlist = await _load_waitlist(db, waitlist_id, user)
    return {
        "waitlist": waitlist_to_dict(waitlist, rewards=await get_rewards(db, waitlist.id)),
        "metrics": await compute_viral_metrics(db, waitlist.id),
        "superAdvocates": await compute_super_advocates(db, waitlist.id, limit=50),
        "dailyTrend": await compute_daily_trend(db, waitlist.id, days=days, zero_fill=zeroFill),
        "fraudStats": await get_waitlist_fraud_stats(db, waitlist.id),
    }


@router.get("/waitlists/{waitlist_id}/advocates")
async def get_advocates(
    waitlist_id: str,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    waitlist = await _load_waitlist(db, waitlist_id, user)
    return {"advocates": await compute_super_advocates(db, waitlist.id, limit=limit)}


# === LAUNCH TOOLS ===

@router.get("/waitlists/{waitlist_id}/invite")
async def invite_status(
    waitlist_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    waitlist = await _load_waitlist(db, waitlist_id, user)
    return await get_invite_status(db, waitlist.id)


@router.post("/waitlists/{waitlist_id}/invite", response_model=BatchInviteResponse)
async def batch_invite(
    waitlist_id: str,
    payload: BatchInviteRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    waitlist = await _load_waitlist(db, waitlist_id, user)
    try:
        result = await run_batch_invite(
            db,
            waitlist,
            count=payload.count,
            filter=payload.filter,
            custom_message=payload.customMessage,
            skip_already_invited=payload.skipAlreadyInvited,
        )
    except WaitlistError as e:
        raise to_http_exception(e)
    return BatchInviteResponse(**result)


@router.post("/waitlists/{waitlist_id}/export")
async def export(
    waitlist_id: str,
    payload: ExportRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    waitlist = await _load_waitlist(db, waitlist_id, user)
    try:
        data = await export_signups(db, waitlist.id, format=payload.format, filter=payload.filter)
    except WaitlistError as e:
        raise to_http_exception(e)

    if payload.format == "json":
        return {"signups": data, "total": len(data)}

    filename = f"{waitlist.slug}-{payload.filter}.csv"
    return StreamingResponse(
        iter([data]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
