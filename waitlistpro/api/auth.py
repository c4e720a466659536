"""
Owner auth endpoints - register, login, current user.
Also provides the get_current_user dependency for dashboard routes.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.api.helpers import get_client_ip
from waitlistpro.config import get_settings
from waitlistpro.database import get_db
from waitlistpro.models.user import User
from waitlistpro.schemas.api_responses import LoginRequest, LoginResponse, RegisterRequest
from waitlistpro.utils.email_validation import is_valid_email_format, normalize_email
from waitlistpro.utils.logging import mask_email

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])
bearer_scheme = HTTPBearer()


# === RATE LIMITING ===

async def _check_auth_rate_limit(
    action: str,
    identifier: str,
    max_attempts: int = 5,
    window_seconds: int = 900,
) -> None:
    """Redis-based rate limiter for auth endpoints."""
    try:
        from waitlistpro.utils.redis_client import get_redis
        redis = await get_redis()
        key = f"waitlistpro:rate:{action}:{identifier}"
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, window_seconds)
        if count > max_attempts:
            raise HTTPException(
                status_code=429,
                detail="Too many attempts. Please try again later.",
                headers={"Retry-After": str(window_seconds)},
            )
    except HTTPException:
        raise
    except Exception as e:
        # Fail open: auth keeps working when Redis is down
        logger.warning("Rate limiting unavailable (Redis error): %s", str(e))


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode(), password_hash.encode())


def create_access_token(user: User) -> str:
    settings = get_settings()
    return jwt.encode(
        {
            "user_id": str(user.id),
            "exp": datetime.now(timezone.utc) + timedelta(hours=settings.dashboard_jwt_expiry_hours),
        },
        settings.dashboard_jwt_secret or settings.app_secret_key,
        algorithm="HS256",
    )


# === AUTH ===

@router.post("/api/auth/register", response_model=LoginResponse)
async def register(
    payload: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Create an owner account and return a JWT token."""
    # 3 registrations per IP per hour
    await _check_auth_rate_limit("register", get_client_ip(request), max_attempts=3, window_seconds=3600)

    email = normalize_email(payload.email)
    if not is_valid_email_format(email):
        raise HTTPException(status_code=400, detail="Valid email required")
    if len(payload.password) < 8:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters")

    existing = await db.execute(select(User.id).where(User.email == email).limit(1))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="An account with this email already exists")

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        name=(payload.name or "").strip() or None,
    )
    db.add(user)
    await db.flush()

    logger.info("New owner account: %s", mask_email(email))

    return LoginResponse(
        token=create_access_token(user),
        user_id=str(user.id),
        email=user.email,
        name=user.name,
    )


@router.post("/api/auth/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate an owner and return a JWT token."""
    email = normalize_email(payload.email)
    # 5 attempts per email per 15 minutes
    await _check_auth_rate_limit("login", email)

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user or not check_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return LoginResponse(
        token=create_access_token(user),
        user_id=str(user.id),
        email=user.email,
        name=user.name,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Dependency to extract and verify the owner from a JWT Bearer token."""
    settings = get_settings()

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.dashboard_jwt_secret or settings.app_secret_key,
            algorithms=["HS256"],
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    try:
        user_uuid = uuid.UUID(user_id)
    except (ValueError, AttributeError):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = await db.get(User, user_uuid)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


@router.get("/api/auth/me")
async def me(user: User = Depends(get_current_user)):
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }
