"""
Liveness and readiness probes.

/health answers as long as the process serves requests. /health/ready also
pings Postgres and Redis; a failed dependency reports "degraded" with a 200 so
the probe output stays readable.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])

APP_VERSION = "1.0.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _database_ok(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Readiness: database unreachable: %s", str(e))
        return False
    return True


async def _redis_ok() -> bool:
    from waitlistpro.utils.redis_client import get_redis
    try:
        client = await get_redis()
        await client.ping()
    except Exception as e:
        logger.warning("Readiness: redis unreachable: %s", str(e))
        return False
    return True


@router.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": _now(), "version": APP_VERSION}


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    checks = {"database": await _database_ok(db), "redis": await _redis_ok()}
    return {
        "status": "ready" if all(checks.values()) else "degraded",
        "checks": checks,
        "timestamp": _now(),
    }
