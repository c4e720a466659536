"""
WaitlistPro API process.

create_app() wires logging, CORS, the correlation-id middleware and every router.
The lifespan owns the database engine and the Redis handle: both are opened at
startup and released at shutdown.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from waitlistpro.api.router import api_router
from waitlistpro.config import Settings, get_settings
from waitlistpro.database import dispose_engine, init_engine
from waitlistpro.utils.logging import (
    configure_structured_logging,
    correlation_id_ctx,
    generate_correlation_id,
)
from waitlistpro.utils.redis_client import close_redis

logger = logging.getLogger("waitlistpro")

CORRELATION_HEADER = "X-Correlation-ID"
DEV_ORIGINS = ("http://localhost:3000", "http://localhost:5173")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Correlation-ID or mint one; echo it on the response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        token = correlation_id_ctx.set(cid)
        try:
            response = await call_next(request)
        finally:
            correlation_id_ctx.reset(token)
        response.headers[CORRELATION_HEADER] = cid
        return response


def _warn_on_missing_secrets(settings: Settings) -> None:
    if not settings.dashboard_jwt_secret:
        logger.warning("DASHBOARD_JWT_SECRET is empty, owner tokens are signed with APP_SECRET_KEY")
    if not settings.sendgrid_api_key:
        logger.warning("SENDGRID_API_KEY is empty, signup and invite emails will fail")


def _init_sentry(settings: Settings) -> None:
    try:
        import sentry_sdk
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.app_env,
            traces_sample_rate=0.1,
        )
    except Exception as e:
        logger.warning("Could not start Sentry: %s", str(e))
        return
    logger.info("Sentry error reporting enabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting WaitlistPro (env=%s)", settings.app_env)
    _warn_on_missing_secrets(settings)
    if settings.sentry_dsn:
        _init_sentry(settings)

    init_engine()
    try:
        yield
    finally:
        await dispose_engine()
        await close_redis()
        logger.info("WaitlistPro stopped")


def _cors_origins(settings: Settings) -> list[str]:
    """Dev origins, the public app URL, then ALLOWED_ORIGINS (comma-separated)."""
    origins = [*DEV_ORIGINS, settings.app_base_url]
    for origin in settings.allowed_origins.split(","):
        origin = origin.strip()
        if origin and origin not in origins:
            origins.append(origin)
    return origins


def create_app() -> FastAPI:
    settings = get_settings()
    configure_structured_logging(settings.log_level)

    application = FastAPI(
        title="WaitlistPro",
        description="Viral waitlists with referral tracking and launch invites",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Middleware added last runs first: correlation ids wrap CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", CORRELATION_HEADER],
    )
    application.add_middleware(CorrelationIdMiddleware)
    application.include_router(api_router)
    return application


app = create_app()
