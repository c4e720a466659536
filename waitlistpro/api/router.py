"""
API router - aggregates all route modules.
"""
from fastapi import APIRouter
from waitlistpro.api.auth import router as auth_router
from waitlistpro.api.waitlists import router as waitlists_router
from waitlistpro.api.dashboard import router as dashboard_router
from waitlistpro.api.health import router as health_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(waitlists_router)
api_router.include_router(dashboard_router)
api_router.include_router(health_router)
