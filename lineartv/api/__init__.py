"""API routes for LinearTV"""

from fastapi import APIRouter

from .channels import router as channels_router
from .clock import router as clock_router
from .schedules import router as schedules_router
from .watch import router as watch_router

# Create the main API router
api_router = APIRouter(prefix="/api")

api_router.include_router(clock_router)
api_router.include_router(channels_router)
api_router.include_router(schedules_router)
api_router.include_router(watch_router)

__all__ = ["api_router"]
