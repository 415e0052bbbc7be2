"""API routes for Review Tracker."""

from fastapi import APIRouter

from .reviews import router as reviews_router
from .settings import router as settings_router
from .stage_templates import router as stage_templates_router
from .users import router as users_router

# Main API router
api_router = APIRouter()

# Reviews are the primary resource
api_router.include_router(reviews_router)
api_router.include_router(users_router)
api_router.include_router(stage_templates_router)
api_router.include_router(settings_router)

__all__ = ["api_router"]
