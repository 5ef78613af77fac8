"""Main API router."""

from fastapi import APIRouter

from souvella.routes.daily_selection import router as daily_selection_router
from souvella.routes.health import router as health_router
from souvella.routes.memories import router as memories_router
from souvella.routes.reactions import router as reactions_router
from souvella.routes.relationships import router as relationships_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(relationships_router, prefix="/relationships", tags=["relationships"])
api_router.include_router(memories_router, prefix="/memories", tags=["memories"])
api_router.include_router(reactions_router, prefix="/reactions", tags=["reactions"])
api_router.include_router(daily_selection_router, prefix="/daily-selection", tags=["daily-selection"])
