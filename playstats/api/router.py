"""
API Router — Combines all endpoint groups.

Steam (2 endpoints):   /api/v1/steam/{analyze,games}
Stats (1 endpoint):    /api/v1/stats/advanced
Health:                /api/v1/health
"""

from fastapi import APIRouter

from playstats.api.v1.steam import router as steam_router
from playstats.api.v1.steam import stats_router, health_router

api_router = APIRouter()

api_router.include_router(
    steam_router,
    prefix="/steam",
    tags=["Steam Analysis"],
)

api_router.include_router(
    stats_router,
    prefix="/stats",
    tags=["Statistics"],
)

api_router.include_router(
    health_router,
    tags=["Health"],
)
