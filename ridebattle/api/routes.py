from fastapi import APIRouter

from ridebattle.api.v1.endpoints import health, rides, sessions, stats

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(sessions.router)
api_router.include_router(rides.router)
api_router.include_router(stats.router)
