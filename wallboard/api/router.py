from fastapi import APIRouter

from wallboard.api.v1.routes import agents, dashboard, health, realtime

api_router = APIRouter()
api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(agents.router, prefix="/v1/agents", tags=["agents"])
api_router.include_router(dashboard.router, prefix="/v1/dashboard", tags=["dashboard"])
api_router.include_router(realtime.router, prefix="/v1/realtime", tags=["realtime"])
