from fastapi import APIRouter
from app.routers import goals, permissions, reports, settings

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(permissions.router)
api_router.include_router(goals.router)
api_router.include_router(reports.router)
api_router.include_router(settings.router)
