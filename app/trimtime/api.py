from fastapi import APIRouter

from app.trimtime.routers.collections import router as collections_router
from app.trimtime.routers.health import router as health_router
from app.trimtime.routers.settings import router as settings_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(settings_router, tags=["settings"])
api_router.include_router(collections_router, tags=["collections"])
