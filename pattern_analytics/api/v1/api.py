from fastapi import APIRouter
from .endpoints import analytics, system

api_router = APIRouter()

api_router.include_router(analytics.router, prefix="/analytics", tags=["Pattern Analytics"])
api_router.include_router(system.router, tags=["System Infrastructure"])
