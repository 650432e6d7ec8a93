"""
API Routes
"""

from fastapi import APIRouter

from .brands import router as brands_router
from .analytics import router as analytics_router

api_router = APIRouter()

api_router.include_router(brands_router, prefix="/brands", tags=["Brands"])
api_router.include_router(analytics_router, prefix="/brands", tags=["Analytics"])
