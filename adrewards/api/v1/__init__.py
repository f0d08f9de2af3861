"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import ads, watch, admin

api_router = APIRouter()

api_router.include_router(
    ads.router,
    prefix="/ads",
    tags=["ads"]
)

api_router.include_router(
    watch.router,
    prefix="/watch",
    tags=["watch"]
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["admin"]
)
