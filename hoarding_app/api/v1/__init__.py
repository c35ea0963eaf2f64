"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import auth, owner_hoardings, advertisements, advertiser_hoardings, placements, reports, admin

api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["auth"]
)

api_router.include_router(
    owner_hoardings.router,
    prefix="/owner/hoardings",
    tags=["owner"]
)

api_router.include_router(
    advertisements.router,
    prefix="/advertiser",
    tags=["advertiser"]
)

api_router.include_router(
    advertiser_hoardings.router,
    prefix="/advertiser",
    tags=["advertiser"]
)

api_router.include_router(
    placements.router,
    prefix="/advertiser",
    tags=["placements"]
)

api_router.include_router(
    reports.router,
    prefix="/reports",
    tags=["reports"]
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["admin"]
)
