"""
Top-level router for the REST API.

This router aggregates the domain routers (activities, profiles,
account, info) and is mounted under ``/api`` by ``main.py``.  The
comments WebSocket is not part of it; it is served at the application
root as ``/comments``.
"""

from fastapi import APIRouter

from .endpoints import account, activities, info, profiles

router = APIRouter()

router.include_router(activities.router, prefix="/activities", tags=["activities"])
router.include_router(profiles.router, prefix="/profiles", tags=["profiles"])
router.include_router(info.router, prefix="/info", tags=["info"])
# Account routes span two prefixes (``/login`` and ``/account/...``) and
# declare their full paths themselves.
router.include_router(account.router, tags=["account"])
