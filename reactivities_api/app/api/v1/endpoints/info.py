"""
Information endpoint.

``/info/health`` is public and answers as long as the process is
serving requests; it is meant for load balancers and smoke tests.
"""

from typing import Dict

from fastapi import APIRouter

from reactivities_api.app.core.config import settings


router = APIRouter()


@router.get("/health", response_model=Dict[str, str])
async def health() -> Dict[str, str]:
    return {"status": "ok", "version": settings.api_version}
