"""System routes - liveness plus the state of the cycle lock backend."""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ...core.config import get_settings
from ...workers.cycle_lock import CycleLock
from ..dependencies import RedisDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


class HealthResponse(BaseModel):
    """Service health. degraded means the API is up but cycles cannot be triggered."""
    status: str
    version: str
    environment: str
    redis: str
    cycle_running: bool = False
    cycle_holder: Optional[str] = None


@router.get("/health", response_model=HealthResponse)
async def health_check(redis: RedisDep):
    settings = get_settings()
    response = HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
        redis="ok",
    )

    try:
        holder = await CycleLock(redis).current_holder()
    except Exception as e:
        logger.warning(f"Health check: redis unavailable - {e}")
        response.status = "degraded"
        response.redis = "unavailable"
        return response

    response.cycle_running = holder is not None
    response.cycle_holder = holder
    return response
