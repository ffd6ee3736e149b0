"""
Health check endpoints.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from ... import __version__
from ...core.config import get_settings
from ...core.utils.string_utils import truncate_string
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str


@router.get("/", response_model=ApiResponse[HealthResponse])
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns the current status of the service.
    """
    settings = get_settings()
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        service=settings.app_name,
    ), message="OK")


@router.get("/ready", response_model=ApiResponse[dict])
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Pings MongoDB and reports which external collaborators are configured.
    Always answers 200; ``status`` is "degraded" when the database is unreachable.
    """
    settings = get_settings()
    checks = {}

    try:
        client = AsyncIOMotorClient(settings.database.uri, serverSelectionTimeoutMS=2000)
        try:
            await client.admin.command("ping")
        finally:
            client.close()
        checks["database"] = "ok"
    except PyMongoError as e:
        logger.warning(f"Readiness database ping failed: {e}")
        checks["database"] = f"error: {truncate_string(str(e), 60)}"

    checks["azure_blob_storage"] = "configured" if settings.azure_blob.connection_string else "not_configured"
    checks["azure_openai"] = "configured" if settings.azure_openai.is_configured else "not_configured"
    checks["transcription"] = "configured" if settings.openai.api_key else "not_configured"

    all_ok = checks["database"] == "ok"
    return ok(request, data={
        "status": "ready" if all_ok else "degraded",
        "timestamp": datetime.now(timezone.utc),
        "checks": checks,
    }, message="OK" if all_ok else "Some services unavailable")
