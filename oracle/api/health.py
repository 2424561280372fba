"""
Health check endpoints.
"""
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from oracle import __version__
from oracle.core.config import get_settings
from oracle.core.database import mongodb_client

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    storage_backend: str
    mongodb: Optional[bool] = None
    version: str = __version__


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Check the health of the storage backend.

    The in-memory backend is always healthy; MongoDB is pinged.
    """
    settings = get_settings()
    if not settings.uses_mongodb:
        return HealthResponse(status="healthy", storage_backend="memory")

    mongodb_ok = await mongodb_client.health_check()
    return HealthResponse(
        status="healthy" if mongodb_ok else "degraded",
        storage_backend="mongodb",
        mongodb=mongodb_ok,
    )


@router.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": get_settings().app_name,
        "version": __version__,
        "docs": "/docs",
    }
