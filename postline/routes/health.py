"""
Health check route.
"""
from fastapi import APIRouter

from .. import __version__
from ..config import get_settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "environment": get_settings().environment,
        "version": __version__,
    }
