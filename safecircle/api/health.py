"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/healthCheck")
def health_check() -> dict:
    """Return API health status."""
    return {
        "status": "OK",
        "message": "Backend running",
        "time": datetime.now(timezone.utc).isoformat(),
    }
