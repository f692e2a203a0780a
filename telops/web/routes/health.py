"""Health check API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy import text

from telops.services import Services
from telops.web.dependencies import get_services

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(services: Services = Depends(get_services)):
    """Check application health.

    Verifies database connectivity.
    """
    try:
        async with services.database.session() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected"}
    except Exception as e:
        return {
            "status": "error",
            "database": "disconnected",
            "detail": str(e),
        }
