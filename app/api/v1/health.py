"""Health check endpoint with database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.database import Database, get_db
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(db: Annotated[Database, Depends(get_db)]) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring.
    """
    db_status = "connected" if db.check_connected() else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        version=settings.VERSION,
        database=db_status,
    )
