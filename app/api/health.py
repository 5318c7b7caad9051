"""Health check endpoint with database connectivity check."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Request, Response, status

from app.api.deps import DbDep, SettingsDep
from app.core.database import check_db_connected
from app.schemas.common import ApiResponse
from app.schemas.health import HealthData

router = APIRouter()


@router.get("", response_model=ApiResponse[HealthData], response_model_exclude_none=True)
def get_health(
    request: Request, response: Response, db: DbDep, settings: SettingsDep
) -> ApiResponse[HealthData]:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring; answers 503 while the database is unreachable.
    """
    connected = check_db_connected(db)
    if not connected:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ApiResponse(
        data=HealthData(
            status="ok" if connected else "degraded",
            environment=settings.APP_ENV,
            database="connected" if connected else "disconnected",
            uptime_seconds=round(time.monotonic() - request.app.state.started_at, 3),
            timestamp=datetime.now(UTC).isoformat(),
        )
    )
