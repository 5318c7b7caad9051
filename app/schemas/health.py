"""Health check payload."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthData(BaseModel):
    """Data of the health check envelope; status is 'degraded' when the database is unreachable."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"]
    uptime_seconds: float = Field(ge=0, description="Seconds since the application was built")
    timestamp: str = Field(description="Server time (ISO 8601, UTC)")
