"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Database connectivity status",
    )
    uploads: Literal["writable", "unavailable"] = Field(
        description="Whether the upload directory exists and accepts writes",
    )
    rate_limit_backend: Literal["memory", "database"] = Field(
        description="Where login attempt counters are kept",
    )
