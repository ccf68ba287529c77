"""Request/response schemas for city endpoints."""

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.poi import POIOut


class CityFields(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius: float = Field(..., gt=0, description="Geofence radius; strictly positive")


class CityCreate(CityFields):
    """City creation; admin_id optionally binds an owner at creation."""

    admin_id: int | None = None


class CityUpdate(CityFields):
    """Non-ownership fields. Owners change only through assign/unassign."""


class CityAssignRequest(CamelModel):
    admin_id: int


class OwnerSummary(CamelModel):
    id: int
    email: str


class CityOut(CamelModel):
    id: int
    name: str
    latitude: float
    longitude: float
    radius: float
    admin_id: int | None = None


class CityDetail(CityOut):
    """City with its owner summary and POIs (SUPER_ADMIN listing)."""

    admin: OwnerSummary | None = None
    pois: list[POIOut] = Field(default_factory=list)
