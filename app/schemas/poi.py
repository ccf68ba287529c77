"""Request/response schemas for POI endpoints."""

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.base import CamelModel


class CitySummary(CamelModel):
    """City fields embedded in POI responses."""

    id: int
    name: str
    latitude: float
    longitude: float
    radius: float


class POICreate(CamelModel):
    """POI creation payload (built from multipart form fields)."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    city_id: int
    icon_url: str = Field(default="", max_length=2048)
    model_url: str = Field(default="", max_length=2048)


class POIUpdate(CamelModel):
    """Partial POI update. cityId is immutable and therefore rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    icon_url: str | None = Field(default=None, max_length=2048)
    model_url: str | None = Field(default=None, max_length=2048)


class POIOut(CamelModel):
    id: int
    name: str
    description: str
    latitude: float
    longitude: float
    icon_url: str
    model_url: str
    city_id: int
    city: CitySummary | None = None
