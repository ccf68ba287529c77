"""Request/response schemas for admin management endpoints (SUPER_ADMIN only)."""

from pydantic import EmailStr, Field

from app.core.access_policy import Role
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.schemas.base import CamelModel


class AdminCreate(CamelModel):
    firstname: str = Field(..., min_length=1, max_length=255)
    lastname: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Role = Role.ADMIN
    city_ids: list[int] | None = None


class AdminUpdate(CamelModel):
    """Partial update. city_ids, when given, replaces the owned set (empty list detaches all)."""

    firstname: str | None = Field(default=None, min_length=1, max_length=255)
    lastname: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
    role: Role | None = None
    city_ids: list[int] | None = None


class CityRef(CamelModel):
    id: int
    name: str


class CityGeo(CityRef):
    latitude: float
    longitude: float
    radius: float


class AdminOut(CamelModel):
    id: int
    firstname: str
    lastname: str
    email: str
    role: Role
    profile_picture_url: str | None = None
    cities: list[CityRef] = Field(default_factory=list)


class AdminDetail(AdminOut):
    cities: list[CityGeo] = Field(default_factory=list)


class AdminStats(CamelModel):
    total: int
    super_admins: int
    regular_admins: int
    admins_with_cities: int
    admins_without_cities: int
