"""Pydantic request/response schemas."""

from app.schemas.admin import AdminCreate, AdminDetail, AdminOut, AdminStats, AdminUpdate
from app.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    ProfilePictureResponse,
    RegisterRequest,
    RegisterResponse,
    UserProfile,
)
from app.schemas.base import MessageResponse
from app.schemas.city import CityAssignRequest, CityCreate, CityDetail, CityOut, CityUpdate
from app.schemas.health import HealthResponse
from app.schemas.poi import POICreate, POIOut, POIUpdate

__all__ = [
    "AdminCreate",
    "AdminDetail",
    "AdminOut",
    "AdminStats",
    "AdminUpdate",
    "ChangePasswordRequest",
    "CityAssignRequest",
    "CityCreate",
    "CityDetail",
    "CityOut",
    "CityUpdate",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "POICreate",
    "POIOut",
    "POIUpdate",
    "ProfilePictureResponse",
    "RegisterRequest",
    "RegisterResponse",
    "UserProfile",
]
