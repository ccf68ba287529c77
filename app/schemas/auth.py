"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, EmailStr, Field

from app.core.access_policy import Role
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    """Self-registration; always creates an ADMIN."""

    firstname: str = Field(..., min_length=1, max_length=255)
    lastname: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class RegisterResponse(CamelModel):
    id: int
    firstname: str
    lastname: str
    email: str
    role: Role


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: EmailStr = Field(..., description="Email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class UserProfile(CamelModel):
    """Public profile returned on login/refresh; profile_picture_url is absolute."""

    id: int
    email: str
    role: Role
    firstname: str
    lastname: str
    profile_picture_url: str | None = None


class LoginResponse(CamelModel):
    """Access token plus profile. The refresh token travels in an HTTP-only cookie."""

    access_token: str = Field(..., description="JWT access token")
    user: UserProfile


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class ProfilePictureResponse(CamelModel):
    message: str
    user: UserProfile


class CurrentUser(BaseModel):
    """Caller identity decoded from the access token (id, email, role)."""

    id: int
    email: str
    role: Role
