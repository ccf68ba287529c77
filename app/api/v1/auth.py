"""Authentication endpoints: register, login, logout, refresh, password and profile picture."""

from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, File, Request, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.api.deps import enforce_login_rate_limit, get_current_user, get_login_rate_limiter
from app.core.config import settings
from app.core.database import get_db
from app.models import User
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
from app.services import auth_service
from app.services.rate_limiter import LoginRateLimiter
from app.services.storage import to_absolute_url

router = APIRouter()

REFRESH_COOKIE_NAME = "refreshToken"


def _profile(request: Request, user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        email=user.email,
        role=user.role,
        firstname=user.firstname,
        lastname=user.lastname,
        profile_picture_url=to_absolute_url(request, user.profile_picture_url),
    )


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> RegisterResponse:
    """Create an ADMIN account. 409 when the email is already used."""
    user = auth_service.register(db, body)
    return RegisterResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    client_key: Annotated[str, Depends(enforce_login_rate_limit)],
    limiter: Annotated[LoginRateLimiter, Depends(get_login_rate_limiter)],
) -> LoginResponse:
    """
    Authenticate with email and password.

    Returns an access token (send as `Authorization: Bearer <accessToken>`) and
    sets the refresh token as an HTTP-only cookie. Limited to a few attempts per
    client IP; a successful login restores the full budget.
    """
    user = auth_service.authenticate(db, body.email, body.password)
    tokens = auth_service.issue_tokens(user)
    limiter.reset(client_key)
    _set_refresh_cookie(response, tokens.refresh_token)
    return LoginResponse(access_token=tokens.access_token, user=_profile(request, user))


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Revoke the caller's refresh tokens and clear the cookie."""
    auth_service.revoke_refresh_tokens(db, current_user.id)
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return MessageResponse(message="Déconnexion réussie")


@router.post("/refresh", response_model=LoginResponse)
def refresh(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    refresh_token: Annotated[str | None, Cookie(alias=REFRESH_COOKIE_NAME)] = None,
) -> LoginResponse:
    """Issue a new access token from the refresh-token cookie."""
    user, access_token = auth_service.refresh_access_token(db, refresh_token)
    return LoginResponse(access_token=access_token, user=_profile(request, user))


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    auth_service.change_password(db, current_user.id, body.current_password, body.new_password)
    return MessageResponse(message="Mot de passe modifié avec succès")


@router.put("/profile-picture", response_model=ProfilePictureResponse)
def update_profile_picture(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    profile_picture: Annotated[UploadFile, File(alias="profilePicture")],
) -> ProfilePictureResponse:
    """Replace the caller's profile picture (multipart field `profilePicture`)."""
    user = auth_service.update_profile_picture(db, current_user.id, profile_picture)
    return ProfilePictureResponse(
        message="Photo de profil mise à jour avec succès",
        user=_profile(request, user),
    )
