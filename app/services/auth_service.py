"""Authentication flow: registration, login, token refresh, password and profile picture changes."""

import logging
from dataclasses import dataclass

import jwt
from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.access_policy import Role
from app.core.config import settings
from app.core.database import transaction
from app.core.errors import (
    EmailInUseError,
    InvalidCredentialsError,
    InvalidCurrentPasswordError,
    InvalidTokenError,
    NotFoundError,
    PasswordUnchangedError,
    UnauthenticatedError,
)
from app.core.security import (
    TokenClaims,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from app.models import User
from app.schemas.auth import RegisterRequest
from app.services import storage

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "Utilisateur non trouvé"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def claims_for(user: User) -> TokenClaims:
    return {"id": user.id, "email": user.email, "role": user.role}


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return user


def register(db: Session, data: RegisterRequest) -> User:
    """Create an ADMIN account. Raises EmailInUseError when the email is taken."""
    if get_user_by_email(db, data.email) is not None:
        raise EmailInUseError()
    user = User(
        firstname=data.firstname,
        lastname=data.lastname,
        email=data.email,
        password_hash=hash_password(data.password),
        role=Role.ADMIN.value,
    )
    with transaction(db, "register"):
        db.add(user)
        try:
            db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email.
            raise EmailInUseError() from e
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id})
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """
    Return the user for valid credentials.

    Unknown email and wrong password raise the same InvalidCredentialsError so
    that responses cannot be used to enumerate accounts.
    """
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login failed", extra={"reason": "invalid_credentials"})
        raise InvalidCredentialsError()
    logger.info("Login succeeded", extra={"user_id": user.id})
    return user


def issue_tokens(user: User) -> TokenPair:
    claims = claims_for(user)
    return TokenPair(
        access_token=create_access_token(claims),
        refresh_token=create_refresh_token(claims, user.token_version),
    )


def refresh_access_token(db: Session, refresh_token: str | None) -> tuple[User, str]:
    """
    Exchange a refresh token for a new access token (the refresh token is not rotated).

    Missing token -> UnauthenticatedError. Bad signature/expiry, unknown user
    or a revoked token version -> InvalidTokenError.
    """
    if not refresh_token:
        raise UnauthenticatedError("No refresh token provided")
    try:
        payload = decode_refresh_token(refresh_token)
    except jwt.PyJWTError as e:
        logger.info("Refresh rejected", extra={"reason": type(e).__name__})
        raise InvalidTokenError("Invalid refresh token") from e
    try:
        user_id = int(payload["id"])
        token_version = int(payload["tv"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError("Invalid refresh token") from e
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.info("Refresh rejected", extra={"reason": "unknown_user"})
        raise InvalidTokenError()
    if user.token_version != token_version:
        logger.info("Refresh rejected", extra={"reason": "revoked", "user_id": user.id})
        raise InvalidTokenError("Invalid refresh token")
    return user, create_access_token(claims_for(user))


def revoke_refresh_tokens(db: Session, user_id: int) -> None:
    """Invalidate every refresh token issued so far for the user."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return
    with transaction(db, "revoke_refresh_tokens"):
        user.token_version = (user.token_version or 0) + 1


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    """Verify the current password, store the new hash and revoke outstanding refresh tokens."""
    user = _get_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise InvalidCurrentPasswordError()
    # Plain comparison: bcrypt would ignore differences past 72 bytes.
    if new_password == current_password:
        raise PasswordUnchangedError()
    with transaction(db, "change_password"):
        user.password_hash = hash_password(new_password)
        user.token_version = (user.token_version or 0) + 1
    logger.info("Password changed", extra={"user_id": user.id})


def update_profile_picture(db: Session, user_id: int, upload: UploadFile) -> User:
    """Store the new picture, drop the previous file and persist the new relative URL."""
    user = _get_user(db, user_id)
    storage.validate_image(upload, label="profile picture")
    new_url = storage.save_upload(
        upload,
        storage.PROFILE_PICTURES_DIR,
        max_bytes=settings.MAX_PROFILE_PICTURE_BYTES,
        default_ext=".png",
    )
    previous_url = user.profile_picture_url
    try:
        with transaction(db, "update_profile_picture"):
            user.profile_picture_url = new_url
    except Exception:
        storage.delete_upload(new_url)
        raise
    storage.delete_upload(previous_url)
    db.refresh(user)
    return user
