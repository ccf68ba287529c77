"""Request guards: bearer authentication, policy checks and the login rate limiter."""

import logging
from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from app.core.access_policy import Action, ResourceDescriptor, ResourceKind, Scope, evaluate
from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import InsufficientPermissionsError, InvalidTokenError, UnauthenticatedError
from app.core.security import decode_access_token
from app.schemas.auth import CurrentUser
from app.services.rate_limiter import LoginRateLimiter, build_login_rate_limiter, client_ip

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token and return the caller's claims.

    Stateless: the identity comes from the token alone. Missing token -> 401,
    bad or expired token -> 403.
    """
    if credentials is None:
        raise UnauthenticatedError("No token provided")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError as e:
        raise InvalidTokenError() from e
    try:
        return CurrentUser.model_validate(
            {"id": payload["id"], "email": payload["email"], "role": payload["role"]}
        )
    except (KeyError, ValidationError) as e:
        raise InvalidTokenError() from e


def require_permission(
    kind: ResourceKind,
    action: Action,
    scope: Scope = Scope.GLOBAL,
) -> Callable[[CurrentUser], CurrentUser]:
    """Build a dependency that authenticates, then asks the access policy about (action, resource)."""
    resource = ResourceDescriptor(kind=kind, scope=scope)

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not evaluate(current_user, action, resource):
            logger.info(
                "Permission denied",
                extra={
                    "user_id": current_user.id,
                    "role": current_user.role.value,
                    "action": action.value,
                    "resource": kind.value,
                    "scope": scope.value,
                },
            )
            raise InsufficientPermissionsError()
        return current_user

    return dependency


@lru_cache
def get_login_rate_limiter() -> LoginRateLimiter:
    """Process-wide limiter; the database backend shares counters across instances."""
    return build_login_rate_limiter(get_settings(), SessionLocal)


def enforce_login_rate_limit(
    request: Request,
    limiter: Annotated[LoginRateLimiter, Depends(get_login_rate_limiter)],
) -> str:
    """Dependency: count a login attempt for the client IP and return the key used."""
    key = client_ip(request)
    limiter.hit(key)
    return key
