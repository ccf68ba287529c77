"""Administrator management endpoints (SUPER_ADMIN only)."""

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.core.access_policy import Action, ResourceKind
from app.core.database import get_db
from app.models import User
from app.schemas.admin import AdminCreate, AdminDetail, AdminOut, AdminStats, AdminUpdate
from app.schemas.auth import CurrentUser
from app.schemas.base import MessageResponse
from app.services import admin_service
from app.services.storage import to_absolute_url

router = APIRouter()

ProfilePicture = Annotated[UploadFile | None, File(alias="profilePicture")]


def _require(action: Action):
    return Depends(require_permission(ResourceKind.ADMIN, action))


def _parse_city_ids(raw: str | None) -> Any:
    """cityIds arrives as a JSON array string in multipart forms ("[1, 2]"); "" means none."""
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return []
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # Left for schema validation to report.
        return raw


def _present(request: Request, admin: User, schema: type[AdminOut] = AdminOut) -> AdminOut:
    out = schema.model_validate(admin)
    return out.model_copy(
        update={"profile_picture_url": to_absolute_url(request, out.profile_picture_url)}
    )


@router.get("", response_model=list[AdminOut])
def list_admins(
    request: Request,
    _user: Annotated[CurrentUser, _require(Action.READ)],
    db: Annotated[Session, Depends(get_db)],
) -> list[AdminOut]:
    return [_present(request, a) for a in admin_service.list_admins(db)]


@router.get("/stats", response_model=AdminStats)
def get_admin_stats(
    _user: Annotated[CurrentUser, _require(Action.READ)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminStats:
    """Counts of admins by role and by whether they own cities."""
    return admin_service.admin_stats(db)


@router.get("/{admin_id}", response_model=AdminDetail)
def get_admin(
    admin_id: int,
    request: Request,
    _user: Annotated[CurrentUser, _require(Action.READ)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminOut:
    return _present(request, admin_service.get_admin(db, admin_id), AdminDetail)


@router.post("", response_model=AdminOut, status_code=status.HTTP_201_CREATED)
def create_admin(
    request: Request,
    _user: Annotated[CurrentUser, _require(Action.CREATE)],
    db: Annotated[Session, Depends(get_db)],
    firstname: Annotated[str, Form()],
    lastname: Annotated[str, Form()],
    email: Annotated[str, Form()],
    password: Annotated[str, Form()],
    role: Annotated[str | None, Form()] = None,
    city_ids: Annotated[str | None, Form(alias="cityIds")] = None,
    profile_picture: ProfilePicture = None,
) -> AdminOut:
    """Create an administrator (multipart form; optional profilePicture and cityIds)."""
    payload: dict[str, Any] = {
        "firstname": firstname,
        "lastname": lastname,
        "email": email,
        "password": password,
        "city_ids": _parse_city_ids(city_ids),
    }
    if role:
        payload["role"] = role
    data = AdminCreate.model_validate(payload)
    admin = admin_service.create_admin(db, data, profile_picture)
    return _present(request, admin)


@router.put("/{admin_id}", response_model=AdminOut)
def update_admin(
    admin_id: int,
    request: Request,
    _user: Annotated[CurrentUser, _require(Action.UPDATE)],
    db: Annotated[Session, Depends(get_db)],
    firstname: Annotated[str | None, Form()] = None,
    lastname: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    role: Annotated[str | None, Form()] = None,
    city_ids: Annotated[str | None, Form(alias="cityIds")] = None,
    profile_picture: ProfilePicture = None,
) -> AdminOut:
    """Partial update; cityIds, when sent, replaces the set of owned cities."""
    payload = {
        "firstname": firstname,
        "lastname": lastname,
        "email": email,
        "password": password,
        "role": role,
        "city_ids": _parse_city_ids(city_ids),
    }
    data = AdminUpdate.model_validate({k: v for k, v in payload.items() if v is not None})
    admin = admin_service.update_admin(db, admin_id, data, profile_picture)
    return _present(request, admin)


@router.delete("/{admin_id}", response_model=MessageResponse)
def delete_admin(
    admin_id: int,
    _user: Annotated[CurrentUser, _require(Action.DELETE)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete an administrator; its cities are kept and left without owner."""
    admin_service.delete_admin(db, admin_id)
    return MessageResponse(message="Administrateur supprimé avec succès")
