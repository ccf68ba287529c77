"""City endpoints: global (SUPER_ADMIN) routes and owner-scoped routes under /admin."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.api.v1.pois import present_poi
from app.core.access_policy import Action, ResourceKind, Scope
from app.core.database import get_db
from app.models import City
from app.schemas.auth import CurrentUser
from app.schemas.city import CityAssignRequest, CityCreate, CityDetail, CityOut, CityUpdate
from app.services import city_service

router = APIRouter()


def _detail(request: Request, city: City) -> CityDetail:
    detail = CityDetail.model_validate(city)
    return detail.model_copy(update={"pois": [present_poi(request, p) for p in city.pois]})


def _super_admin(action: Action):
    return Depends(require_permission(ResourceKind.CITY, action))


@router.get("/admin", response_model=list[CityOut])
def list_owned_cities(
    current_user: Annotated[
        CurrentUser,
        Depends(require_permission(ResourceKind.CITY, Action.READ, Scope.OWNED)),
    ],
    db: Annotated[Session, Depends(get_db)],
) -> list[CityOut]:
    """Cities owned by the caller (empty list when none)."""
    return [CityOut.model_validate(c) for c in city_service.list_owned_cities(db, current_user.id)]


@router.put("/admin/{city_id}", response_model=CityOut)
def update_owned_city(
    city_id: int,
    body: CityUpdate,
    current_user: Annotated[
        CurrentUser,
        Depends(require_permission(ResourceKind.CITY, Action.UPDATE, Scope.OWNED)),
    ],
    db: Annotated[Session, Depends(get_db)],
) -> CityOut:
    """Update name, coordinates and radius of a city the caller owns (403 otherwise)."""
    city = city_service.update_owned_city(db, current_user.id, city_id, body)
    return CityOut.model_validate(city)


@router.get("", response_model=list[CityDetail])
def list_cities(
    request: Request,
    _user: Annotated[CurrentUser, _super_admin(Action.READ)],
    db: Annotated[Session, Depends(get_db)],
) -> list[CityDetail]:
    """All cities with their owner summary and POIs."""
    return [_detail(request, c) for c in city_service.list_cities(db)]


@router.get("/{city_id}", response_model=CityDetail)
def get_city(
    city_id: int,
    request: Request,
    _user: Annotated[CurrentUser, _super_admin(Action.READ)],
    db: Annotated[Session, Depends(get_db)],
) -> CityDetail:
    return _detail(request, city_service.get_city(db, city_id))


@router.post("", response_model=CityOut, status_code=status.HTTP_201_CREATED)
def create_city(
    body: CityCreate,
    _user: Annotated[CurrentUser, _super_admin(Action.CREATE)],
    db: Annotated[Session, Depends(get_db)],
) -> CityOut:
    return CityOut.model_validate(city_service.create_city(db, body))


@router.put("/{city_id}", response_model=CityOut)
def update_city(
    city_id: int,
    body: CityUpdate,
    _user: Annotated[CurrentUser, _super_admin(Action.UPDATE)],
    db: Annotated[Session, Depends(get_db)],
) -> CityOut:
    return CityOut.model_validate(city_service.update_city(db, city_id, body))


@router.put("/{city_id}/assign", response_model=CityOut)
def assign_city(
    city_id: int,
    body: CityAssignRequest,
    _user: Annotated[CurrentUser, _super_admin(Action.ASSIGN)],
    db: Annotated[Session, Depends(get_db)],
) -> CityOut:
    """Make adminId the owner of the city."""
    return CityOut.model_validate(city_service.assign_city(db, city_id, body.admin_id))


@router.delete("/{city_id}/unassign", response_model=CityOut)
def unassign_city(
    city_id: int,
    _user: Annotated[CurrentUser, _super_admin(Action.ASSIGN)],
    db: Annotated[Session, Depends(get_db)],
) -> CityOut:
    return CityOut.model_validate(city_service.unassign_city(db, city_id))


@router.delete("/{city_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_city(
    city_id: int,
    _user: Annotated[CurrentUser, _super_admin(Action.DELETE)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a city that has no POIs left (409 otherwise)."""
    city_service.delete_city(db, city_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
