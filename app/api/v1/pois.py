"""POI endpoints: global (SUPER_ADMIN) routes and owner-scoped routes under /admin."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.core.access_policy import Action, ResourceKind, Scope
from app.core.database import get_db
from app.models import POI
from app.schemas.auth import CurrentUser
from app.schemas.poi import POICreate, POIOut, POIUpdate
from app.services import poi_service
from app.services.storage import to_absolute_url

router = APIRouter()


def present_poi(request: Request, poi: POI) -> POIOut:
    """Serialize a POI with uploaded file URLs rendered absolute."""
    out = POIOut.model_validate(poi)
    return out.model_copy(
        update={
            "icon_url": to_absolute_url(request, out.icon_url) or "",
            "model_url": to_absolute_url(request, out.model_url) or "",
        }
    )


def poi_form(
    name: Annotated[str, Form()],
    description: Annotated[str, Form()],
    latitude: Annotated[float, Form()],
    longitude: Annotated[float, Form()],
    city_id: Annotated[int, Form(alias="cityId")],
    icon_url: Annotated[str, Form(alias="iconUrl")] = "",
    model_url: Annotated[str, Form(alias="modelUrl")] = "",
) -> POICreate:
    """Collect POI fields from a multipart or urlencoded form."""
    return POICreate(
        name=name,
        description=description,
        latitude=latitude,
        longitude=longitude,
        city_id=city_id,
        icon_url=icon_url,
        model_url=model_url,
    )


SuperAdminRead = Annotated[CurrentUser, Depends(require_permission(ResourceKind.POI, Action.READ))]
PoiForm = Annotated[POICreate, Depends(poi_form)]
IconFile = Annotated[UploadFile | None, File(alias="iconFile")]
ModelFile = Annotated[UploadFile | None, File(alias="modelFile")]


# Owner-scoped routes are declared first so /admin is never parsed as an id.


@router.get("/admin", response_model=list[POIOut])
def list_owned_pois(
    request: Request,
    current_user: Annotated[
        CurrentUser,
        Depends(require_permission(ResourceKind.POI, Action.READ, Scope.OWNED)),
    ],
    db: Annotated[Session, Depends(get_db)],
) -> list[POIOut]:
    """POIs in the cities owned by the caller."""
    return [present_poi(request, p) for p in poi_service.list_owned_pois(db, current_user.id)]


@router.post("/admin", response_model=POIOut, status_code=status.HTTP_201_CREATED)
def create_owned_poi(
    request: Request,
    current_user: Annotated[
        CurrentUser,
        Depends(require_permission(ResourceKind.POI, Action.CREATE, Scope.OWNED)),
    ],
    db: Annotated[Session, Depends(get_db)],
    data: PoiForm,
    icon_file: IconFile = None,
    model_file: ModelFile = None,
) -> POIOut:
    """Create a POI in one of the caller's cities (403 for any other city)."""
    poi = poi_service.create_owned_poi(db, current_user.id, data, icon_file, model_file)
    return present_poi(request, poi)


@router.put("/admin/{poi_id}", response_model=POIOut)
def update_owned_poi(
    poi_id: int,
    body: POIUpdate,
    request: Request,
    current_user: Annotated[
        CurrentUser,
        Depends(require_permission(ResourceKind.POI, Action.UPDATE, Scope.OWNED)),
    ],
    db: Annotated[Session, Depends(get_db)],
) -> POIOut:
    poi = poi_service.update_owned_poi(db, current_user.id, poi_id, body)
    return present_poi(request, poi)


@router.delete("/admin/{poi_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_owned_poi(
    poi_id: int,
    current_user: Annotated[
        CurrentUser,
        Depends(require_permission(ResourceKind.POI, Action.DELETE, Scope.OWNED)),
    ],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    poi_service.delete_owned_poi(db, current_user.id, poi_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=list[POIOut])
def list_pois(
    request: Request,
    _user: SuperAdminRead,
    db: Annotated[Session, Depends(get_db)],
) -> list[POIOut]:
    return [present_poi(request, p) for p in poi_service.list_pois(db)]


@router.get("/city/{city_id}", response_model=list[POIOut])
def list_pois_by_city(
    city_id: int,
    request: Request,
    _user: SuperAdminRead,
    db: Annotated[Session, Depends(get_db)],
) -> list[POIOut]:
    """POIs of one city; an empty list is valid, a missing city is 404."""
    return [present_poi(request, p) for p in poi_service.list_pois_by_city(db, city_id)]


@router.get("/{poi_id}", response_model=POIOut)
def get_poi(
    poi_id: int,
    request: Request,
    _user: SuperAdminRead,
    db: Annotated[Session, Depends(get_db)],
) -> POIOut:
    return present_poi(request, poi_service.get_poi(db, poi_id))


@router.post("", response_model=POIOut, status_code=status.HTTP_201_CREATED)
def create_poi(
    request: Request,
    _user: Annotated[CurrentUser, Depends(require_permission(ResourceKind.POI, Action.CREATE))],
    db: Annotated[Session, Depends(get_db)],
    data: PoiForm,
    icon_file: IconFile = None,
    model_file: ModelFile = None,
) -> POIOut:
    """
    Create a POI in any existing city.

    Send a multipart form with name, description, latitude, longitude and
    cityId. Icon and 3D model are given either as URLs (iconUrl, modelUrl) or
    uploaded as files (iconFile, modelFile); uploaded files win.
    """
    poi = poi_service.create_poi(db, data, icon_file, model_file)
    return present_poi(request, poi)


@router.put("/{poi_id}", response_model=POIOut)
def update_poi(
    poi_id: int,
    body: POIUpdate,
    request: Request,
    _user: Annotated[CurrentUser, Depends(require_permission(ResourceKind.POI, Action.UPDATE))],
    db: Annotated[Session, Depends(get_db)],
) -> POIOut:
    return present_poi(request, poi_service.update_poi(db, poi_id, body))


@router.delete("/{poi_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_poi(
    poi_id: int,
    _user: Annotated[CurrentUser, Depends(require_permission(ResourceKind.POI, Action.DELETE))],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    poi_service.delete_poi(db, poi_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
