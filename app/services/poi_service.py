"""POI management. Ownership of a POI is derived through its city; scoped operations filter on it in the query."""

import logging
from collections.abc import Iterable

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload

from app.core.config import settings
from app.core.database import transaction
from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.models import POI, City
from app.schemas.poi import POICreate, POIUpdate
from app.services import storage

logger = logging.getLogger(__name__)

POI_NOT_FOUND = "POI not found"
CITY_NOT_FOUND = "City not found"
UNKNOWN_CITY = "La ville spécifiée n'existe pas"
CREATE_FORBIDDEN = "Vous n'avez pas l'autorisation de créer un POI dans cette ville"
UPDATE_FORBIDDEN = "Vous n'avez pas l'autorisation de modifier ce POI"
DELETE_FORBIDDEN = "Vous n'avez pas l'autorisation de supprimer ce POI"


def owned_pois_query(db: Session, owner_id: int) -> Query:
    """POIs located in cities owned by owner_id."""
    return db.query(POI).join(City, POI.city_id == City.id).filter(City.admin_id == owner_id)


def _get_poi(db: Session, poi_id: int) -> POI:
    poi = db.query(POI).filter(POI.id == poi_id).first()
    if poi is None:
        raise NotFoundError(POI_NOT_FOUND)
    return poi


def _store_files(icon_file: UploadFile | None, model_file: UploadFile | None) -> dict[str, str]:
    """Validate and store uploaded icon/model files; return the relative URLs by field."""
    if icon_file is not None:
        storage.validate_image(icon_file, label="icon")
    if model_file is not None:
        storage.validate_model(model_file)
    stored: dict[str, str] = {}
    try:
        if icon_file is not None:
            stored["icon_url"] = storage.save_upload(
                icon_file, storage.ICONS_DIR, max_bytes=settings.MAX_POI_FILE_BYTES
            )
        if model_file is not None:
            stored["model_url"] = storage.save_upload(
                model_file, storage.MODELS_DIR, max_bytes=settings.MAX_POI_FILE_BYTES
            )
    except Exception:
        for url in stored.values():
            storage.delete_upload(url)
        raise
    return stored


def _insert_poi(
    db: Session,
    data: POICreate,
    icon_file: UploadFile | None,
    model_file: UploadFile | None,
) -> POI:
    stored = _store_files(icon_file, model_file)
    poi = POI(
        name=data.name,
        description=data.description,
        latitude=data.latitude,
        longitude=data.longitude,
        icon_url=stored.get("icon_url", data.icon_url.strip()),
        model_url=stored.get("model_url", data.model_url.strip()),
        city_id=data.city_id,
    )
    try:
        with transaction(db, "create_poi"):
            db.add(poi)
    except Exception:
        for url in stored.values():
            storage.delete_upload(url)
        raise
    db.refresh(poi)
    return poi


def _apply_update(poi: POI, data: POIUpdate) -> list[str]:
    """Apply the fields present in the payload; return the URLs that were replaced or cleared."""
    replaced: list[str] = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("icon_url", "model_url"):
            value = (value or "").strip()
            previous = getattr(poi, field)
            if previous and previous != value:
                replaced.append(previous)
        elif value is None:
            continue
        setattr(poi, field, value)
    return replaced


def _release_files(db: Session, urls: Iterable[str]) -> None:
    """Delete stored files no POI refers to any more."""
    for url in urls:
        if not url:
            continue
        in_use = db.query(POI.id).filter(or_(POI.icon_url == url, POI.model_url == url)).first()
        if in_use is None:
            storage.delete_upload(url)


def _update(db: Session, poi: POI, data: POIUpdate, action: str) -> POI:
    with transaction(db, action):
        replaced = _apply_update(poi, data)
    _release_files(db, replaced)
    db.refresh(poi)
    return poi


def list_pois(db: Session) -> list[POI]:
    return db.query(POI).options(joinedload(POI.city)).order_by(POI.id).all()


def get_poi(db: Session, poi_id: int) -> POI:
    return _get_poi(db, poi_id)


def list_pois_by_city(db: Session, city_id: int) -> list[POI]:
    """POIs of a city; NotFoundError when the city itself does not exist."""
    if db.query(City.id).filter(City.id == city_id).first() is None:
        raise NotFoundError(CITY_NOT_FOUND)
    return (
        db.query(POI)
        .options(joinedload(POI.city))
        .filter(POI.city_id == city_id)
        .order_by(POI.id)
        .all()
    )


def list_owned_pois(db: Session, owner_id: int) -> list[POI]:
    return owned_pois_query(db, owner_id).options(joinedload(POI.city)).order_by(POI.id).all()


def create_poi(
    db: Session,
    data: POICreate,
    icon_file: UploadFile | None = None,
    model_file: UploadFile | None = None,
) -> POI:
    """Create a POI in any existing city."""
    if db.query(City.id).filter(City.id == data.city_id).first() is None:
        raise BadRequestError(UNKNOWN_CITY)
    return _insert_poi(db, data, icon_file, model_file)


def create_owned_poi(
    db: Session,
    owner_id: int,
    data: POICreate,
    icon_file: UploadFile | None = None,
    model_file: UploadFile | None = None,
) -> POI:
    """Create a POI in a city owned by owner_id; any other city raises ForbiddenError."""
    owned = (
        db.query(City.id)
        .filter(City.id == data.city_id, City.admin_id == owner_id)
        .first()
    )
    if owned is None:
        raise ForbiddenError(CREATE_FORBIDDEN)
    return _insert_poi(db, data, icon_file, model_file)


def update_poi(db: Session, poi_id: int, data: POIUpdate) -> POI:
    return _update(db, _get_poi(db, poi_id), data, "update_poi")


def update_owned_poi(db: Session, owner_id: int, poi_id: int, data: POIUpdate) -> POI:
    poi = owned_pois_query(db, owner_id).filter(POI.id == poi_id).first()
    if poi is None:
        raise ForbiddenError(UPDATE_FORBIDDEN)
    return _update(db, poi, data, "update_owned_poi")


def _remove(db: Session, poi: POI, action: str) -> None:
    files = (poi.icon_url, poi.model_url)
    poi_id = poi.id
    with transaction(db, action):
        db.delete(poi)
    _release_files(db, files)
    logger.info("POI deleted", extra={"poi_id": poi_id})


def delete_poi(db: Session, poi_id: int) -> None:
    _remove(db, _get_poi(db, poi_id), "delete_poi")


def delete_owned_poi(db: Session, owner_id: int, poi_id: int) -> None:
    poi = owned_pois_query(db, owner_id).filter(POI.id == poi_id).first()
    if poi is None:
        raise ForbiddenError(DELETE_FORBIDDEN)
    _remove(db, poi, "delete_owned_poi")
