"""City management. Global operations (SUPER_ADMIN) and owner-scoped operations are separate functions."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, selectinload

from app.core.database import transaction
from app.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.models import POI, City, User
from app.schemas.city import CityCreate, CityUpdate

logger = logging.getLogger(__name__)

CITY_NOT_FOUND = "City not found"
ADMIN_NOT_FOUND = "Administrateur introuvable"
NOT_CITY_OWNER = "Vous n'avez pas l'autorisation de modifier cette ville"


def owned_cities_query(db: Session, owner_id: int) -> Query:
    """Cities whose owner is owner_id. Ownership is part of the query, never a post-filter."""
    return db.query(City).filter(City.admin_id == owner_id)


def _get_city(db: Session, city_id: int) -> City:
    city = db.query(City).filter(City.id == city_id).first()
    if city is None:
        raise NotFoundError(CITY_NOT_FOUND)
    return city


def _ensure_admin_exists(db: Session, admin_id: int) -> None:
    if db.query(User.id).filter(User.id == admin_id).first() is None:
        raise BadRequestError(ADMIN_NOT_FOUND)


def _apply_fields(city: City, data: CityUpdate) -> None:
    city.name = data.name
    city.latitude = data.latitude
    city.longitude = data.longitude
    city.radius = data.radius


def list_cities(db: Session) -> list[City]:
    """All cities with owner and POIs loaded."""
    return (
        db.query(City)
        .options(selectinload(City.admin), selectinload(City.pois))
        .order_by(City.id)
        .all()
    )


def get_city(db: Session, city_id: int) -> City:
    return _get_city(db, city_id)


def list_owned_cities(db: Session, owner_id: int) -> list[City]:
    return owned_cities_query(db, owner_id).order_by(City.id).all()


def create_city(db: Session, data: CityCreate) -> City:
    """Create a city, optionally bound to an existing admin."""
    if data.admin_id is not None:
        _ensure_admin_exists(db, data.admin_id)
    city = City(
        name=data.name,
        latitude=data.latitude,
        longitude=data.longitude,
        radius=data.radius,
        admin_id=data.admin_id,
    )
    with transaction(db, "create_city"):
        db.add(city)
    db.refresh(city)
    return city


def update_city(db: Session, city_id: int, data: CityUpdate) -> City:
    """Update name, coordinates and radius of any city."""
    city = _get_city(db, city_id)
    with transaction(db, "update_city"):
        _apply_fields(city, data)
    db.refresh(city)
    return city


def update_owned_city(db: Session, owner_id: int, city_id: int, data: CityUpdate) -> City:
    """
    Update a city owned by owner_id.

    A city that does not exist and a city owned by someone else are
    indistinguishable: both raise ForbiddenError.
    """
    city = owned_cities_query(db, owner_id).filter(City.id == city_id).first()
    if city is None:
        raise ForbiddenError(NOT_CITY_OWNER)
    with transaction(db, "update_owned_city"):
        _apply_fields(city, data)
    db.refresh(city)
    return city


def assign_city(db: Session, city_id: int, admin_id: int) -> City:
    city = _get_city(db, city_id)
    _ensure_admin_exists(db, admin_id)
    with transaction(db, "assign_city"):
        city.admin_id = admin_id
    db.refresh(city)
    logger.info("City assigned", extra={"city_id": city.id, "admin_id": admin_id})
    return city


def unassign_city(db: Session, city_id: int) -> City:
    city = _get_city(db, city_id)
    with transaction(db, "unassign_city"):
        city.admin_id = None
    db.refresh(city)
    logger.info("City unassigned", extra={"city_id": city.id})
    return city


def delete_city(db: Session, city_id: int) -> None:
    """Delete a city. Refused with ConflictError while it still has POIs."""
    city = _get_city(db, city_id)
    poi_count = db.query(POI.id).filter(POI.city_id == city.id).count()
    if poi_count > 0:
        raise ConflictError(
            f"Cannot delete a city that still has POIs ({poi_count}); delete them first"
        )
    with transaction(db, "delete_city"):
        db.delete(city)
        try:
            db.flush()
        except IntegrityError as e:
            raise ConflictError("Cannot delete a city that still has POIs") from e
    logger.info("City deleted", extra={"city_id": city_id})
