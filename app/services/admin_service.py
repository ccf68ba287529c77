"""Administrator management (SUPER_ADMIN only): CRUD, city ownership sets and statistics."""

import logging

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.access_policy import Role
from app.core.config import settings
from app.core.database import transaction
from app.core.errors import BadRequestError, EmailInUseError, NotFoundError
from app.core.security import hash_password
from app.models import City, User
from app.schemas.admin import AdminCreate, AdminStats, AdminUpdate
from app.services import storage

logger = logging.getLogger(__name__)

ADMIN_NOT_FOUND = "Administrateur introuvable"
EMAIL_TAKEN = "Un administrateur avec cet email existe déjà"
INVALID_CITIES = "Une ou plusieurs villes sélectionnées sont invalides"


def _get_admin(db: Session, admin_id: int) -> User:
    admin = (
        db.query(User)
        .options(selectinload(User.cities))
        .filter(User.id == admin_id)
        .first()
    )
    if admin is None:
        raise NotFoundError(ADMIN_NOT_FOUND)
    return admin


def _validate_city_ids(db: Session, city_ids: list[int] | None) -> None:
    if not city_ids:
        return
    unique_ids = set(city_ids)
    found = db.query(City.id).filter(City.id.in_(unique_ids)).count()
    if found != len(unique_ids):
        raise BadRequestError(INVALID_CITIES)


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _flush_user(db: Session) -> None:
    try:
        db.flush()
    except IntegrityError as e:
        raise EmailInUseError(EMAIL_TAKEN) from e


def _detach_cities(db: Session, admin_id: int) -> int:
    return (
        db.query(City)
        .filter(City.admin_id == admin_id)
        .update({City.admin_id: None}, synchronize_session="fetch")
    )


def _attach_cities(db: Session, admin_id: int, city_ids: list[int]) -> None:
    if city_ids:
        db.query(City).filter(City.id.in_(set(city_ids))).update(
            {City.admin_id: admin_id}, synchronize_session="fetch"
        )


def _store_picture(picture: UploadFile | None) -> str | None:
    if picture is None:
        return None
    storage.validate_image(picture, label="profile picture")
    return storage.save_upload(
        picture,
        storage.PROFILE_PICTURES_DIR,
        max_bytes=settings.MAX_PROFILE_PICTURE_BYTES,
        default_ext=".png",
    )


def list_admins(db: Session) -> list[User]:
    """All administrators, newest first, with their city summaries."""
    return db.query(User).options(selectinload(User.cities)).order_by(User.id.desc()).all()


def get_admin(db: Session, admin_id: int) -> User:
    return _get_admin(db, admin_id)


def create_admin(db: Session, data: AdminCreate, picture: UploadFile | None = None) -> User:
    """
    Create an administrator, optionally owning the given cities.

    Cities listed in city_ids are taken over from any previous owner. User
    insert and city attachment commit together.
    """
    if _email_taken(db, data.email):
        raise EmailInUseError(EMAIL_TAKEN)
    _validate_city_ids(db, data.city_ids)
    picture_url = _store_picture(picture)
    admin = User(
        firstname=data.firstname,
        lastname=data.lastname,
        email=data.email,
        password_hash=hash_password(data.password),
        role=data.role.value,
        profile_picture_url=picture_url,
    )
    try:
        with transaction(db, "create_admin"):
            db.add(admin)
            _flush_user(db)
            _attach_cities(db, admin.id, data.city_ids or [])
    except Exception:
        storage.delete_upload(picture_url)
        raise
    logger.info("Admin created", extra={"admin_id": admin.id, "role": admin.role})
    return _get_admin(db, admin.id)


def update_admin(
    db: Session,
    admin_id: int,
    data: AdminUpdate,
    picture: UploadFile | None = None,
) -> User:
    """
    Apply a partial update. city_ids, when present, replaces the owned set.

    Setting a new password revokes the admin's outstanding refresh tokens.
    """
    admin = _get_admin(db, admin_id)
    if data.email and data.email != admin.email and _email_taken(db, data.email, admin.id):
        raise EmailInUseError(EMAIL_TAKEN)
    _validate_city_ids(db, data.city_ids)
    picture_url = _store_picture(picture)
    previous_picture = admin.profile_picture_url
    try:
        with transaction(db, "update_admin"):
            for field in ("firstname", "lastname", "email"):
                value = getattr(data, field)
                if value:
                    setattr(admin, field, value)
            if data.role is not None:
                admin.role = data.role.value
            if data.password:
                admin.password_hash = hash_password(data.password)
                admin.token_version = (admin.token_version or 0) + 1
            if picture_url:
                admin.profile_picture_url = picture_url
            _flush_user(db)
            if data.city_ids is not None:
                _detach_cities(db, admin.id)
                _attach_cities(db, admin.id, data.city_ids)
    except Exception:
        storage.delete_upload(picture_url)
        raise
    if picture_url:
        storage.delete_upload(previous_picture)
    return _get_admin(db, admin_id)


def delete_admin(db: Session, admin_id: int) -> None:
    """
    Delete an administrator. Owned cities are detached (owner set to null), never deleted;
    their POIs stay in place. Detach and delete commit together.
    """
    admin = _get_admin(db, admin_id)
    picture_url = admin.profile_picture_url
    with transaction(db, "delete_admin"):
        detached = _detach_cities(db, admin.id)
        db.delete(admin)
    storage.delete_upload(picture_url)
    logger.info("Admin deleted", extra={"admin_id": admin_id, "cities_detached": detached})


def admin_stats(db: Session) -> AdminStats:
    total = db.query(User).count()
    super_admins = db.query(User).filter(User.role == Role.SUPER_ADMIN.value).count()
    regular_admins = db.query(User).filter(User.role == Role.ADMIN.value).count()
    with_cities = db.query(User.id).filter(User.cities.any()).count()
    return AdminStats(
        total=total,
        super_admins=super_admins,
        regular_admins=regular_admins,
        admins_with_cities=with_cities,
        admins_without_cities=total - with_cities,
    )
