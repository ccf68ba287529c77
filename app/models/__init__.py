"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.city import City
from app.models.login_attempt import LoginAttempt
from app.models.poi import POI
from app.models.user import User

__all__ = ["Base", "City", "LoginAttempt", "POI", "User"]
