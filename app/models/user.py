"""ORM model for administrators (auth, roles and city ownership)."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.core.access_policy import Role
from app.models.base import Base


class User(Base):
    """
    Administrator account for JWT authentication and role-scoped access.

    role: 'SUPER_ADMIN' or 'ADMIN'. token_version is bumped on password change
    and logout so refresh tokens issued before are rejected.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    firstname = Column(String(255), nullable=False, default="")
    lastname = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.ADMIN.value)
    profile_picture_url = Column(String(1024), nullable=True)
    token_version = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    cities = relationship("City", back_populates="admin", order_by="City.id")
