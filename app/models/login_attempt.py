"""ORM model backing the shared login rate limiter."""

from sqlalchemy import Column, DateTime, Integer, String

from app.models.base import Base


class LoginAttempt(Base):
    """Attempt counter for one client key within the current window."""

    __tablename__ = "login_attempts"

    key = Column(String(255), primary_key=True)
    count = Column(Integer, nullable=False, default=0)
    reset_at = Column(DateTime(timezone=True), nullable=False, index=True)
