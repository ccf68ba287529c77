"""ORM model for cities (geofence center + radius, optionally owned by an admin)."""

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


class City(Base):
    """City with a circular geofence. admin_id is the owning ADMIN, if any."""

    __tablename__ = "cities"
    __table_args__ = (CheckConstraint("radius > 0", name="ck_cities_radius_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    radius = Column(Float, nullable=False)
    admin_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    admin = relationship("User", back_populates="cities")
    pois = relationship("POI", back_populates="city", order_by="POI.id")
