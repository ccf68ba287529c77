"""ORM model for points of interest."""

from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base


class POI(Base):
    """Point of interest; belongs to exactly one city for its whole life."""

    __tablename__ = "pois"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    icon_url = Column(String(2048), nullable=False, default="")
    model_url = Column(String(2048), nullable=False, default="")
    city_id = Column(
        Integer,
        ForeignKey("cities.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    city = relationship("City", back_populates="pois")
