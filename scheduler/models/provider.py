"""Provider model definitions."""

from sqlalchemy import Column, Float, String
from scheduler.database import Base


class Provider(Base):
    """Represents a bookable doctor."""
    __tablename__ = "providers"

    id = Column(String, primary_key=True)
    doctor = Column(String, nullable=False)
    specialty = Column(String)
    location = Column(String)
    rating = Column(Float)
