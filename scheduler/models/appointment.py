"""Appointment model definitions."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import relationship
from scheduler.database import Base

APPOINTMENT_CONFIRMED = "confirmed"
APPOINTMENT_CANCELLED = "cancelled"


def new_appointment_id() -> str:
    return uuid.uuid4().hex[:10]


class Appointment(Base):
    """Represents a patient's booking with a provider."""
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one live appointment per provider and start time.
        Index(
            "uq_appointments_confirmed_provider_start",
            "provider_id",
            "start",
            unique=True,
            sqlite_where=text("status = 'confirmed'"),
            postgresql_where=text("status = 'confirmed'"),
        ),
    )

    id = Column(String, primary_key=True, default=new_appointment_id)
    provider_id = Column(String, ForeignKey("providers.id"), nullable=False)
    patient_name = Column(String, nullable=False)
    start = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=APPOINTMENT_CONFIRMED)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    provider = relationship("Provider", lazy="joined")
