"""Slot model definitions."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from scheduler.database import Base

SLOT_OPEN = "open"
SLOT_BOOKED = "booked"


def new_slot_id() -> str:
    return uuid.uuid4().hex[:8]


class Slot(Base):
    """Represents a published, bookable start time for one provider."""
    __tablename__ = "slots"
    __table_args__ = (
        Index("uq_slots_provider_start", "provider_id", "start", unique=True),
        Index("idx_slots_status_start", "status", "start"),
    )

    id = Column(String, primary_key=True, default=new_slot_id)
    provider_id = Column(String, ForeignKey("providers.id"), nullable=False)
    start = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=SLOT_OPEN)
