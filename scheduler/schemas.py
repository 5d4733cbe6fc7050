"""Request and response bodies shared by the API routes.

JSON uses camelCase keys; instants are emitted as UTC ISO-8601 with a ``Z``
suffix.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

from scheduler.models.appointment import Appointment
from scheduler.models.provider import Provider
from scheduler.models.slot import Slot


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class CreateAppointmentRequest(CamelModel):
    provider_id: str
    patient_name: str
    start: datetime

    @field_validator('provider_id')
    @classmethod
    def validate_provider_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Provider id is required.')
        return normalized

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Patient name is required.')
        return normalized


class RescheduleAppointmentRequest(CamelModel):
    start: datetime


class ChatRequest(CamelModel):
    message: str | None = None


class SlotResponse(CamelModel):
    id: str
    provider_id: str
    start: datetime
    status: str


class ProviderResponse(CamelModel):
    id: str
    doctor: str
    specialty: str | None = None
    location: str | None = None
    rating: float | None = None
    slots: list[SlotResponse] = []


class AppointmentResponse(CamelModel):
    id: str
    provider_id: str
    patient_name: str
    start: datetime
    status: str
    doctor: str | None = None
    location: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CancelResponse(CamelModel):
    ok: bool = True


def to_slot_response(slot: Slot) -> SlotResponse:
    return SlotResponse(
        id=slot.id,
        provider_id=slot.provider_id,
        start=as_utc(slot.start),
        status=slot.status,
    )


def to_provider_response(provider: Provider, slots: list[Slot] | None = None) -> ProviderResponse:
    return ProviderResponse(
        id=provider.id,
        doctor=provider.doctor,
        specialty=provider.specialty,
        location=provider.location,
        rating=provider.rating,
        slots=[to_slot_response(slot) for slot in slots or []],
    )


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    provider = appointment.provider
    return AppointmentResponse(
        id=appointment.id,
        provider_id=appointment.provider_id,
        patient_name=appointment.patient_name,
        start=as_utc(appointment.start),
        status=appointment.status,
        doctor=provider.doctor if provider else None,
        location=provider.location if provider else None,
        created_at=as_utc(appointment.created_at),
        updated_at=as_utc(appointment.updated_at),
    )
