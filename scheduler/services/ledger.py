"""Booking, cancellation and rescheduling of appointments against slots.

Every mutating operation runs as one transaction on the injected session:
it either commits fully or is rolled back and reported as an error. Slot
availability is re-checked at write time with a conditional update, and the
``uq_appointments_confirmed_provider_start`` index rejects a second live
appointment for the same provider and start even if that check is bypassed.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.core.errors import (
    AppointmentNotFound,
    ProviderNotFound,
    SchedulingError,
    SlotUnavailable,
    StoreError,
    ValidationError,
)
from scheduler.models.appointment import APPOINTMENT_CANCELLED, APPOINTMENT_CONFIRMED, Appointment
from scheduler.models.provider import Provider
from scheduler.models.slot import SLOT_BOOKED, SLOT_OPEN, Slot

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def normalize_start(value: datetime | str | None) -> datetime:
    """Return ``value`` as a naive UTC datetime without microseconds.

    Strings are parsed as ISO-8601 (a trailing ``Z`` is accepted). Naive
    inputs are taken to already be in UTC.
    """
    if value is None:
        raise ValidationError('Start time is required.')

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith(('Z', 'z')):
            raw = raw[:-1] + '+00:00'
        try:
            value = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValidationError(f'Start time {value!r} is not a valid ISO-8601 timestamp.') from exc

    if not isinstance(value, datetime):
        raise ValidationError('Start time must be a datetime.')

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)

    return value.replace(microsecond=0)


class SchedulingLedger:
    def __init__(
        self,
        db: Session,
        require_slot: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.require_slot = require_slot
        self.clock = clock

    def book(self, provider_id: str, patient_name: str, start_time: datetime | str) -> Appointment:
        patient_name = (patient_name or '').strip()
        if not patient_name:
            raise ValidationError('Patient name is required.')
        start = normalize_start(start_time)

        self.get_provider(provider_id)

        slot = self._find_slot(provider_id, start)
        self._check_available(slot, provider_id, start)

        now = self.clock()
        appointment = Appointment(
            provider_id=provider_id,
            patient_name=patient_name,
            start=start,
            status=APPOINTMENT_CONFIRMED,
            created_at=now,
            updated_at=now,
        )

        with self._transaction('book'):
            if slot is not None:
                self._claim_slot(slot)
            self.db.add(appointment)
            self.db.flush()

        self.db.refresh(appointment)
        logger.info('Booked appointment %s with provider %s at %s', appointment.id, provider_id, start.isoformat())
        return appointment

    def cancel(self, appointment_id: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)

        # Already cancelled: the slot was released by the first cancel and may
        # have been booked again since, so it is left alone.
        if appointment.status == APPOINTMENT_CANCELLED:
            logger.info('Appointment %s is already cancelled', appointment_id)
            return appointment

        with self._transaction('cancel'):
            appointment.status = APPOINTMENT_CANCELLED
            appointment.updated_at = self.clock()
            self._release_slot(appointment.provider_id, appointment.start)
            self.db.flush()

        self.db.refresh(appointment)
        logger.info('Cancelled appointment %s', appointment_id)
        return appointment

    def reschedule(self, appointment_id: str, new_start_time: datetime | str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        new_start = normalize_start(new_start_time)
        was_confirmed = appointment.status == APPOINTMENT_CONFIRMED

        if was_confirmed and appointment.start == new_start:
            return appointment

        target = self._find_slot(appointment.provider_id, new_start)
        self._check_available(target, appointment.provider_id, new_start)

        old_start = appointment.start
        with self._transaction('reschedule'):
            if was_confirmed:
                self._release_slot(appointment.provider_id, old_start)
            if target is not None:
                self._claim_slot(target)
            appointment.start = new_start
            appointment.status = APPOINTMENT_CONFIRMED
            appointment.updated_at = self.clock()
            self.db.flush()

        self.db.refresh(appointment)
        logger.info(
            'Rescheduled appointment %s from %s to %s',
            appointment_id,
            old_start.isoformat(),
            new_start.isoformat(),
        )
        return appointment

    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.db.get(Appointment, appointment_id) if appointment_id else None
        if appointment is None:
            raise AppointmentNotFound(f'Appointment {appointment_id!r} not found.')
        return appointment

    def list_appointments(self) -> list[Appointment]:
        return self.db.query(Appointment).order_by(Appointment.start.desc()).all()

    def active_appointments(self, limit: int = 5) -> list[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.status == APPOINTMENT_CONFIRMED,
        ).order_by(Appointment.start.desc()).limit(limit).all()

    def list_providers(self) -> list[Provider]:
        return self.db.query(Provider).order_by(Provider.rating.desc(), Provider.id.asc()).all()

    def search_providers(self, query: str) -> list[Provider]:
        query = (query or '').strip().lower()
        if not query:
            return []

        pattern = f'%{query}%'
        return self.db.query(Provider).filter(
            or_(
                func.lower(Provider.doctor).like(pattern),
                func.lower(Provider.specialty).like(pattern),
                func.lower(Provider.location).like(pattern),
            )
        ).order_by(Provider.rating.desc(), Provider.id.asc()).all()

    def get_provider(self, provider_id: str) -> Provider:
        provider = self.db.get(Provider, provider_id) if provider_id else None
        if provider is None:
            raise ProviderNotFound(f'Provider {provider_id!r} not found.')
        return provider

    def provider_slots(self, provider_id: str) -> list[Slot]:
        self.get_provider(provider_id)
        return self.db.query(Slot).filter(
            Slot.provider_id == provider_id,
            Slot.status == SLOT_OPEN,
        ).order_by(Slot.start.asc()).all()

    def upcoming_open_slots(self, provider_id: str | None = None, limit: int = 5) -> list[Slot]:
        query = self.db.query(Slot).filter(
            Slot.status == SLOT_OPEN,
            Slot.start > self.clock(),
        )
        if provider_id is not None:
            query = query.filter(Slot.provider_id == provider_id)
        return query.order_by(Slot.start.asc()).limit(limit).all()

    def _find_slot(self, provider_id: str, start: datetime) -> Slot | None:
        return self.db.query(Slot).filter(
            Slot.provider_id == provider_id,
            Slot.start == start,
        ).first()

    def _check_available(self, slot: Slot | None, provider_id: str, start: datetime) -> None:
        if slot is None:
            if self.require_slot:
                logger.warning('No published slot for provider %s at %s', provider_id, start.isoformat())
                raise SlotUnavailable('No published slot at this time.')
            return

        if slot.status != SLOT_OPEN:
            logger.warning('Slot %s for provider %s is %s', slot.id, provider_id, slot.status)
            raise SlotUnavailable()

    def _claim_slot(self, slot: Slot) -> None:
        # Guarded by status so a writer that lost the race affects no rows.
        result = self.db.execute(
            update(Slot)
            .where(Slot.id == slot.id, Slot.status == SLOT_OPEN)
            .values(status=SLOT_BOOKED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning('Slot %s was booked concurrently', slot.id)
            raise SlotUnavailable()

    def _release_slot(self, provider_id: str, start: datetime) -> None:
        self.db.execute(
            update(Slot)
            .where(Slot.provider_id == provider_id, Slot.start == start)
            .values(status=SLOT_OPEN)
            .execution_options(synchronize_session=False)
        )

    @contextmanager
    def _transaction(self, operation: str):
        try:
            yield
            self.db.commit()
        except SchedulingError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning('%s conflicted with a live appointment', operation)
            raise SlotUnavailable() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('%s failed and was rolled back', operation)
            raise StoreError() from exc
