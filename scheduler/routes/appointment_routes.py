from fastapi import APIRouter, Depends, status

from scheduler.core.errors import SchedulingError
from scheduler.dependencies import as_http_error, ensure_database_ready, get_ledger
from scheduler.schemas import (
    AppointmentResponse,
    CancelResponse,
    CreateAppointmentRequest,
    RescheduleAppointmentRequest,
    to_appointment_response,
)
from scheduler.services.ledger import SchedulingLedger

router = APIRouter(tags=['appointments'])


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(ledger: SchedulingLedger = Depends(get_ledger)):
    ensure_database_ready()

    try:
        appointments = ledger.list_appointments()
    except SchedulingError as exc:
        raise as_http_error(exc) from exc

    return [to_appointment_response(appointment) for appointment in appointments]


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, ledger: SchedulingLedger = Depends(get_ledger)):
    ensure_database_ready()

    try:
        appointment = ledger.book(data.provider_id, data.patient_name, data.start)
    except SchedulingError as exc:
        raise as_http_error(exc) from exc

    return to_appointment_response(appointment)


@router.patch('/{appointment_id}/cancel', response_model=CancelResponse)
def cancel_appointment(appointment_id: str, ledger: SchedulingLedger = Depends(get_ledger)):
    ensure_database_ready()

    try:
        ledger.cancel(appointment_id)
    except SchedulingError as exc:
        raise as_http_error(exc) from exc

    return CancelResponse(ok=True)


@router.patch('/{appointment_id}/reschedule', response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: str,
    data: RescheduleAppointmentRequest,
    ledger: SchedulingLedger = Depends(get_ledger),
):
    ensure_database_ready()

    try:
        appointment = ledger.reschedule(appointment_id, data.start)
    except SchedulingError as exc:
        raise as_http_error(exc) from exc

    return to_appointment_response(appointment)


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: str, ledger: SchedulingLedger = Depends(get_ledger)):
    ensure_database_ready()

    try:
        appointment = ledger.get_appointment(appointment_id)
    except SchedulingError as exc:
        raise as_http_error(exc) from exc

    return to_appointment_response(appointment)
