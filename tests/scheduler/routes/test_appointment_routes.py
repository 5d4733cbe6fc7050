from datetime import datetime, timezone

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from scheduler.routes.appointment_routes import (
    cancel_appointment,
    create_appointment,
    get_appointment,
    list_appointments,
    reschedule_appointment,
)
from scheduler.schemas import CreateAppointmentRequest, RescheduleAppointmentRequest


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('scheduler.routes.appointment_routes.ensure_database_ready', lambda: None)


def book_request(start: str = '2025-01-10T10:00:00Z', patient_name: str = 'Jane Doe') -> CreateAppointmentRequest:
    return CreateAppointmentRequest.model_validate(
        {'providerId': 'p1', 'patientName': patient_name, 'start': start}
    )


def test_create_appointment_request_accepts_camel_case_and_trims() -> None:
    request = CreateAppointmentRequest.model_validate(
        {'providerId': ' p1 ', 'patientName': '  Jane Doe ', 'start': '2025-01-10T10:00:00Z'}
    )

    assert request.provider_id == 'p1'
    assert request.patient_name == 'Jane Doe'
    assert request.start == datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    'payload',
    [
        {'providerId': 'p1', 'patientName': '   ', 'start': '2025-01-10T10:00:00Z'},
        {'providerId': 'p1', 'start': '2025-01-10T10:00:00Z'},
        {'providerId': 'p1', 'patientName': 'Jane Doe', 'start': 'not-a-time'},
    ],
)
def test_create_appointment_request_rejects_invalid_payloads(payload) -> None:
    with pytest.raises(ValidationError):
        CreateAppointmentRequest.model_validate(payload)


def test_create_appointment_returns_camel_case_appointment(ledger) -> None:
    response = create_appointment(data=book_request(), ledger=ledger)
    body = response.model_dump(by_alias=True, mode='json')

    assert body['providerId'] == 'p1'
    assert body['patientName'] == 'Jane Doe'
    assert body['start'] == '2025-01-10T10:00:00Z'
    assert body['status'] == 'confirmed'
    assert body['doctor'] == 'Dr. Amy Kim'
    assert body['location'] == 'Dallas'


def test_create_appointment_conflict_returns_409(ledger) -> None:
    create_appointment(data=book_request(), ledger=ledger)

    with pytest.raises(HTTPException) as exception_info:
        create_appointment(data=book_request(patient_name='John Roe'), ledger=ledger)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Slot not open.'


def test_create_appointment_unknown_provider_returns_404(ledger) -> None:
    request = CreateAppointmentRequest(provider_id='p404', patient_name='Jane Doe', start=datetime(2025, 1, 10, 10, 0))

    with pytest.raises(HTTPException) as exception_info:
        create_appointment(data=request, ledger=ledger)

    assert exception_info.value.status_code == 404


def test_cancel_appointment_returns_ok_and_reopens_slot(ledger) -> None:
    created = create_appointment(data=book_request(), ledger=ledger)

    response = cancel_appointment(appointment_id=created.id, ledger=ledger)

    assert response.ok is True
    assert get_appointment(appointment_id=created.id, ledger=ledger).status == 'cancelled'
    assert [slot.id for slot in ledger.upcoming_open_slots(provider_id='p1')] == ['s1000', 's1300', 's1530']


def test_cancel_appointment_returns_not_found_when_missing(ledger) -> None:
    with pytest.raises(HTTPException) as exception_info:
        cancel_appointment(appointment_id='nonexistent-id', ledger=ledger)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == "Appointment 'nonexistent-id' not found."


def test_reschedule_appointment_moves_start(ledger) -> None:
    created = create_appointment(data=book_request(), ledger=ledger)

    response = reschedule_appointment(
        appointment_id=created.id,
        data=RescheduleAppointmentRequest(start='2025-01-10T13:00:00Z'),
        ledger=ledger,
    )

    assert response.model_dump(by_alias=True, mode='json')['start'] == '2025-01-10T13:00:00Z'
    assert response.status == 'confirmed'


def test_reschedule_appointment_into_booked_slot_returns_409(ledger) -> None:
    first = create_appointment(data=book_request(), ledger=ledger)
    create_appointment(data=book_request(start='2025-01-10T13:00:00Z', patient_name='John Roe'), ledger=ledger)

    with pytest.raises(HTTPException) as exception_info:
        reschedule_appointment(
            appointment_id=first.id,
            data=RescheduleAppointmentRequest(start='2025-01-10T13:00:00Z'),
            ledger=ledger,
        )

    assert exception_info.value.status_code == 409


def test_list_appointments_includes_provider_fields(ledger) -> None:
    create_appointment(data=book_request(), ledger=ledger)

    appointments = list_appointments(ledger=ledger)

    assert len(appointments) == 1
    assert appointments[0].doctor == 'Dr. Amy Kim'
    assert appointments[0].location == 'Dallas'
