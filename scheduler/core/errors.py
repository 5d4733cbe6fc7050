"""Errors raised by the scheduling ledger.

Each error carries the HTTP status the API layer reports it with, so route
handlers can translate any of them into an ``HTTPException`` uniformly.
"""

from fastapi import status


class SchedulingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Scheduling request failed.'

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SchedulingError):
    """Malformed or missing input."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid request.'


class ProviderNotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Provider not found.'


class AppointmentNotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Appointment not found.'


class SlotUnavailable(SchedulingError):
    """The requested time is taken or was never published as bookable."""
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Slot not open.'


class StoreError(SchedulingError):
    """The database transaction failed and was rolled back."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Database error. The request was not applied.'
