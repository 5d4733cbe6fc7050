from fastapi import APIRouter, Depends, Query

from scheduler.core import config
from scheduler.core.errors import SchedulingError
from scheduler.dependencies import as_http_error, ensure_database_ready, get_ledger
from scheduler.schemas import ProviderResponse, SlotResponse, to_provider_response, to_slot_response
from scheduler.services.ledger import SchedulingLedger

router = APIRouter(tags=['providers'])


def with_upcoming_slots(ledger: SchedulingLedger, providers) -> list[ProviderResponse]:
    return [
        to_provider_response(
            provider,
            ledger.upcoming_open_slots(provider_id=provider.id, limit=config.UPCOMING_SLOT_LIMIT),
        )
        for provider in providers
    ]


@router.get('', response_model=list[ProviderResponse])
def list_providers(ledger: SchedulingLedger = Depends(get_ledger)):
    ensure_database_ready()

    try:
        return with_upcoming_slots(ledger, ledger.list_providers())
    except SchedulingError as exc:
        raise as_http_error(exc) from exc


@router.get('/search', response_model=list[ProviderResponse])
def search_providers(
    q: str = Query(default=''),
    ledger: SchedulingLedger = Depends(get_ledger),
):
    ensure_database_ready()

    try:
        return with_upcoming_slots(ledger, ledger.search_providers(q))
    except SchedulingError as exc:
        raise as_http_error(exc) from exc


@router.get('/{provider_id}/slots', response_model=list[SlotResponse])
def list_provider_slots(provider_id: str, ledger: SchedulingLedger = Depends(get_ledger)):
    ensure_database_ready()

    try:
        slots = ledger.provider_slots(provider_id)
    except SchedulingError as exc:
        raise as_http_error(exc) from exc

    return [to_slot_response(slot) for slot in slots]
