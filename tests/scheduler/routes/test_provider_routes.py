import pytest
from fastapi import HTTPException

from scheduler.core import config
from scheduler.routes.provider_routes import list_provider_slots, list_providers, search_providers


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('scheduler.routes.provider_routes.ensure_database_ready', lambda: None)


def test_list_providers_orders_by_rating_with_upcoming_slots(ledger) -> None:
    providers = list_providers(ledger=ledger)

    assert [provider.id for provider in providers] == ['p3', 'p1', 'p2']
    by_id = {provider.id: provider for provider in providers}
    assert [slot.id for slot in by_id['p1'].slots] == ['s1000', 's1300', 's1530']
    assert by_id['p3'].slots == []


def test_list_providers_caps_upcoming_slots(ledger, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'UPCOMING_SLOT_LIMIT', 1)

    providers = {provider.id: provider for provider in list_providers(ledger=ledger)}

    assert [slot.id for slot in providers['p1'].slots] == ['s1000']


def test_list_providers_hides_booked_slots(ledger) -> None:
    ledger.book('p1', 'Jane Doe', '2025-01-10T10:00:00Z')

    providers = {provider.id: provider for provider in list_providers(ledger=ledger)}

    assert [slot.id for slot in providers['p1'].slots] == ['s1300', 's1530']


def test_search_providers_matches_doctor_specialty_or_location(ledger) -> None:
    assert [provider.id for provider in search_providers(q='nguyen', ledger=ledger)] == ['p3']
    assert [provider.id for provider in search_providers(q='Dallas', ledger=ledger)] == ['p1']
    assert search_providers(q='', ledger=ledger) == []


def test_list_provider_slots_serializes_utc_instants(ledger) -> None:
    slots = list_provider_slots(provider_id='p2', ledger=ledger)

    assert [slot.model_dump(by_alias=True, mode='json') for slot in slots] == [
        {'id': 't1000', 'providerId': 'p2', 'start': '2025-01-10T10:00:00Z', 'status': 'open'},
    ]


def test_list_provider_slots_unknown_provider_returns_404(ledger) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_provider_slots(provider_id='p404', ledger=ledger)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == "Provider 'p404' not found."


def test_list_provider_slots_omits_booked_slots(ledger) -> None:
    ledger.book('p1', 'Jane Doe', '2025-01-10T10:00:00Z')

    slots = list_provider_slots(provider_id='p1', ledger=ledger)

    assert [slot.id for slot in slots] == ['s0800', 's1300', 's1530']
    assert {slot.status for slot in slots} == {'open'}
