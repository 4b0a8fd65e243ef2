from uuid import uuid4

import pytest

from campus_events.registrations.features.cancel_registration.router import (
    get_cancel_write_model,
)
from campus_events.registrations.tests.inmemory_models import (
    InMemoryRegistrationModel,
    make_event,
)
from campus_events.registrations.urls import REGISTRATION_URL


@pytest.mark.asyncio
async def test_cancel_registration(client_factory):
    event = make_event()
    subject_id = uuid4()
    write_model = InMemoryRegistrationModel(events=[event])
    await write_model.register(event.id, subject_id)
    overrides = {get_cancel_write_model: lambda: write_model}

    async with client_factory(overrides) as client:
        response = await client.delete(
            url=REGISTRATION_URL.format(event_id=event.id, subject_id=subject_id)
        )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Registration cancelled successfully"
    assert data["registration"]["status"] == "cancelled"


@pytest.mark.asyncio
async def test_cancel_missing_registration_returns_404(client_factory):
    write_model = InMemoryRegistrationModel(events=[make_event()])
    overrides = {get_cancel_write_model: lambda: write_model}

    async with client_factory(overrides) as client:
        response = await client.delete(
            url=REGISTRATION_URL.format(event_id=uuid4(), subject_id=uuid4())
        )

    assert response.status_code == 404
    assert response.json()["detail"] == "Registration not found"


@pytest.mark.asyncio
async def test_cancel_twice_returns_409(client_factory):
    event = make_event()
    subject_id = uuid4()
    write_model = InMemoryRegistrationModel(events=[event])
    await write_model.register(event.id, subject_id)
    overrides = {get_cancel_write_model: lambda: write_model}
    url = REGISTRATION_URL.format(event_id=event.id, subject_id=subject_id)

    async with client_factory(overrides) as client:
        first = await client.delete(url=url)
        second = await client.delete(url=url)

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["detail"] == "Registration already cancelled"
