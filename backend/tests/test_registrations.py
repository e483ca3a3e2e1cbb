"""
Tests for registration and cancellation, through the API and the service.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from event_manager.core.exceptions import (
    DuplicateRegistrationError,
    EventFullError,
    EventInPastError,
    EventNotFoundError,
    InternalError,
    RegistrationNotFoundError,
    UserNotFoundError,
)
from event_manager.models import Registration
from event_manager.services import registration_service
from event_manager.services.registration_service import cancel_registration, register_for_event


async def _count(database, event_id: int) -> int:
    async with database.session() as session:
        return await session.scalar(
            select(func.count(Registration.id)).where(Registration.event_id == event_id)
        )


async def _register(client: AsyncClient, event_id: int, user_id: int):
    return await client.post("/api/events/register", json={"eventId": event_id, "userId": user_id})


async def _cancel(client: AsyncClient, event_id: int, user_id: int):
    return await client.post(
        "/api/events/cancel-registration", json={"eventId": event_id, "userId": user_id}
    )


@pytest.mark.asyncio
async def test_register(client: AsyncClient, test_event, test_user):
    response = await _register(client, test_event.id, test_user.id)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Successfully registered for the event"
    assert body["data"]["eventId"] == test_event.id
    assert body["data"]["userId"] == test_user.id
    assert isinstance(body["data"]["registrationId"], int)
    assert body["data"]["registeredAt"]


@pytest.mark.asyncio
async def test_register_duplicate(client: AsyncClient, database, test_event, test_user):
    """Second attempt is a 409 and the count grows by exactly one."""
    first = await _register(client, test_event.id, test_user.id)
    assert first.status_code == 201

    second = await _register(client, test_event.id, test_user.id)
    assert second.status_code == 409
    assert second.json() == {"success": False, "message": "User already registered for this event"}

    assert await _count(database, test_event.id) == 1


@pytest.mark.asyncio
async def test_register_past_event(client: AsyncClient, database, past_event, test_user):
    response = await _register(client, past_event.id, test_user.id)
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot register for past events"
    assert await _count(database, past_event.id) == 0


@pytest.mark.asyncio
async def test_register_full_event(client: AsyncClient, database, make_event, make_user):
    event = await make_event(capacity=1)
    first, second = await make_user(), await make_user()

    assert (await _register(client, event.id, first.id)).status_code == 201
    response = await _register(client, event.id, second.id)
    assert response.status_code == 400
    assert response.json()["message"] == "Event is at full capacity"
    assert await _count(database, event.id) == 1


@pytest.mark.asyncio
async def test_register_unknown_event(client: AsyncClient, test_user):
    response = await _register(client, 99999, test_user.id)
    assert response.status_code == 404
    assert response.json()["message"] == "Event not found"


@pytest.mark.asyncio
async def test_register_unknown_user(client: AsyncClient, test_event):
    response = await _register(client, test_event.id, 99999)
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_register_missing_ids(client: AsyncClient):
    response = await client.post("/api/events/register", json={"eventId": 1})
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields: userId"


@pytest.mark.asyncio
async def test_register_store_failure_is_internal_error(
    client: AsyncClient, database, test_event, test_user, monkeypatch
):
    """Store faults roll back and surface as 500 with a diagnostic field."""

    async def broken_count(db, event_id):
        raise SQLAlchemyError("connection reset")

    monkeypatch.setattr(registration_service, "_count_registrations", broken_count)

    response = await _register(client, test_event.id, test_user.id)
    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Internal server error"
    assert "connection reset" in body["error"]
    assert await _count(database, test_event.id) == 0


@pytest.mark.asyncio
async def test_cancel_registration(client: AsyncClient, database, test_event, test_user):
    await _register(client, test_event.id, test_user.id)

    response = await _cancel(client, test_event.id, test_user.id)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Registration cancelled successfully"}
    assert await _count(database, test_event.id) == 0


@pytest.mark.asyncio
async def test_cancel_nonexistent_registration(client: AsyncClient, test_event, test_user):
    response = await _cancel(client, test_event.id, test_user.id)
    assert response.status_code == 404
    assert response.json()["message"] == "User is not registered for this event"


@pytest.mark.asyncio
async def test_cancel_twice(client: AsyncClient, test_event, test_user):
    """Cancellation is not idempotent: the second call reports absence."""
    await _register(client, test_event.id, test_user.id)

    assert (await _cancel(client, test_event.id, test_user.id)).status_code == 200
    assert (await _cancel(client, test_event.id, test_user.id)).status_code == 404


@pytest.mark.asyncio
async def test_launch_scenario(client: AsyncClient, make_user):
    """Capacity 2: A and B fit, C is turned away until A cancels."""
    created = await client.post(
        "/api/events",
        json={
            "title": "Launch",
            "dateTime": (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat(),
            "location": "HQ",
            "capacity": 2,
        },
    )
    assert created.status_code == 201
    event_id = created.json()["data"]["id"]
    a, b, c = await make_user(), await make_user(), await make_user()

    assert (await _register(client, event_id, a.id)).status_code == 201
    assert (await _register(client, event_id, b.id)).status_code == 201
    full = await _register(client, event_id, c.id)
    assert full.status_code == 400
    assert full.json()["message"] == "Event is at full capacity"

    assert (await _cancel(client, event_id, a.id)).status_code == 200
    assert (await _register(client, event_id, c.id)).status_code == 201

    stats = (await client.get(f"/api/events/{event_id}/stats")).json()["data"]
    assert stats["totalRegistrations"] == 2
    assert stats["remainingCapacity"] == 0


# --- service layer -----------------------------------------------------------

@pytest.mark.asyncio
async def test_service_raises_typed_errors(database, make_event, make_user):
    user = await make_user()
    past = await make_event(starts_in=timedelta(minutes=-1))
    full = await make_event(capacity=1)
    other = await make_user()

    async with database.session() as session:
        with pytest.raises(EventNotFoundError):
            await register_for_event(session, 424242, user.id)
        with pytest.raises(UserNotFoundError):
            await register_for_event(session, full.id, 424242)
        with pytest.raises(EventInPastError):
            await register_for_event(session, past.id, user.id)

        await register_for_event(session, full.id, user.id)
        with pytest.raises(DuplicateRegistrationError):
            await register_for_event(session, full.id, user.id)
        with pytest.raises(EventFullError):
            await register_for_event(session, full.id, other.id)

        with pytest.raises(RegistrationNotFoundError):
            await cancel_registration(session, full.id, other.id)


@pytest.mark.asyncio
async def test_service_session_usable_after_rejection(database, make_event, make_user):
    """A rejected attempt rolls back cleanly; the same session keeps working."""
    event = await make_event(capacity=1)
    first, second = await make_user(), await make_user()

    async with database.session() as session:
        await register_for_event(session, event.id, first.id)
        with pytest.raises(EventFullError):
            await register_for_event(session, event.id, second.id)
        await cancel_registration(session, event.id, first.id)
        registration = await register_for_event(session, event.id, second.id)

    assert registration.user_id == second.id
    assert await _count(database, event.id) == 1


@pytest.mark.asyncio
async def test_user_deleted_mid_transaction_is_user_not_found(
    database, test_event, test_user, monkeypatch
):
    """A user removed between the lookup and the insert is reported as missing, not duplicate."""

    async def user_vanishes(db, event_id, user_id):
        await db.execute(text("DELETE FROM users WHERE id = :id"), {"id": user_id})
        return False

    monkeypatch.setattr(registration_service, "_registration_exists", user_vanishes)

    async with database.session() as session:
        with pytest.raises(UserNotFoundError):
            await register_for_event(session, test_event.id, test_user.id)

    assert await _count(database, test_event.id) == 0


@pytest.mark.parametrize(
    "driver_message,expected",
    [
        ("UNIQUE constraint failed: event_registrations.event_id, event_registrations.user_id",
         DuplicateRegistrationError),
        ('duplicate key value violates unique constraint "uq_event_registration_event_user"',
         DuplicateRegistrationError),
        ("FOREIGN KEY constraint failed", UserNotFoundError),
        ('insert or update on table "event_registrations" violates foreign key constraint',
         UserNotFoundError),
        ("NOT NULL constraint failed: event_registrations.registered_at", InternalError),
    ],
)
def test_insert_integrity_errors_map_to_broken_rule(driver_message, expected):
    error = IntegrityError("INSERT INTO event_registrations ...", {}, Exception(driver_message))
    assert isinstance(registration_service._integrity_error(error), expected)
