"""
Event service handling CRUD operations and listings.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from event_manager.core.clock import utc_now
from event_manager.core.exceptions import EventNotFoundError
from event_manager.core.logging import get_logger
from event_manager.models.event import Event
from event_manager.models.registration import Registration
from event_manager.models.user import User
from event_manager.schemas.event import (
    EventCreate,
    EventDetailResponse,
    EventResponse,
    EventUpdate,
    RegisteredUser,
)

logger = get_logger(__name__)


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create a new event. Past dates are accepted; registration rejects them."""
    event = Event(
        title=event_data.title,
        date_time=event_data.date_time,
        location=event_data.location,
        capacity=event_data.capacity,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)

    logger.info("event_created", event_id=event.id, title=event.title, capacity=event.capacity)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    event = await db.get(Event, event_id)
    if event is None:
        raise EventNotFoundError()
    return event


async def get_event_details(db: AsyncSession, event_id: int) -> EventDetailResponse:
    """Event plus the users registered for it, in registration order."""
    event = await get_event(db, event_id)

    result = await db.execute(
        select(User.id, User.name, User.email, Registration.registered_at)
        .join(Registration, Registration.user_id == User.id)
        .where(Registration.event_id == event_id)
        .order_by(Registration.registered_at.asc(), Registration.id.asc())
    )
    registered = [
        RegisteredUser(id=row.id, name=row.name, email=row.email, registered_at=row.registered_at)
        for row in result
    ]

    details = EventResponse.model_validate(event).model_dump()
    return EventDetailResponse(**details, registered_users=registered)


async def list_events(db: AsyncSession) -> list[Event]:
    """All events, soonest first."""
    result = await db.execute(select(Event).order_by(Event.date_time.asc(), Event.id.asc()))
    return list(result.scalars().all())


async def list_upcoming_events(db: AsyncSession) -> list[Event]:
    """
    Events strictly in the future, ordered by date then location.
    Uses the ix_events_date_time_location index for both filter and sort.
    """
    result = await db.execute(
        select(Event)
        .where(Event.date_time > utc_now())
        .order_by(Event.date_time.asc(), Event.location.asc())
    )
    return list(result.scalars().all())


async def update_event(db: AsyncSession, event_id: int, event_data: EventUpdate) -> Event:
    """Replace title, dateTime, location and capacity of an existing event."""
    event = await get_event(db, event_id)

    event.title = event_data.title
    event.date_time = event_data.date_time
    event.location = event_data.location
    event.capacity = event_data.capacity
    await db.commit()
    await db.refresh(event)

    logger.info("event_updated", event_id=event.id, capacity=event.capacity)
    return event


async def delete_event(db: AsyncSession, event_id: int) -> None:
    """Delete an event; its registrations are removed with it."""
    event = await get_event(db, event_id)
    await db.delete(event)
    await db.commit()

    logger.info("event_deleted", event_id=event_id)
