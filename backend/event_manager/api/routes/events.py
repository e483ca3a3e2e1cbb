"""
Event endpoints with Redis caching on the upcoming listing.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_manager.api.deps import get_cache, get_db
from event_manager.core.logging import get_logger
from event_manager.schemas.common import ApiResponse
from event_manager.schemas.event import (
    EventCreate,
    EventDetailResponse,
    EventResponse,
    EventStatsResponse,
    EventUpdate,
)
from event_manager.services import event_service
from event_manager.services.cache_service import EventCache
from event_manager.services.statistics_service import get_event_stats

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.post(
    "",
    response_model=ApiResponse[EventResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_event_endpoint(
    event_data: EventCreate,
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_cache),
):
    event = await event_service.create_event(db, event_data)
    await cache.invalidate()
    return ApiResponse(message="Event created successfully", data=EventResponse.model_validate(event))


@router.get("", response_model=ApiResponse[list[EventResponse]], response_model_exclude_none=True)
async def list_events_endpoint(db: AsyncSession = Depends(get_db)):
    events = await event_service.list_events(db)
    return ApiResponse(count=len(events), data=[EventResponse.model_validate(e) for e in events])


# Declared before /{event_id} so "upcoming" is not parsed as an id
@router.get(
    "/upcoming",
    response_model=ApiResponse[list[EventResponse]],
    response_model_exclude_none=True,
)
async def upcoming_events_endpoint(
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_cache),
):
    """
    Future events ordered by date, then location.
    Served from Redis when possible; cache is invalidated on any event change.
    """
    cached = await cache.get_upcoming()
    if cached is not None:
        logger.info("upcoming_events_cache_hit", count=len(cached))
        data = [EventResponse.model_validate(e) for e in cached]
        return ApiResponse(count=len(data), data=data)

    generation = await cache.generation()
    events = await event_service.list_upcoming_events(db)
    data = [EventResponse.model_validate(e) for e in events]
    await cache.set_upcoming([e.model_dump(mode="json", by_alias=True) for e in data], generation)
    return ApiResponse(count=len(data), data=data)


@router.get(
    "/{event_id}",
    response_model=ApiResponse[EventDetailResponse],
    response_model_exclude_none=True,
)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Event details including the users registered for it. Never cached."""
    details = await event_service.get_event_details(db, event_id)
    return ApiResponse(data=details)


@router.get(
    "/{event_id}/stats",
    response_model=ApiResponse[EventStatsResponse],
    response_model_exclude_none=True,
)
async def event_stats_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    stats = await get_event_stats(db, event_id)
    return ApiResponse(data=EventStatsResponse.model_validate(stats))


@router.put(
    "/{event_id}",
    response_model=ApiResponse[EventResponse],
    response_model_exclude_none=True,
)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_cache),
):
    event = await event_service.update_event(db, event_id, event_data)
    await cache.invalidate()
    return ApiResponse(message="Event updated successfully", data=EventResponse.model_validate(event))


@router.delete("/{event_id}", response_model=ApiResponse[None], response_model_exclude_none=True)
async def delete_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_cache),
):
    """Delete an event along with its registrations."""
    await event_service.delete_event(db, event_id)
    await cache.invalidate()
    return ApiResponse(message="Event deleted successfully")
