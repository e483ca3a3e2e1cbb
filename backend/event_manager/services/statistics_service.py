"""
Capacity statistics for a single event.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from event_manager.core.exceptions import EventNotFoundError
from event_manager.models.event import Event
from event_manager.models.registration import Registration


@dataclass(frozen=True)
class EventStats:
    event_id: int
    title: str
    capacity: int
    total_registrations: int
    remaining_capacity: int
    percentage_filled: float


def percentage_filled(total: int, capacity: int) -> float:
    """total / capacity * 100, rounded half-up to two decimals."""
    ratio = Decimal(total) / Decimal(capacity) * 100
    return float(ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def compute_stats(event: Event, total: int) -> EventStats:
    return EventStats(
        event_id=event.id,
        title=event.title,
        capacity=event.capacity,
        total_registrations=total,
        # Never negative, even if rows predate a capacity reduction
        remaining_capacity=max(event.capacity - total, 0),
        percentage_filled=percentage_filled(total, event.capacity),
    )


async def get_event_stats(db: AsyncSession, event_id: int) -> EventStats:
    event = await db.get(Event, event_id)
    if event is None:
        raise EventNotFoundError()

    total = await db.scalar(
        select(func.count(Registration.id)).where(Registration.event_id == event_id)
    )
    return compute_stats(event, int(total or 0))
