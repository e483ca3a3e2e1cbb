"""
Pydantic schemas for event-related request/response validation.

Domain checks raise ``InvalidInputError`` subclasses, which pydantic treats as
``ValueError``; the request-validation handler turns them back into 400s with
their own message.
"""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from event_manager.core.clock import as_utc
from event_manager.core.exceptions import InvalidCapacityError, InvalidDateError
from event_manager.models.event import MAX_CAPACITY
from event_manager.schemas.common import CamelModel, require_text


def validate_capacity(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidCapacityError()
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        raise InvalidCapacityError() from None
    if isinstance(value, float) and value != capacity:
        raise InvalidCapacityError()
    if capacity <= 0:
        raise InvalidCapacityError()
    if capacity > MAX_CAPACITY:
        raise InvalidCapacityError(f"Capacity cannot exceed {MAX_CAPACITY}")
    return capacity


def parse_event_datetime(value: Any) -> datetime:
    """Accept ISO-8601 strings or datetimes; always return aware UTC."""
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str):
        raise InvalidDateError()
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise InvalidDateError() from None
    return as_utc(parsed)


class EventCreate(CamelModel):
    title: str = Field(..., max_length=255)
    date_time: datetime
    location: str = Field(..., max_length=255)
    capacity: int

    @field_validator("title", "location", mode="before")
    @classmethod
    def _not_blank(cls, value: Any, info) -> str:
        if value is not None and not isinstance(value, str):
            value = str(value)
        return require_text(value, info.field_name)

    @field_validator("date_time", mode="before")
    @classmethod
    def _parse_date_time(cls, value: Any) -> datetime:
        return parse_event_datetime(value)

    @field_validator("capacity", mode="before")
    @classmethod
    def _check_capacity(cls, value: Any) -> int:
        return validate_capacity(value)


class EventUpdate(EventCreate):
    pass


class EventResponse(CamelModel):
    id: int
    title: str
    date_time: datetime
    location: str
    capacity: int

    @field_validator("date_time")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RegisteredUser(CamelModel):
    id: int
    name: str
    email: str
    registered_at: datetime

    @field_validator("registered_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventDetailResponse(EventResponse):
    registered_users: list[RegisteredUser] = []


class EventStatsResponse(CamelModel):
    event_id: int
    title: str
    capacity: int
    total_registrations: int
    remaining_capacity: int
    percentage_filled: float
