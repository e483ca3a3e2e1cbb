from event_manager.schemas.common import ApiResponse
from event_manager.schemas.user import UserCreate, UserUpdate, UserResponse
from event_manager.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventDetailResponse,
    EventStatsResponse,
    RegisteredUser,
)
from event_manager.schemas.registration import RegistrationRequest, RegistrationResponse

__all__ = [
    "ApiResponse",
    "UserCreate", "UserUpdate", "UserResponse",
    "EventCreate", "EventUpdate", "EventResponse", "EventDetailResponse",
    "EventStatsResponse", "RegisteredUser",
    "RegistrationRequest", "RegistrationResponse",
]
