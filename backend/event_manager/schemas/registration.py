"""
Pydantic schemas for registration requests and responses.
"""

from datetime import datetime

from pydantic import Field, field_validator

from event_manager.core.clock import as_utc
from event_manager.schemas.common import CamelModel


class RegistrationRequest(CamelModel):
    event_id: int = Field(..., gt=0)
    user_id: int = Field(..., gt=0)


class RegistrationResponse(CamelModel):
    registration_id: int
    event_id: int
    user_id: int
    registered_at: datetime

    @field_validator("registered_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def from_registration(cls, registration) -> "RegistrationResponse":
        return cls(
            registration_id=registration.id,
            event_id=registration.event_id,
            user_id=registration.user_id,
            registered_at=registration.registered_at,
        )
