"""
Pydantic schemas for user-related request/response validation.
"""

from pydantic import EmailStr, Field, field_validator

from event_manager.schemas.common import CamelModel, require_text


class UserCreate(CamelModel):
    name: str = Field(..., max_length=255)
    email: EmailStr

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        return require_text(value, "name")


class UserUpdate(UserCreate):
    pass


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
