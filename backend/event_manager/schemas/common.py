"""
Shared schema pieces: camelCase aliasing and the response envelope.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from event_manager.core.exceptions import MissingFieldError

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """Every response body: ``{success, message?, count?, data?}``."""

    success: bool = True
    message: Optional[str] = None
    count: Optional[int] = None
    data: Optional[T] = None


def require_text(value: Optional[str], field: str) -> str:
    """Strip ``value`` and reject it when blank."""
    if value is None or not value.strip():
        raise MissingFieldError(field)
    return value.strip()
