"""
Typed error taxonomy raised by the service layer.

Every error carries the HTTP status it maps to and a human-readable message.
Services raise these directly; the exception handlers registered in
``event_manager.main`` translate them into the JSON envelope exactly once,
at the API boundary.

    NotFoundError        404  event / user / registration
    ConflictError        409  duplicate registration, email in use
    InvalidStateError    400  event in the past, event full
    InvalidInputError    400  missing field, invalid capacity, invalid date
    InternalError        500  store / connectivity failure
"""

from typing import Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__.removesuffix("Error")


# --- 404 ---------------------------------------------------------------------

class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class EventNotFoundError(NotFoundError):
    default_message = "Event not found"


class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class RegistrationNotFoundError(NotFoundError):
    default_message = "User is not registered for this event"


# --- 409 ---------------------------------------------------------------------

class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class DuplicateRegistrationError(ConflictError):
    default_message = "User already registered for this event"


class EmailAlreadyRegisteredError(ConflictError):
    default_message = "Email already registered"


# --- 400 (state) -------------------------------------------------------------

class InvalidStateError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid state"


class EventInPastError(InvalidStateError):
    default_message = "Cannot register for past events"


class EventFullError(InvalidStateError):
    default_message = "Event is at full capacity"


# --- 400 (input) -------------------------------------------------------------

class InvalidInputError(AppError, ValueError):
    """Bad request input.

    Also a ``ValueError`` so pydantic field validators can raise it and the
    instance survives into ``RequestValidationError.errors()[i]["ctx"]["error"]``.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class MissingFieldError(InvalidInputError):
    default_message = "Required field is missing"

    def __init__(self, *fields: str):
        self.fields = fields
        message = None
        if fields:
            message = f"Missing required fields: {', '.join(fields)}"
        super().__init__(message)


class InvalidCapacityError(InvalidInputError):
    default_message = "Capacity must be a positive number"


class InvalidDateError(InvalidInputError):
    default_message = "Invalid date format. Use ISO format (e.g., 2025-12-31T18:00:00Z)"


# --- 500 ---------------------------------------------------------------------

class InternalError(AppError):
    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail
