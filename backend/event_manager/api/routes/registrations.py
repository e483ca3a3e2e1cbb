"""
Registration endpoints. Both live under /events to keep the public paths
/api/events/register and /api/events/cancel-registration.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_manager.api.deps import get_db
from event_manager.schemas.common import ApiResponse
from event_manager.schemas.registration import RegistrationRequest, RegistrationResponse
from event_manager.services.registration_service import cancel_registration, register_for_event

router = APIRouter(prefix="/events", tags=["Registrations"])


@router.post(
    "/register",
    response_model=ApiResponse[RegistrationResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register_endpoint(payload: RegistrationRequest, db: AsyncSession = Depends(get_db)):
    """
    Register a user for an event.

    Runs as one transaction holding a row lock on the event, so concurrent
    requests for the last slot cannot both succeed. 404 for unknown
    user/event, 400 for past or full events, 409 for duplicates.
    """
    registration = await register_for_event(db, payload.event_id, payload.user_id)
    return ApiResponse(
        message="Successfully registered for the event",
        data=RegistrationResponse.from_registration(registration),
    )


@router.post(
    "/cancel-registration",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
)
async def cancel_registration_endpoint(
    payload: RegistrationRequest,
    db: AsyncSession = Depends(get_db),
):
    await cancel_registration(db, payload.event_id, payload.user_id)
    return ApiResponse(message="Registration cancelled successfully")
