"""
User CRUD endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_manager.api.deps import get_db
from event_manager.schemas.common import ApiResponse
from event_manager.schemas.user import UserCreate, UserResponse, UserUpdate
from event_manager.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_user_endpoint(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    user = await user_service.create_user(db, user_data)
    return ApiResponse(message="User created successfully", data=UserResponse.model_validate(user))


@router.get("", response_model=ApiResponse[list[UserResponse]], response_model_exclude_none=True)
async def list_users_endpoint(db: AsyncSession = Depends(get_db)):
    users = await user_service.list_users(db)
    return ApiResponse(count=len(users), data=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=ApiResponse[UserResponse], response_model_exclude_none=True)
async def get_user_endpoint(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, user_id)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse], response_model_exclude_none=True)
async def update_user_endpoint(
    user_id: int,
    user_data: UserUpdate,
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_user(db, user_id, user_data)
    return ApiResponse(message="User updated successfully", data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[None], response_model_exclude_none=True)
async def delete_user_endpoint(user_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a user along with their registrations."""
    await user_service.delete_user(db, user_id)
    return ApiResponse(message="User deleted successfully")
