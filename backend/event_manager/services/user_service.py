"""
User service handling CRUD operations.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from event_manager.core.exceptions import EmailAlreadyRegisteredError, UserNotFoundError
from event_manager.core.logging import get_logger
from event_manager.models.user import User
from event_manager.schemas.user import UserCreate, UserUpdate

logger = get_logger(__name__)


async def _ensure_email_free(db: AsyncSession, email: str, user_id: Optional[int] = None) -> None:
    query = select(User.id).where(User.email == email)
    if user_id is not None:
        query = query.where(User.id != user_id)
    if await db.scalar(query) is not None:
        logger.warning("user_email_conflict", email=email)
        raise EmailAlreadyRegisteredError()


async def _commit_user(db: AsyncSession, user: User) -> User:
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race on the unique email index
        await db.rollback()
        raise EmailAlreadyRegisteredError() from e
    await db.refresh(user)
    return user


async def create_user(db: AsyncSession, user_data: UserCreate) -> User:
    """Create a user. Raises 409 if the email is already in use."""
    await _ensure_email_free(db, user_data.email)

    user = User(name=user_data.name, email=user_data.email)
    db.add(user)
    user = await _commit_user(db, user)

    logger.info("user_created", user_id=user.id, email=user.email)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError()
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


async def update_user(db: AsyncSession, user_id: int, user_data: UserUpdate) -> User:
    user = await get_user(db, user_id)
    await _ensure_email_free(db, user_data.email, user_id=user_id)

    user.name = user_data.name
    user.email = user_data.email
    user = await _commit_user(db, user)

    logger.info("user_updated", user_id=user.id)
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """Delete a user; their registrations are removed with them."""
    user = await get_user(db, user_id)
    await db.delete(user)
    await db.commit()

    logger.info("user_deleted", user_id=user_id)
