"""
Registration service: the concurrency-safe registration transaction and
cancellation.

CONCURRENCY STRATEGY: Pessimistic Row Lock
==========================================

Problem:
  Two users try to take the last slot of an event simultaneously.
  Both count registrations = capacity - 1, both insert.
  Result: The event is over capacity.

Solution:
  Every registration attempt runs as one transaction that starts by locking
  the user and event rows:

  0. SELECT * FROM users WHERE id = :user_id FOR SHARE
  1. SELECT * FROM events WHERE id = :event_id FOR UPDATE
  2. Reject if the event is missing or already started
  3. Reject if (event_id, user_id) is already registered
  4. SELECT COUNT(*) FROM event_registrations WHERE event_id = :event_id
  5. Reject if count >= capacity
  6. INSERT the registration, COMMIT

  The row lock is held from step 1 until COMMIT/ROLLBACK, so the count in
  step 4 cannot go stale before the insert in step 6. Competing requests for
  the same event queue on the lock; requests for different events do not
  interact. The shared lock on the user keeps a concurrent user delete from
  slipping in before the insert; should a foreign key still fail, it is
  reported as UserNotFound, and a unique violation as DuplicateRegistration.
  Any failure rolls back the whole transaction, so a rejected
  attempt leaves no row behind.

  The correctness boundary is the shared database, not this process: any
  number of API instances can run against one store.

Why not optimistic locking here:
  There is no denormalised counter to version. The capacity check is a COUNT
  over another table, which a version column on events would not protect
  without also bumping it on every insert and delete.
"""

import time

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from event_manager.core.clock import as_utc, utc_now
from event_manager.core.exceptions import (
    AppError,
    DuplicateRegistrationError,
    EventFullError,
    EventInPastError,
    EventNotFoundError,
    InternalError,
    RegistrationNotFoundError,
    UserNotFoundError,
)
from event_manager.core.logging import get_logger
from event_manager.core.metrics import (
    record_cancellation,
    record_registration_attempt,
    registration_latency,
)
from event_manager.models.event import Event
from event_manager.models.registration import Registration
from event_manager.models.user import User

logger = get_logger(__name__)


async def _lock_user(db: AsyncSession, user_id: int) -> User:
    # Shared lock: a concurrent user delete waits for this transaction
    result = await db.execute(
        select(User).where(User.id == user_id).with_for_update(read=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFoundError()
    return user


async def _lock_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(
        select(Event).where(Event.id == event_id).with_for_update()
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise EventNotFoundError()
    return event


async def _count_registrations(db: AsyncSession, event_id: int) -> int:
    count = await db.scalar(
        select(func.count(Registration.id)).where(Registration.event_id == event_id)
    )
    return int(count or 0)


async def _registration_exists(db: AsyncSession, event_id: int, user_id: int) -> bool:
    found = await db.scalar(
        select(Registration.id).where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
        )
    )
    return found is not None


def _integrity_error(error: IntegrityError) -> AppError:
    """Map a failed insert to the rule it broke.

    A unique violation means the duplicate check lost a race. A foreign key
    violation means a referenced row vanished after it was read; the event
    row is locked, so that can only be the user.
    """
    detail = str(error.orig).lower()
    if "unique" in detail or "uq_event_registration_event_user" in detail:
        return DuplicateRegistrationError()
    if "foreign key" in detail:
        return UserNotFoundError()
    return InternalError(detail=str(error.orig))


async def _register(db: AsyncSession, event_id: int, user_id: int) -> Registration:
    await _lock_user(db, user_id)

    event = await _lock_event(db, event_id)

    if as_utc(event.date_time) <= utc_now():
        raise EventInPastError()

    if await _registration_exists(db, event_id, user_id):
        raise DuplicateRegistrationError()

    current = await _count_registrations(db, event_id)
    if current >= event.capacity:
        logger.warning(
            "registration_rejected_full",
            event_id=event_id,
            capacity=event.capacity,
            registered=current,
        )
        raise EventFullError()

    registration = Registration(event_id=event_id, user_id=user_id)
    db.add(registration)
    try:
        await db.flush()
    except IntegrityError as e:
        raise _integrity_error(e) from e
    await db.refresh(registration)
    return registration


async def register_for_event(db: AsyncSession, event_id: int, user_id: int) -> Registration:
    """
    Register ``user_id`` for ``event_id`` in a single atomic transaction.

    Raises UserNotFoundError, EventNotFoundError, EventInPastError,
    DuplicateRegistrationError, EventFullError, or InternalError for store
    failures. The session is rolled back on every failure.
    """
    start = time.perf_counter()
    try:
        registration = await _register(db, event_id, user_id)
        await db.commit()
    except AppError as e:
        await db.rollback()
        record_registration_attempt(e.kind)
        logger.info(
            "registration_rejected",
            event_id=event_id,
            user_id=user_id,
            reason=e.kind,
        )
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        record_registration_attempt("error")
        logger.error("registration_failed", event_id=event_id, user_id=user_id, error=str(e))
        raise InternalError(detail=str(e)) from e
    finally:
        registration_latency.observe(time.perf_counter() - start)

    record_registration_attempt("success")
    logger.info(
        "registration_created",
        registration_id=registration.id,
        event_id=event_id,
        user_id=user_id,
    )
    return registration


async def cancel_registration(db: AsyncSession, event_id: int, user_id: int) -> None:
    """
    Remove the registration for (event_id, user_id).

    Not idempotent: if the row is gone, including when a concurrent cancel
    removed it first, RegistrationNotFoundError is raised.
    """
    try:
        result = await db.execute(
            delete(Registration).where(
                Registration.event_id == event_id,
                Registration.user_id == user_id,
            )
        )
        if result.rowcount == 0:
            raise RegistrationNotFoundError()
        await db.commit()
    except RegistrationNotFoundError:
        await db.rollback()
        record_cancellation("RegistrationNotFound")
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        record_cancellation("error")
        logger.error("cancellation_failed", event_id=event_id, user_id=user_id, error=str(e))
        raise InternalError(detail=str(e)) from e

    record_cancellation("success")
    logger.info("registration_cancelled", event_id=event_id, user_id=user_id)
