"""Booking commit, reschedule and cancel.

Commit and reschedule follow the same sequence:

    validate -> acquire slot lock -> revalidate availability -> persist -> release

Validation and not-found errors are raised before any lock is taken. Once
the lock is held it is released on every exit path.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import (
    BookingPersistenceError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.booking import Booking, BookingCreate
from app.models.user import User
from app.services.availability_service import compute_availability
from app.services.lock_service import BookingLockManager
from app.services.slot_service import as_utc
from app.services.store import SchedulingStore

logger = logging.getLogger(__name__)


def _validate_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start, end = as_utc(start), as_utc(end)
    if start >= end:
        raise ValidationError("End time must be after start time")
    return start, end


async def _ensure_slot_available(
    store: SchedulingStore,
    organizer_id: int,
    start: datetime,
    end: datetime,
    now: datetime,
    exclude_booking_id: int | None = None,
) -> None:
    slots, _ = await compute_availability(
        store, organizer_id, now=now, exclude_booking_id=exclude_booking_id
    )
    if not any(slot.matches(start, end) for slot in slots):
        logger.info(
            "Slot %s-%s for organizer %s failed revalidation",
            start.isoformat(),
            end.isoformat(),
            organizer_id,
        )
        raise ConflictError("This time slot is no longer available")


async def commit_booking(
    store: SchedulingStore,
    locks: BookingLockManager,
    *,
    organizer_username: str,
    attendant_name: str,
    attendant_email: str,
    title: str,
    start_time: datetime,
    end_time: datetime,
    description: str | None = None,
    metadata: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> Booking:
    start, end = _validate_range(start_time, end_time)

    organizer = await store.get_user_by_username(organizer_username)
    if not organizer:
        raise NotFoundError("Organizer not found")
    settings = await store.get_organizer_settings(organizer.id)
    if not settings:
        raise NotFoundError("Organizer settings not found")

    async with locks.hold(organizer.id, start):
        await _ensure_slot_available(store, organizer.id, start, end, now or datetime.now(UTC))
        try:
            booking = await store.insert_booking(
                BookingCreate(
                    organizer_id=organizer.id,
                    attendant_name=attendant_name,
                    attendant_email=attendant_email,
                    title=title,
                    description=description or None,
                    extra=metadata or None,
                    start_time=start,
                    end_time=end,
                )
            )
        except SQLAlchemyError as e:
            logger.exception("Insert booking failed for organizer %s", organizer.id)
            raise BookingPersistenceError("Failed to create booking") from e

    logger.info(
        "Booking %s created for organizer %s at %s", booking.id, organizer.id, start.isoformat()
    )
    return booking


async def reschedule_booking(
    store: SchedulingStore,
    locks: BookingLockManager,
    booking_id: int,
    new_start: datetime,
    new_end: datetime,
    now: datetime | None = None,
) -> Booking:
    now = as_utc(now or datetime.now(UTC))

    booking = await store.get_booking(booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if as_utc(booking.start_time) < now:
        raise ValidationError("Cannot reschedule past bookings")

    start, end = _validate_range(new_start, new_end)
    if start < now:
        raise ValidationError("Cannot reschedule to a past time")

    settings = await store.get_organizer_settings(booking.organizer_id)
    if not settings:
        raise NotFoundError("Organizer settings not found")

    async with locks.hold(booking.organizer_id, start):
        await _ensure_slot_available(
            store, booking.organizer_id, start, end, now, exclude_booking_id=booking.id
        )
        try:
            updated = await store.update_booking_times(booking.id, start, end)
        except SQLAlchemyError as e:
            logger.exception("Reschedule failed for booking %s", booking.id)
            raise BookingPersistenceError("Failed to reschedule booking") from e
        if not updated:
            raise NotFoundError("Booking not found")

    logger.info("Booking %s rescheduled to %s", booking.id, start.isoformat())
    return updated


async def update_booking_details(
    store: SchedulingStore,
    booking_id: int,
    title: str | None = None,
    description: str | None = None,
    metadata: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> Booking:
    """Edit title, description or metadata. Times only change through reschedule."""
    now = as_utc(now or datetime.now(UTC))

    booking = await store.get_booking(booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if as_utc(booking.start_time) < now:
        raise ValidationError("Cannot update past bookings")

    fields: dict[str, Any] = {}
    if title is not None:
        fields["title"] = title
    if description is not None:
        fields["description"] = description
    if metadata is not None:
        fields["extra"] = metadata
    if not fields:
        raise ValidationError("No updates provided")

    try:
        updated = await store.update_booking_fields(booking.id, fields)
    except SQLAlchemyError as e:
        logger.exception("Update failed for booking %s", booking.id)
        raise BookingPersistenceError("Failed to update booking") from e
    if not updated:
        raise NotFoundError("Booking not found")

    logger.info("Booking %s updated (%s)", booking.id, ", ".join(sorted(fields)))
    return updated


async def cancel_booking(
    store: SchedulingStore,
    booking_id: int,
    requesting_username: str | None = None,
) -> datetime:
    """Soft-delete a booking. Returns the cancellation time.

    With ``requesting_username`` the requester must be the organizer or the
    attendant (matched by email).
    """
    booking = await store.get_booking(booking_id)
    if not booking:
        raise NotFoundError("Booking not found")

    if requesting_username:
        requester = await store.get_user_by_username(requesting_username)
        if not requester:
            raise NotFoundError("Requesting user not found")
        is_organizer = requester.id == booking.organizer_id
        is_attendant = requester.email.lower() == booking.attendant_email.lower()
        if not is_organizer and not is_attendant:
            raise PermissionDeniedError("You don't have permission to cancel this booking")

    if not await store.soft_delete_booking(booking.id):
        raise NotFoundError("Booking not found")
    return datetime.now(UTC)


async def get_booking_details(
    store: SchedulingStore,
    booking_id: int,
    include_organizer: bool = False,
) -> tuple[Booking, User | None]:
    booking = await store.get_booking(booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    organizer = await store.get_user_by_id(booking.organizer_id) if include_organizer else None
    return booking, organizer
