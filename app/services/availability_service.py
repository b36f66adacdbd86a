"""Availability pipeline.

The single answer to "is this slot bookable": listings call it once, the
commit protocol calls it again under the slot lock.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from app.core.errors import NotFoundError
from app.models.organizer_settings import OrganizerSettings
from app.services.slot_service import (
    CandidateSlot,
    apply_buffer_times,
    apply_business_rules,
    filter_blackout_dates,
    filter_colliding_slots,
    generate_candidate_slots,
)
from app.services.store import SchedulingStore
from app.services.time_window import compute_time_window

logger = logging.getLogger(__name__)


async def compute_availability(
    store: SchedulingStore,
    organizer_id: int,
    now: datetime | None = None,
    exclude_booking_id: int | None = None,
) -> tuple[list[CandidateSlot], OrganizerSettings]:
    """Return (slots sorted by start, settings) for the organizer.

    Order is fixed: window, generate, blackout filter, buffer filter,
    business rules, sort. ``exclude_booking_id`` leaves one booking out of
    the collision set (a booking being rescheduled must not block itself).
    """
    now = now or datetime.now(UTC)

    settings = await store.get_organizer_settings(organizer_id)
    if not settings:
        raise NotFoundError("Organizer settings not found")

    window = compute_time_window(settings, now)

    # Bookings just outside the window can still reach into it via buffers
    bookings_from = window.start_utc - timedelta(minutes=settings.post_booking_buffer)
    bookings_to = window.end_utc + timedelta(minutes=settings.pre_booking_buffer)

    working_hours, blackout_dates, bookings = await asyncio.gather(
        store.get_active_working_hours(organizer_id),
        store.get_blackout_dates(organizer_id, window.start_utc, window.end_utc),
        store.get_active_bookings(organizer_id, bookings_from, bookings_to),
    )
    if exclude_booking_id is not None:
        bookings = [b for b in bookings if b.id != exclude_booking_id]

    slots = generate_candidate_slots(
        window, working_hours, settings.default_meeting_duration, settings.working_timezone
    )
    slots = filter_blackout_dates(slots, blackout_dates, settings.working_timezone)
    buffered = apply_buffer_times(bookings, settings.pre_booking_buffer, settings.post_booking_buffer)
    slots = filter_colliding_slots(slots, buffered)
    slots = apply_business_rules(slots, now, settings.min_booking_notice)
    slots.sort(key=lambda s: (s.start_utc, s.end_utc))

    logger.debug(
        "Availability for organizer %s: %d slots over %d days (%d bookings, %d blackout days)",
        organizer_id,
        len(slots),
        window.days,
        len(bookings),
        len(blackout_dates),
    )
    return slots, settings
