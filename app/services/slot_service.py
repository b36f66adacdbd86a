"""Candidate slot generation and the filters applied to it.

Everything here is pure: no I/O, no clock reads. ``now`` and the organizer's
data are passed in by the availability pipeline.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta

from app.core.errors import ValidationError
from app.models.blackout_date import BlackoutDate
from app.models.booking import Booking
from app.models.working_hours import WorkingHours
from app.services.time_window import TimeWindow, get_zone

_WALL_CLOCK_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])(:[0-5][0-9])?$")


@dataclass(frozen=True, order=True)
class CandidateSlot:
    start_utc: datetime
    end_utc: datetime
    duration_minutes: int

    def matches(self, start: datetime, end: datetime) -> bool:
        return self.start_utc == as_utc(start) and self.end_utc == as_utc(end)


@dataclass(frozen=True)
class BufferedInterval:
    """A booking padded by the organizer's pre/post buffers (UTC)."""

    start_utc: datetime
    end_utc: datetime
    booking_id: int | None = None


def as_utc(dt: datetime) -> datetime:
    """Aware UTC datetime. Naive values are taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_wall_clock(value: str) -> time:
    """Parse "HH:mm" (seconds tolerated, as Postgres TIME renders them)."""
    match = _WALL_CLOCK_RE.match(value.strip()) if value else None
    if not match:
        raise ValidationError(f"Time must be in HH:mm format (24-hour), got {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def sunday_based_weekday(d) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


def generate_candidate_slots(
    window: TimeWindow,
    working_hours: Iterable[WorkingHours],
    duration_minutes: int,
    timezone: str,
) -> list[CandidateSlot]:
    """Expand weekly working-hour blocks into fixed-length slots over the window.

    Blocks are interpreted in the organizer's wall-clock time. Each block is
    walked in ``duration_minutes`` steps; a trailing remainder shorter than
    the duration is dropped. Blocks on the same day are not merged, so
    overlapping blocks yield overlapping slots.
    """
    tz = get_zone(timezone)
    step = timedelta(minutes=duration_minutes)
    active = [wh for wh in working_hours if wh.is_active]
    slots: list[CandidateSlot] = []

    day = window.start_local.date()
    last_day = window.end_local.date()
    while day < last_day:
        weekday = sunday_based_weekday(day)
        for block in active:
            if int(block.day_of_week) != weekday:
                continue
            start_t = parse_wall_clock(block.start_time)
            end_t = parse_wall_clock(block.end_time)
            block_start = datetime.combine(day, start_t, tzinfo=tz).astimezone(UTC)
            block_end = datetime.combine(day, end_t, tzinfo=tz).astimezone(UTC)

            # Step on absolute instants so DST never stretches a slot
            cursor = block_start
            while cursor + step <= block_end:
                slots.append(CandidateSlot(cursor, cursor + step, duration_minutes))
                cursor += step
        day += timedelta(days=1)

    return slots


def filter_blackout_dates(
    slots: list[CandidateSlot],
    blackout_dates: Iterable[BlackoutDate],
    timezone: str,
) -> list[CandidateSlot]:
    """Drop slots whose local start day is a blackout day."""
    tz = get_zone(timezone)
    blocked_days = {as_utc(b.date).astimezone(tz).date() for b in blackout_dates}
    if not blocked_days:
        return slots
    return [s for s in slots if s.start_utc.astimezone(tz).date() not in blocked_days]


def apply_buffer_times(
    bookings: Iterable[Booking],
    pre_buffer_minutes: int,
    post_buffer_minutes: int,
) -> list[BufferedInterval]:
    pre = timedelta(minutes=pre_buffer_minutes)
    post = timedelta(minutes=post_buffer_minutes)
    return [
        BufferedInterval(
            start_utc=as_utc(b.start_time) - pre,
            end_utc=as_utc(b.end_time) + post,
            booking_id=b.id,
        )
        for b in bookings
    ]


def collides(slot: CandidateSlot, interval: BufferedInterval) -> bool:
    # Half-open: touching intervals do not collide
    return slot.start_utc < interval.end_utc and slot.end_utc > interval.start_utc


def filter_colliding_slots(
    slots: list[CandidateSlot],
    buffered: list[BufferedInterval],
) -> list[CandidateSlot]:
    if not buffered:
        return slots
    return [s for s in slots if not any(collides(s, b) for b in buffered)]


def apply_business_rules(
    slots: list[CandidateSlot],
    now: datetime,
    min_notice_hours: int,
) -> list[CandidateSlot]:
    """Drop past slots and slots inside the minimum-notice period.

    A slot starting exactly at ``now + min_notice`` is kept. Maximum advance
    needs no check here; the window already ends there.
    """
    now = as_utc(now)
    earliest_start = now + timedelta(hours=min_notice_hours)
    return [s for s in slots if s.end_utc > now and s.start_utc >= earliest_start]
