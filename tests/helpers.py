"""
Stubs and data builders shared by the test modules.

StubStore and StubRedis stand in for Postgres and Redis: they implement the
same async methods the core calls, backed by plain dicts.
"""

import asyncio
from datetime import UTC, date, datetime, timedelta

from sqlalchemy.exc import OperationalError

from app.models.blackout_date import BlackoutDate
from app.models.booking import BOOKING_CANCELLED, Booking, BookingCreate
from app.models.organizer_settings import OrganizerSettings
from app.models.user import User
from app.models.working_hours import WorkingHours
from app.services.time_window import TimeWindow, get_zone, local_midnight

# 2025-11-24 is a Monday
MONDAY = date(2025, 11, 24)
TUESDAY = date(2025, 11, 25)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


def at(d: date, hour: int, minute: int = 0) -> datetime:
    """UTC instant on a given day."""
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=UTC)


def make_window(start: date, days: int, timezone: str = "UTC") -> TimeWindow:
    tz = get_zone(timezone)
    start_local = local_midnight(start, tz)
    end_local = local_midnight(start + timedelta(days=days), tz)
    return TimeWindow(
        start_local=start_local,
        end_local=end_local,
        start_utc=start_local.astimezone(UTC),
        end_utc=end_local.astimezone(UTC),
    )


def make_settings(user_id: int = 1, **overrides) -> OrganizerSettings:
    values = dict(
        working_timezone="UTC",
        default_meeting_duration=60,
        pre_booking_buffer=0,
        post_booking_buffer=0,
        min_booking_notice=0,
        max_booking_advance=14,
    )
    values.update(overrides)
    return OrganizerSettings(user_id=user_id, **values)


def block(day_of_week: int, start: str = "09:00", end: str = "17:00", user_id: int = 1,
          is_active: bool = True) -> WorkingHours:
    return WorkingHours(
        user_id=user_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        is_active=is_active,
    )


def weekday_blocks(start: str = "09:00", end: str = "17:00", user_id: int = 1) -> list[WorkingHours]:
    """Monday to Friday, same hours every day."""
    return [block(d, start, end, user_id) for d in range(1, 6)]


def make_booking(start: datetime, end: datetime, organizer_id: int = 1, booking_id: int | None = None,
                 attendant_email: str = "guest@example.com") -> Booking:
    return Booking(
        id=booking_id,
        organizer_id=organizer_id,
        attendant_name="Guest",
        attendant_email=attendant_email,
        title="Intro call",
        start_time=start,
        end_time=end,
    )


class StubStore:
    """In-memory SchedulingStore."""

    def __init__(self):
        self.users: dict[int, User] = {}
        self.settings: dict[int, OrganizerSettings] = {}
        self.working_hours: list[WorkingHours] = []
        self.blackout_dates: list[BlackoutDate] = []
        self.bookings: dict[int, Booking] = {}
        self.fail_writes = False
        self.in_flight = 0
        self.max_in_flight = 0
        self._next_id = 1

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    async def _io(self):
        # Yield to the loop like a real driver would
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1

    # -- seeding ---------------------------------------------------------

    def add_organizer(self, username: str = "alice", email: str | None = None,
                      with_settings: bool = True, **settings_overrides) -> User:
        user = User(id=self._new_id(), username=username, email=email or f"{username}@example.com")
        self.users[user.id] = user
        if with_settings:
            self.settings[user.id] = make_settings(user_id=user.id, **settings_overrides)
        return user

    def add_working_hours(self, blocks: list[WorkingHours], user_id: int) -> None:
        for wh in blocks:
            wh.user_id = user_id
            self.working_hours.append(wh)

    def add_blackout(self, when: datetime, user_id: int, reason: str | None = None) -> None:
        self.blackout_dates.append(BlackoutDate(user_id=user_id, date=when, reason=reason))

    def add_booking(self, start: datetime, end: datetime, organizer_id: int,
                    attendant_email: str = "guest@example.com") -> Booking:
        booking = make_booking(start, end, organizer_id, self._new_id(), attendant_email)
        self.bookings[booking.id] = booking
        return booking

    # -- SchedulingStore -------------------------------------------------

    async def get_user_by_username(self, username):
        await self._io()
        return next((u for u in self.users.values() if u.username == username), None)

    async def get_user_by_id(self, user_id):
        await self._io()
        return self.users.get(user_id)

    async def get_organizer_settings(self, organizer_id):
        await self._io()
        return self.settings.get(organizer_id)

    async def get_active_working_hours(self, organizer_id):
        await self._io()
        return [wh for wh in self.working_hours if wh.user_id == organizer_id and wh.is_active]

    async def get_blackout_dates(self, organizer_id, range_start, range_end):
        await self._io()
        return [
            b for b in self.blackout_dates
            if b.user_id == organizer_id and range_start <= b.date < range_end
        ]

    async def get_active_bookings(self, organizer_id, range_start, range_end):
        await self._io()
        return sorted(
            (
                b for b in self.bookings.values()
                if b.organizer_id == organizer_id
                and b.deleted_at is None
                and b.start_time < range_end
                and b.end_time > range_start
            ),
            key=lambda b: b.start_time,
        )

    async def get_booking(self, booking_id):
        await self._io()
        booking = self.bookings.get(booking_id)
        return booking if booking and booking.deleted_at is None else None

    async def insert_booking(self, data: BookingCreate):
        await self._io()
        if self.fail_writes:
            raise OperationalError("INSERT INTO bookings", {}, Exception("connection lost"))
        booking = Booking(id=self._new_id(), **data.model_dump())
        self.bookings[booking.id] = booking
        return booking

    async def update_booking_times(self, booking_id, start_time, end_time):
        return await self.update_booking_fields(
            booking_id, {"start_time": start_time, "end_time": end_time}
        )

    async def update_booking_fields(self, booking_id, fields):
        await self._io()
        if self.fail_writes:
            raise OperationalError("UPDATE bookings", {}, Exception("connection lost"))
        booking = self.bookings.get(booking_id)
        if not booking or booking.deleted_at is not None:
            return None
        for name, value in fields.items():
            setattr(booking, name, value)
        booking.updated_at = datetime.now(UTC)
        return booking

    async def soft_delete_booking(self, booking_id):
        await self._io()
        booking = self.bookings.get(booking_id)
        if not booking or booking.deleted_at is not None:
            return False
        booking.deleted_at = datetime.now(UTC)
        booking.status = BOOKING_CANCELLED
        return True


class StubRedis:
    """Implements the SET NX PX / DEL subset used by the lock manager."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.set_calls: list[str] = []

    async def set(self, key, value, nx=False, px=None):
        self.set_calls.append(key)
        if nx and key in self.values:
            return None
        self.values[key] = value
        if px is not None:
            self.ttls[key] = px
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

