"""Data access the scheduling core reads from and writes to.

The core only depends on ``SchedulingStore``; ``SqlSchedulingStore`` is the
production implementation. Each call opens its own session so the
availability pipeline can fan reads out concurrently.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.blackout_date import BlackoutDate
from app.models.booking import BOOKING_CANCELLED, Booking, BookingCreate
from app.models.organizer_settings import OrganizerSettings
from app.models.user import User
from app.models.working_hours import WorkingHours

logger = logging.getLogger(__name__)


class SchedulingStore(Protocol):
    async def get_user_by_username(self, username: str) -> User | None: ...

    async def get_user_by_id(self, user_id: int) -> User | None: ...

    async def get_organizer_settings(self, organizer_id: int) -> OrganizerSettings | None: ...

    async def get_active_working_hours(self, organizer_id: int) -> list[WorkingHours]: ...

    async def get_blackout_dates(
        self, organizer_id: int, range_start: datetime, range_end: datetime
    ) -> list[BlackoutDate]: ...

    async def get_active_bookings(
        self, organizer_id: int, range_start: datetime, range_end: datetime
    ) -> list[Booking]: ...

    async def get_booking(self, booking_id: int) -> Booking | None: ...

    async def insert_booking(self, data: BookingCreate) -> Booking: ...

    async def update_booking_times(
        self, booking_id: int, start_time: datetime, end_time: datetime
    ) -> Booking | None: ...

    async def update_booking_fields(self, booking_id: int, fields: dict[str, Any]) -> Booking | None: ...

    async def soft_delete_booking(self, booking_id: int) -> bool: ...


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SqlSchedulingStore:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def get_user_by_username(self, username: str) -> User | None:
        async with self.session_maker() as session:
            result = await session.execute(
                select(User).where(User.username == username, User.deleted_at.is_(None))
            )
            return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> User | None:
        async with self.session_maker() as session:
            result = await session.execute(
                select(User).where(User.id == user_id, User.deleted_at.is_(None))
            )
            return result.scalar_one_or_none()

    async def get_organizer_settings(self, organizer_id: int) -> OrganizerSettings | None:
        async with self.session_maker() as session:
            result = await session.execute(
                select(OrganizerSettings).where(
                    OrganizerSettings.user_id == organizer_id,
                    OrganizerSettings.deleted_at.is_(None),
                )
            )
            return result.scalar_one_or_none()

    async def get_active_working_hours(self, organizer_id: int) -> list[WorkingHours]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(WorkingHours)
                .where(
                    WorkingHours.user_id == organizer_id,
                    WorkingHours.is_active == True,  # noqa: E712
                    WorkingHours.deleted_at.is_(None),
                )
                .order_by(WorkingHours.day_of_week, WorkingHours.start_time)
            )
            return list(result.scalars().all())

    async def get_blackout_dates(
        self, organizer_id: int, range_start: datetime, range_end: datetime
    ) -> list[BlackoutDate]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(BlackoutDate).where(
                    BlackoutDate.user_id == organizer_id,
                    BlackoutDate.date >= range_start,
                    BlackoutDate.date < range_end,
                    BlackoutDate.deleted_at.is_(None),
                )
            )
            return list(result.scalars().all())

    async def get_active_bookings(
        self, organizer_id: int, range_start: datetime, range_end: datetime
    ) -> list[Booking]:
        """Non-deleted bookings overlapping [range_start, range_end)."""
        async with self.session_maker() as session:
            result = await session.execute(
                select(Booking)
                .where(
                    Booking.organizer_id == organizer_id,
                    Booking.start_time < range_end,
                    Booking.end_time > range_start,
                    Booking.deleted_at.is_(None),
                )
                .order_by(Booking.start_time)
            )
            return list(result.scalars().all())

    async def get_booking(self, booking_id: int) -> Booking | None:
        async with self.session_maker() as session:
            result = await session.execute(
                select(Booking).where(Booking.id == booking_id, Booking.deleted_at.is_(None))
            )
            return result.scalar_one_or_none()

    async def insert_booking(self, data: BookingCreate) -> Booking:
        async with self.session_maker() as session:
            try:
                booking = Booking(**data.model_dump())
                session.add(booking)
                await session.commit()
                await session.refresh(booking)
            except Exception:
                await session.rollback()
                raise
            return booking

    async def update_booking_times(
        self, booking_id: int, start_time: datetime, end_time: datetime
    ) -> Booking | None:
        return await self.update_booking_fields(
            booking_id, {"start_time": start_time, "end_time": end_time}
        )

    async def update_booking_fields(self, booking_id: int, fields: dict[str, Any]) -> Booking | None:
        """Set the given Booking attributes and bump updated_at. None if absent or deleted."""
        async with self.session_maker() as session:
            try:
                result = await session.execute(
                    select(Booking).where(Booking.id == booking_id, Booking.deleted_at.is_(None))
                )
                booking = result.scalar_one_or_none()
                if not booking:
                    return None
                for name, value in fields.items():
                    setattr(booking, name, value)
                booking.updated_at = _utc_now()
                session.add(booking)
                await session.commit()
                await session.refresh(booking)
            except Exception:
                await session.rollback()
                raise
            return booking

    async def soft_delete_booking(self, booking_id: int) -> bool:
        now = _utc_now()
        async with self.session_maker() as session:
            try:
                result = await session.execute(
                    update(Booking)
                    .where(Booking.id == booking_id, Booking.deleted_at.is_(None))
                    .values(deleted_at=now, updated_at=now, status=BOOKING_CANCELLED)
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        deleted = (result.rowcount or 0) > 0
        if deleted:
            logger.info("Booking %s soft-deleted", booking_id)
        return deleted
