from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    id: int | None = Field(default=None, primary_key=True)
    organizer_id: int = Field(foreign_key="users.id", index=True)
    attendant_name: str
    attendant_email: str = Field(index=True)
    title: str
    description: str | None = None
    # "metadata" is reserved on declarative classes
    extra: dict[str, Any] | None = Field(default=None, sa_column=Column("metadata", JSON, nullable=True))
    start_time: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))
    end_time: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    status: str = BOOKING_CONFIRMED
    created_at: datetime = Field(
        default_factory=_utc_now, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=_utc_now, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    deleted_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class BookingCreate(SQLModel):
    organizer_id: int
    attendant_name: str
    attendant_email: str
    title: str
    description: str | None = None
    extra: dict[str, Any] | None = None
    start_time: datetime
    end_time: datetime
