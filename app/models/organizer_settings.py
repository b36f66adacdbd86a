from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class OrganizerSettingsBase(SQLModel):
    working_timezone: str = "UTC"  # IANA zone id
    default_meeting_duration: int = Field(default=30, ge=15, le=240)  # minutes
    pre_booking_buffer: int = Field(default=0, ge=0, le=120)  # minutes
    post_booking_buffer: int = Field(default=0, ge=0, le=120)  # minutes
    min_booking_notice: int = Field(default=2, ge=0, le=168)  # hours
    max_booking_advance: int = Field(default=14, ge=1, le=365)  # days


class OrganizerSettings(OrganizerSettingsBase, table=True):
    __tablename__ = "organizer_settings"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    deleted_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class OrganizerSettingsPublic(OrganizerSettingsBase):
    user_id: int
