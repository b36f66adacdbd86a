from datetime import datetime
from typing import Any

from pydantic import AwareDatetime, BaseModel, EmailStr, Field

from app.models.user import OrganizerPublic


class CreateBookingRequest(BaseModel):
    organizer_username: str = Field(min_length=3)
    attendant_name: str = Field(min_length=1)
    attendant_email: EmailStr
    title: str = Field(min_length=1)
    description: str | None = None
    start_time: AwareDatetime
    end_time: AwareDatetime
    metadata: dict[str, Any] | None = None  # e.g. additional attendees


class RescheduleBookingRequest(BaseModel):
    start_time: AwareDatetime
    end_time: AwareDatetime


class UpdateBookingRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    metadata: dict[str, Any] | None = None


class BookingResponse(BaseModel):
    id: int
    organizer_id: int
    attendant_name: str
    attendant_email: str
    title: str
    description: str | None = None
    metadata: dict[str, Any] | None = None
    start_time: datetime
    end_time: datetime
    status: str
    created_at: datetime
    updated_at: datetime
    organizer: OrganizerPublic | None = None


class CancelBookingResponse(BaseModel):
    success: bool = True
    message: str = "Booking cancelled successfully"
    cancelled_at: datetime
