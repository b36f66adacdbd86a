from datetime import datetime

from pydantic import BaseModel

from app.models.organizer_settings import OrganizerSettingsPublic


class SlotInfo(BaseModel):
    start_time_utc: datetime
    end_time_utc: datetime
    duration_minutes: int
    organizer_timezone: str


class AvailabilityResponse(BaseModel):
    organizer_username: str
    settings: OrganizerSettingsPublic
    slots: list[SlotInfo]
