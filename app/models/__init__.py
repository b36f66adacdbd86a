from app.models.user import OrganizerPublic, User
from app.models.organizer_settings import OrganizerSettings, OrganizerSettingsPublic
from app.models.working_hours import WorkingHours
from app.models.blackout_date import BlackoutDate
from app.models.booking import Booking, BookingCreate

__all__ = [
    "User",
    "OrganizerPublic",
    "OrganizerSettings",
    "OrganizerSettingsPublic",
    "WorkingHours",
    "BlackoutDate",
    "Booking",
    "BookingCreate",
]
