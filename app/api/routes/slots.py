from fastapi import APIRouter, Depends

from app.api.deps import get_store
from app.api.schemas.availability import AvailabilityResponse, SlotInfo
from app.core.errors import NotFoundError
from app.models.organizer_settings import OrganizerSettingsPublic
from app.services.availability_service import compute_availability
from app.services.store import SchedulingStore

router = APIRouter(prefix="/organizers", tags=["availability"])


@router.get("/{username}/availability", response_model=AvailabilityResponse)
async def list_availability(
    username: str,
    store: SchedulingStore = Depends(get_store),
) -> AvailabilityResponse:
    """Bookable slots for the organizer over their booking window (UTC, ISO-8601)."""
    organizer = await store.get_user_by_username(username)
    if not organizer:
        raise NotFoundError("Organizer not found")

    slots, settings = await compute_availability(store, organizer.id)
    return AvailabilityResponse(
        organizer_username=organizer.username,
        settings=OrganizerSettingsPublic.model_validate(settings, from_attributes=True),
        slots=[
            SlotInfo(
                start_time_utc=s.start_utc,
                end_time_utc=s.end_utc,
                duration_minutes=s.duration_minutes,
                organizer_timezone=settings.working_timezone,
            )
            for s in slots
        ],
    )
