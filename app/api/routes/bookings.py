import logging

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_lock_manager, get_store
from app.api.schemas.booking import (
    BookingResponse,
    CancelBookingResponse,
    CreateBookingRequest,
    RescheduleBookingRequest,
    UpdateBookingRequest,
)
from app.models.booking import Booking
from app.models.user import OrganizerPublic, User
from app.services.booking_service import (
    cancel_booking,
    commit_booking,
    get_booking_details,
    reschedule_booking,
    update_booking_details,
)
from app.services.lock_service import BookingLockManager
from app.services.store import SchedulingStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


def _to_response(b: Booking, organizer: User | None = None) -> BookingResponse:
    return BookingResponse(
        id=b.id,
        organizer_id=b.organizer_id,
        attendant_name=b.attendant_name,
        attendant_email=b.attendant_email,
        title=b.title,
        description=b.description,
        metadata=b.extra,
        start_time=b.start_time,
        end_time=b.end_time,
        status=b.status,
        created_at=b.created_at,
        updated_at=b.updated_at,
        organizer=(
            OrganizerPublic(id=organizer.id, username=organizer.username, email=organizer.email)
            if organizer
            else None
        ),
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: CreateBookingRequest,
    store: SchedulingStore = Depends(get_store),
    locks: BookingLockManager = Depends(get_lock_manager),
) -> BookingResponse:
    booking = await commit_booking(
        store,
        locks,
        organizer_username=body.organizer_username,
        attendant_name=body.attendant_name,
        attendant_email=str(body.attendant_email),
        title=body.title,
        description=body.description,
        start_time=body.start_time,
        end_time=body.end_time,
        metadata=body.metadata,
    )
    return _to_response(booking)


@router.get("/{booking_id}", response_model=BookingResponse)
async def booking_details(
    booking_id: int,
    include_organizer: bool = Query(False),
    store: SchedulingStore = Depends(get_store),
) -> BookingResponse:
    booking, organizer = await get_booking_details(store, booking_id, include_organizer)
    return _to_response(booking, organizer)


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule(
    booking_id: int,
    body: RescheduleBookingRequest,
    store: SchedulingStore = Depends(get_store),
    locks: BookingLockManager = Depends(get_lock_manager),
) -> BookingResponse:
    booking = await reschedule_booking(store, locks, booking_id, body.start_time, body.end_time)
    return _to_response(booking)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update(
    booking_id: int,
    body: UpdateBookingRequest,
    store: SchedulingStore = Depends(get_store),
) -> BookingResponse:
    booking = await update_booking_details(
        store,
        booking_id,
        title=body.title,
        description=body.description,
        metadata=body.metadata,
    )
    return _to_response(booking)


@router.delete("/{booking_id}", response_model=CancelBookingResponse)
async def cancel(
    booking_id: int,
    requesting_username: str | None = Query(None),
    store: SchedulingStore = Depends(get_store),
) -> CancelBookingResponse:
    cancelled_at = await cancel_booking(store, booking_id, requesting_username)
    logger.info("Booking %s cancelled (requested by %s)", booking_id, requesting_username or "-")
    return CancelBookingResponse(cancelled_at=cancelled_at)
