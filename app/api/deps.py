from fastapi import Request

from app.services.lock_service import BookingLockManager
from app.services.store import SchedulingStore, SqlSchedulingStore


def get_store(request: Request) -> SchedulingStore:
    """Store bound to the session maker built at startup."""
    return SqlSchedulingStore(request.app.state.session_maker)


def get_lock_manager(request: Request) -> BookingLockManager:
    return request.app.state.lock_manager
