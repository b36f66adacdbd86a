"""Error taxonomy for the scheduling core.

Every error carries the HTTP status it renders as, so the API layer can map
them with a single exception handler.
"""

from fastapi import status


class SchedulingError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Scheduling request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SchedulingError):
    """Malformed time range or missing/invalid field."""

    status_code = 422  # constant name differs across Starlette releases
    default_message = "Please correct the highlighted fields"


class NotFoundError(SchedulingError):
    """Organizer, settings or booking absent."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(SchedulingError):
    """Lock not acquired, or the slot vanished on revalidation. Retryable."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "This time slot is no longer available. Please pick another."
    retryable = True


class PermissionDeniedError(SchedulingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You don't have permission to modify this booking"


class BookingPersistenceError(SchedulingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to save booking"
