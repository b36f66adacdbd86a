from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.errors import ValidationError
from app.models.organizer_settings import OrganizerSettings


@dataclass(frozen=True)
class TimeWindow:
    """Scheduling window: local midnight today up to (not including) local
    midnight ``max_booking_advance`` days later."""

    start_local: datetime
    end_local: datetime
    start_utc: datetime
    end_utc: datetime

    @property
    def days(self) -> int:
        return (self.end_local.date() - self.start_local.date()).days


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown timezone: {name!r}") from e


def local_midnight(d, tz: ZoneInfo) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=tz)


def compute_time_window(settings: OrganizerSettings, now: datetime | None = None) -> TimeWindow:
    tz = get_zone(settings.working_timezone)
    now = now or datetime.now(UTC)
    today = now.astimezone(tz).date()

    # Count calendar days, not elapsed hours, so DST shifts don't move the end
    start_local = local_midnight(today, tz)
    end_local = local_midnight(today + timedelta(days=settings.max_booking_advance), tz)

    return TimeWindow(
        start_local=start_local,
        end_local=end_local,
        start_utc=start_local.astimezone(UTC),
        end_utc=end_local.astimezone(UTC),
    )
