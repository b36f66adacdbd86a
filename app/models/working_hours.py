from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class WorkingHours(SQLModel, table=True):
    """A recurring weekly block in the organizer's wall-clock time."""

    __tablename__ = "working_hours"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday, 6 = Saturday
    start_time: str  # "HH:mm"
    end_time: str  # "HH:mm"
    is_active: bool = True
    deleted_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
