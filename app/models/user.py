from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class UserBase(SQLModel):
    username: str = Field(unique=True, index=True)
    email: str = Field(unique=True, index=True)


class User(UserBase, table=True):
    """An organizer. Registration and auth live outside this service."""

    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    deleted_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class OrganizerPublic(SQLModel):
    id: int
    username: str
    email: str
