import uuid
from datetime import date, datetime
from sqlmodel import SQLModel, Field

from tasktrack.models.base import NaiveUTC, utcnow


class Project(SQLModel, table=True):
    """
    Project model - groups tasks together.

    Archived projects (active=False) are not valid targets for task
    creation or reassignment. owner_id survives the owner's soft delete.
    """

    __tablename__ = "projects"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=100)
    description: str | None = Field(default=None)
    active: bool = Field(default=True, index=True)
    start_date: date | None = Field(default=None)
    end_date: date | None = Field(default=None)

    # Foreign keys
    owner_id: uuid.UUID = Field(foreign_key="persons.id", index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)
