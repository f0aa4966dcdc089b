import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship

from tasktrack.models.base import NaiveUTC, utcnow

if TYPE_CHECKING:
    from tasktrack.models.task import Task


class Comment(SQLModel, table=True):
    """
    Discussion entry on a task.

    Owned by its task (deleted with it). author_id is never nulled, even
    when the author is soft-deleted, so past discussion stays attributed.
    """

    __tablename__ = "comments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    text: str = Field(min_length=1, max_length=2000)
    edited: bool = Field(default=False)

    # Foreign keys
    task_id: uuid.UUID = Field(foreign_key="tasks.id", index=True, ondelete="CASCADE")
    author_id: uuid.UUID = Field(foreign_key="persons.id", index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)

    # Relationships
    task: "Task" = Relationship(back_populates="comments")
