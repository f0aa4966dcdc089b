import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship

from tasktrack.models.base import NaiveUTC, utcnow

if TYPE_CHECKING:
    from tasktrack.models.task import Task

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB


class Attachment(SQLModel, table=True):
    """File metadata for a task. The bytes live in external storage."""

    __tablename__ = "attachments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    original_filename: str = Field(max_length=255)
    stored_filename: str = Field(max_length=500)
    file_path: str = Field(max_length=1000)
    content_type: str = Field(max_length=100, index=True)
    file_size: int = Field(ge=1, le=MAX_FILE_SIZE)
    description: str | None = Field(default=None, max_length=500)
    uploaded_by: uuid.UUID = Field(foreign_key="persons.id")

    # Foreign keys
    task_id: uuid.UUID = Field(foreign_key="tasks.id", index=True, ondelete="CASCADE")

    uploaded_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)

    # Relationships
    task: "Task" = Relationship(back_populates="attachments")
