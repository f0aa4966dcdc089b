import uuid
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator

from tasktrack.models.status import TaskPriority, TaskStatus


def _naive_utc(value: datetime | None) -> datetime | None:
    """Stored timestamps are naive UTC; convert aware input instead of rejecting it."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TaskCreate(BaseModel):
    """Schema for creating a new task. Status is always PENDING on creation."""
    title: str = Field(min_length=3, max_length=255)
    description: str = Field(min_length=10, max_length=2000)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime
    estimated_hours: int | None = Field(default=None, ge=0, le=999)
    notes: str | None = Field(default=None, max_length=1000)
    assignee_ids: list[uuid.UUID] = Field(default_factory=list)
    project_id: uuid.UUID | None = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return _naive_utc(value)


class TaskUpdate(BaseModel):
    """
    Schema for a partial task update.

    Omitted or null fields are left untouched. assignee_ids replaces the whole
    roster; an explicit empty list unassigns everyone. status is an
    administrative override and skips the transition guards.
    """
    title: str | None = Field(default=None, min_length=3, max_length=255)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    estimated_hours: int | None = Field(default=None, ge=0, le=999)
    notes: str | None = Field(default=None, max_length=1000)
    assignee_ids: list[uuid.UUID] | None = None
    project_id: uuid.UUID | None = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return _naive_utc(value)


class TaskBlock(BaseModel):
    """Body for the block verb."""
    reason: str = Field(min_length=1, max_length=500)


class TaskRead(BaseModel):
    """Snapshot of a task with its roster as a list of person ids."""
    id: uuid.UUID
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime
    start_date: datetime | None
    completed_at: datetime | None
    estimated_hours: int | None
    notes: str | None
    project_id: uuid.UUID | None
    assignee_ids: list[uuid.UUID]
    is_overdue: bool
    deleted: bool
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
