import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Iterable
from sqlmodel import SQLModel, Field, Relationship

from tasktrack.exceptions import (
    AlreadyDeletedError,
    InvalidArgumentError,
    InvalidStateTransitionError,
    NotDeletedError,
)
from tasktrack.models.assignee import TaskAssignee
from tasktrack.models.base import NaiveUTC, utcnow
from tasktrack.models.person import Person
from tasktrack.models.status import (
    BLOCK_FROM,
    CANCEL_FROM,
    COMPLETE_FROM,
    START_FROM,
    TaskPriority,
    TaskStatus,
)

if TYPE_CHECKING:
    from tasktrack.models.comment import Comment
    from tasktrack.models.attachment import Attachment

NOTES_MAX_LENGTH = 1000


class Task(SQLModel, table=True):
    """
    Task aggregate: status machine, assignee roster and soft-delete flags.

    Key rules:
    - status only moves through the guarded verbs (start/complete/block/cancel),
      except for the explicit administrative override_status()
    - completed_at is set iff status is COMPLETED
    - the roster is a set of Person keyed by person id; the aggregate does not
      cap its size (the lifecycle service enforces the limit)
    - deleted/deleted_at are only written by soft_delete()/restore()
    """

    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(index=True, min_length=3, max_length=255)
    description: str = Field(min_length=10, max_length=2000)
    status: TaskStatus = Field(default=TaskStatus.PENDING, index=True)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, index=True)
    due_date: datetime = Field(index=True, sa_type=NaiveUTC)
    start_date: datetime | None = Field(default=None, sa_type=NaiveUTC)
    completed_at: datetime | None = Field(default=None, sa_type=NaiveUTC)
    estimated_hours: int | None = Field(default=None, ge=0, le=999)
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)

    # Foreign keys
    project_id: uuid.UUID | None = Field(default=None, foreign_key="projects.id", index=True)

    # Soft delete
    deleted: bool = Field(default=False, index=True)
    deleted_at: datetime | None = Field(default=None, index=True, sa_type=NaiveUTC)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)

    # Relationships
    # Set-backed; mutate through the roster methods below.
    assignees: list[Person] = Relationship(
        link_model=TaskAssignee,
        sa_relationship_kwargs={"lazy": "selectin", "collection_class": set},
    )

    comments: list["Comment"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    attachments: list["Attachment"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    # -------------------------------------------------------------------------
    # Status machine
    # -------------------------------------------------------------------------

    @property
    def current_status(self) -> TaskStatus:
        return TaskStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.current_status.is_terminal

    @property
    def is_actionable(self) -> bool:
        return self.current_status.is_actionable

    @property
    def is_overdue(self) -> bool:
        """Due date has passed and the task is still open."""
        return not self.is_terminal and utcnow() > self.due_date

    @property
    def hours_until_due(self) -> int:
        """Whole hours left until the due date (negative once overdue)."""
        return int((self.due_date - utcnow()).total_seconds() // 3600)

    def _require(self, allowed: frozenset, action: str) -> None:
        if self.current_status not in allowed:
            raise InvalidStateTransitionError(self.id, self.current_status.value, action)

    def start(self) -> None:
        """PENDING or BLOCKED -> IN_PROGRESS, stamping start_date."""
        self._require(START_FROM, "start")
        self.status = TaskStatus.IN_PROGRESS
        self.start_date = utcnow()

    def complete(self) -> None:
        """IN_PROGRESS -> COMPLETED, stamping completed_at."""
        self._require(COMPLETE_FROM, "complete")
        self.status = TaskStatus.COMPLETED
        self.completed_at = utcnow()

    def block(self, reason: str) -> None:
        """
        Any non-terminal state -> BLOCKED.

        The reason is appended to notes as a timestamped line. When notes would
        exceed NOTES_MAX_LENGTH the oldest text is dropped.
        """
        self._require(BLOCK_FROM, "block")
        if reason is None or not reason.strip():
            raise InvalidArgumentError("Block reason is required", field="reason")

        line = f"[{utcnow():%Y-%m-%d %H:%M}] BLOCKED: {reason.strip()}"
        notes = f"{self.notes}\n{line}" if self.notes else line
        self.notes = notes[-NOTES_MAX_LENGTH:]
        self.status = TaskStatus.BLOCKED

    def cancel(self) -> None:
        """Any state except COMPLETED -> CANCELLED."""
        self._require(CANCEL_FROM, "cancel")
        self.status = TaskStatus.CANCELLED

    def override_status(self, new_status: TaskStatus) -> None:
        """
        Administrative status correction that bypasses the guarded verbs.

        Any status may be written, including moves the verbs reject (e.g.
        reopening a COMPLETED task). Only the completed_at invariant is
        re-derived: set when entering COMPLETED, cleared when leaving it.
        start_date is not touched.
        """
        new_status = TaskStatus(new_status)
        old_status = self.current_status

        if new_status is TaskStatus.COMPLETED and old_status is not TaskStatus.COMPLETED:
            self.completed_at = utcnow()
        elif old_status is TaskStatus.COMPLETED and new_status is not TaskStatus.COMPLETED:
            self.completed_at = None

        self.status = new_status

    # -------------------------------------------------------------------------
    # Roster
    # -------------------------------------------------------------------------

    @property
    def roster(self) -> frozenset[Person]:
        """Read-only view of the current assignees."""
        return frozenset(self.assignees)

    @property
    def assignee_count(self) -> int:
        return len(self.assignees)

    @property
    def is_unassigned(self) -> bool:
        return not self.assignees

    @property
    def has_multiple_assignees(self) -> bool:
        return len(self.assignees) > 1

    def is_assigned_to(self, person: Person | None) -> bool:
        return person is not None and person in self.assignees

    def add_assignee(self, person: Person) -> None:
        """Add person to the roster. Adding someone already assigned is a no-op."""
        if person is None:
            raise InvalidArgumentError("Assignee cannot be None", field="assignee")
        self.assignees.add(person)

    def remove_assignee(self, person: Person) -> None:
        if person is not None:
            self.assignees.discard(person)

    def clear_assignees(self) -> None:
        self.assignees.clear()

    def replace_assignees(self, persons: Iterable[Person]) -> None:
        """Swap the whole roster. Validates every entry before touching it."""
        if persons is None:
            raise InvalidArgumentError("Roster cannot be None", field="assignees")
        new_roster = list(persons)
        if any(person is None for person in new_roster):
            raise InvalidArgumentError("Roster cannot contain None entries", field="assignees")
        self.assignees = set(new_roster)

    def mark_staffed(self) -> None:
        """UNASSIGNED -> PENDING once the roster is non-empty again. No-op otherwise."""
        if self.current_status is TaskStatus.UNASSIGNED and self.assignees:
            self.status = TaskStatus.PENDING

    # -------------------------------------------------------------------------
    # Soft delete
    # -------------------------------------------------------------------------

    def soft_delete(self) -> None:
        if self.deleted:
            raise AlreadyDeletedError("Task", self.id, self.title)
        self.deleted = True
        self.deleted_at = utcnow()

    def restore(self) -> None:
        if not self.deleted:
            raise NotDeletedError("Task", self.id, self.title)
        self.deleted = False
        self.deleted_at = None
