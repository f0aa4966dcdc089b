import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field

from tasktrack.models.base import NaiveUTC, utcnow


class Person(SQLModel, table=True):
    """
    A person who can be assigned to tasks, author comments and own projects.

    Soft delete keeps the row so that comments and projects can still point
    at it; deleted_at/deleted_by are only written by the person deletion
    coordinator.

    Equality and hashing use the id, which makes a task roster a set keyed
    by person identity.
    """

    __tablename__ = "persons"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=50)
    email: str = Field(unique=True, index=True, max_length=100)
    full_name: str = Field(max_length=100)
    password_hash: str = Field(max_length=255)
    active: bool = Field(default=True)
    last_login_at: datetime | None = Field(default=None, sa_type=NaiveUTC)

    # Soft delete
    deleted: bool = Field(default=False, index=True)
    deleted_at: datetime | None = Field(default=None, sa_type=NaiveUTC)
    deleted_by: uuid.UUID | None = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NaiveUTC)

    def __eq__(self, other):
        if not isinstance(other, Person):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Person(id={self.id}, username={self.username!r})"
