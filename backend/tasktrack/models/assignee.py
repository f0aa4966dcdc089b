import uuid
from sqlmodel import SQLModel, Field


class TaskAssignee(SQLModel, table=True):
    """
    Roster join row: person_id is assigned to task_id.

    Composite primary key, so a person appears at most once per roster.
    """

    __tablename__ = "task_assignees"

    task_id: uuid.UUID = Field(
        foreign_key="tasks.id",
        primary_key=True,
        ondelete="CASCADE",
    )
    person_id: uuid.UUID = Field(
        foreign_key="persons.id",
        primary_key=True,
        index=True,
    )
