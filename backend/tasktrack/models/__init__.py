# SQLModel definitions - imported here so SQLModel.metadata is complete before create_all.
from tasktrack.models.status import TaskStatus, TaskPriority  # noqa: F401
from tasktrack.models.person import Person  # noqa: F401
from tasktrack.models.project import Project  # noqa: F401
from tasktrack.models.assignee import TaskAssignee  # noqa: F401
from tasktrack.models.task import Task  # noqa: F401
from tasktrack.models.comment import Comment  # noqa: F401
from tasktrack.models.attachment import Attachment  # noqa: F401

__all__ = [
    "TaskStatus",
    "TaskPriority",
    "Person",
    "Project",
    "TaskAssignee",
    "Task",
    "Comment",
    "Attachment",
]
