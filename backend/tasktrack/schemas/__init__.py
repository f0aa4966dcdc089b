from tasktrack.schemas.task import TaskCreate, TaskUpdate, TaskRead, TaskBlock
from tasktrack.schemas.person import PersonCreate, PersonUpdate, PersonRead, PersonDeletionReport

__all__ = [
    "TaskCreate",
    "TaskUpdate",
    "TaskRead",
    "TaskBlock",
    "PersonCreate",
    "PersonUpdate",
    "PersonRead",
    "PersonDeletionReport",
]
