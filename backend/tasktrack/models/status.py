"""
Task lifecycle states and priorities.

Guarded transitions (enforced by the verbs on Task):

    PENDING ──start──> IN_PROGRESS ──complete──> COMPLETED
       │                  │    ^
       │                block  start
       │                  v    │
       └───────block────> BLOCKED

    cancel: any state except COMPLETED ──> CANCELLED

UNASSIGNED is a marker written by person deletion when a task loses its last
assignee. It is neither terminal nor actionable.
"""

from enum import Enum


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"
    CANCELLED = "CANCELLED"
    UNASSIGNED = "UNASSIGNED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)

    @property
    def is_actionable(self) -> bool:
        return self in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


# Source states each guarded verb accepts
START_FROM = frozenset({TaskStatus.PENDING, TaskStatus.BLOCKED})
COMPLETE_FROM = frozenset({TaskStatus.IN_PROGRESS})
BLOCK_FROM = frozenset(s for s in TaskStatus if not s.is_terminal)
CANCEL_FROM = frozenset(s for s in TaskStatus if s is not TaskStatus.COMPLETED)

VALID_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    source: frozenset(
        target
        for target, allowed in (
            (TaskStatus.IN_PROGRESS, START_FROM),
            (TaskStatus.COMPLETED, COMPLETE_FROM),
            (TaskStatus.BLOCKED, BLOCK_FROM),
            (TaskStatus.CANCELLED, CANCEL_FROM),
        )
        if source in allowed
    )
    for source in TaskStatus
}


def is_guarded_transition(current: TaskStatus, target: TaskStatus) -> bool:
    """True if one of the guarded verbs could move `current` to `target`."""
    return target in VALID_TRANSITIONS.get(current, frozenset())


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def level(self) -> int:
        return _PRIORITY_LEVELS[self]

    def is_higher_than(self, other: "TaskPriority") -> bool:
        return self.level > other.level


_PRIORITY_LEVELS = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
    TaskPriority.CRITICAL: 4,
}
