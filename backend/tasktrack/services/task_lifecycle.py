"""
Task lifecycle service.

Owns creation, partial update, deletion and the status verbs of tasks.
Validation happens before anything is written: a rejected request leaves no
task row and no roster rows behind. Functions only flush; the caller's
session commits or rolls back the whole unit of work.
"""

import uuid
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.config import get_settings
from tasktrack.exceptions import (
    BusinessRuleViolationError,
    PersonNotFoundError,
    ProjectNotFoundError,
    TaskNotFoundError,
)
from tasktrack.logging_config import get_logger
from tasktrack.models import Person, Task, TaskStatus
from tasktrack.models.base import utcnow
from tasktrack.models.status import is_guarded_transition
from tasktrack.schemas import TaskCreate, TaskRead, TaskUpdate
from tasktrack.services import lookups

logger = get_logger(__name__)


async def build_task_read(session: AsyncSession, task: Task) -> TaskRead:
    """
    Snapshot a task for the outside world.

    The roster comes from an explicit join query so that soft-deleted
    persons never show up, whatever the loaded collection holds.
    """
    assignees = await lookups.find_assignees(session, task.id)
    return TaskRead(
        **task.model_dump(),
        assignee_ids=[person.id for person in assignees],
        is_overdue=task.is_overdue,
    )


async def resolve_assignees(
    session: AsyncSession,
    assignee_ids: Iterable[uuid.UUID],
) -> list[Person]:
    """
    Turn a list of person ids into a validated roster.

    Duplicates collapse. Fails with:
    - BusinessRuleViolationError if the roster would exceed the configured cap
    - PersonNotFoundError naming every id that is unknown or soft-deleted
    - BusinessRuleViolationError naming every inactive person
    """
    unique_ids = list(dict.fromkeys(assignee_ids))
    if not unique_ids:
        return []

    max_assignees = get_settings().max_assignees_per_task
    if len(unique_ids) > max_assignees:
        raise BusinessRuleViolationError(
            f"A task can have at most {max_assignees} assignees, got {len(unique_ids)}",
            offending=unique_ids,
        )

    persons = await lookups.find_persons_by_ids(session, unique_ids)
    found_ids = {person.id for person in persons}
    missing = [pid for pid in unique_ids if pid not in found_ids]
    if missing:
        raise PersonNotFoundError(missing)

    inactive = sorted(person.username for person in persons if not person.active)
    if inactive:
        raise BusinessRuleViolationError(
            f"Cannot assign inactive persons: {', '.join(inactive)}",
            offending=inactive,
        )

    return persons


async def _require_active_project(session: AsyncSession, project_id: uuid.UUID) -> None:
    if await lookups.find_active_project(session, project_id) is None:
        raise ProjectNotFoundError(project_id)


async def _load_task(
    session: AsyncSession,
    task_id: uuid.UUID,
    include_deleted: bool = False,
) -> Task:
    # populate_existing: bulk roster statements bypass the identity map
    task = await session.get(Task, task_id, populate_existing=True)
    if task is None or (task.deleted and not include_deleted):
        raise TaskNotFoundError(task_id)
    return task


# =============================================================================
# CRUD
# =============================================================================

async def create_task(session: AsyncSession, task_in: TaskCreate) -> TaskRead:
    """
    Create a task in PENDING with the given roster.

    Steps:
    1. Resolve every assignee id in one batch
    2. Reject inactive assignees
    3. Check the project exists and is active (when given)
    4. Persist and return a fresh snapshot
    """
    assignees = await resolve_assignees(session, task_in.assignee_ids)
    if task_in.project_id is not None:
        await _require_active_project(session, task_in.project_id)

    task = Task(
        **task_in.model_dump(exclude={"assignee_ids"}),
        status=TaskStatus.PENDING,
    )
    task.replace_assignees(assignees)

    session.add(task)
    await session.flush()

    logger.info(
        f"Created task: id={task.id} title='{task.title}' "
        f"assignees={task.assignee_count} project={task.project_id}"
    )
    return await build_task_read(session, task)


async def get_task(session: AsyncSession, task_id: uuid.UUID) -> TaskRead:
    task = await _load_task(session, task_id)
    return await build_task_read(session, task)


async def update_task(
    session: AsyncSession,
    task_id: uuid.UUID,
    task_in: TaskUpdate,
) -> TaskRead:
    """
    Partial update. Only fields that were supplied with a non-null value change.

    - assignee_ids replaces the roster (an empty list clears it); an
      UNASSIGNED task that gets assignees back returns to PENDING
    - project_id is validated only when it differs from the current one
    - status is an administrative override of the guarded verbs
    """
    task = await _load_task(session, task_id)
    changes = task_in.model_dump(exclude_unset=True, exclude_none=True)

    # Validate everything before touching the task
    new_roster = None
    if "assignee_ids" in changes:
        new_roster = await resolve_assignees(session, changes.pop("assignee_ids"))

    new_project_id = changes.pop("project_id", None)
    if new_project_id is not None and new_project_id != task.project_id:
        await _require_active_project(session, new_project_id)
        task.project_id = new_project_id

    new_status = changes.pop("status", None)

    for field, value in changes.items():
        setattr(task, field, value)

    if new_roster is not None:
        task.replace_assignees(new_roster)
        if new_status is None:
            task.mark_staffed()

    if new_status is not None and new_status != task.current_status:
        if not is_guarded_transition(task.current_status, new_status):
            logger.warning(
                f"Status override outside the guarded transitions: task={task.id} "
                f"{task.current_status.value} -> {new_status.value}"
            )
        task.override_status(new_status)

    task.updated_at = utcnow()
    session.add(task)
    await session.flush()

    logger.info(f"Updated task: id={task.id} fields={sorted(task_in.model_fields_set)}")
    return await build_task_read(session, task)


async def delete_task(session: AsyncSession, task_id: uuid.UUID) -> None:
    """
    Hard delete. Comments, attachments and roster rows go with the task;
    the assigned persons are untouched.
    """
    task = await _load_task(session, task_id, include_deleted=True)
    await session.delete(task)
    await session.flush()

    logger.info(f"Hard-deleted task: id={task_id}")


async def soft_delete_task(session: AsyncSession, task_id: uuid.UUID) -> None:
    task = await _load_task(session, task_id, include_deleted=True)
    task.soft_delete()
    session.add(task)
    await session.flush()

    logger.info(f"Soft-deleted task: id={task_id}")


async def restore_task(session: AsyncSession, task_id: uuid.UUID) -> TaskRead:
    task = await _load_task(session, task_id, include_deleted=True)
    task.restore()
    session.add(task)
    await session.flush()

    logger.info(f"Restored task: id={task_id}")
    return await build_task_read(session, task)


# =============================================================================
# Status verbs
# =============================================================================

async def _apply_verb(session: AsyncSession, task_id: uuid.UUID, verb: str, *args) -> TaskRead:
    task = await _load_task(session, task_id)
    previous = task.current_status

    getattr(task, verb)(*args)
    task.updated_at = utcnow()

    session.add(task)
    await session.flush()

    logger.info(f"Task {verb}: id={task.id} {previous.value} -> {task.current_status.value}")
    return await build_task_read(session, task)


async def start_task(session: AsyncSession, task_id: uuid.UUID) -> TaskRead:
    return await _apply_verb(session, task_id, "start")


async def complete_task(session: AsyncSession, task_id: uuid.UUID) -> TaskRead:
    return await _apply_verb(session, task_id, "complete")


async def block_task(session: AsyncSession, task_id: uuid.UUID, reason: str) -> TaskRead:
    return await _apply_verb(session, task_id, "block", reason)


async def cancel_task(session: AsyncSession, task_id: uuid.UUID) -> TaskRead:
    return await _apply_verb(session, task_id, "cancel")
