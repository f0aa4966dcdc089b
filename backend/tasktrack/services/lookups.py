"""
Store lookups used by the task lifecycle service and the person deletion
coordinator.

Every query states its own deleted/active filter. Nothing here relies on an
implicit session-wide filter, so a soft-deleted person can still be found by
the calls that need it (restore, re-delete detection).
"""

import uuid
from typing import Iterable

from sqlalchemy import delete, exists, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from tasktrack.logging_config import get_logger
from tasktrack.models import Comment, Person, Project, Task, TaskAssignee, TaskStatus
from tasktrack.models.base import utcnow

logger = get_logger(__name__)

TERMINAL_STATUSES = [status for status in TaskStatus if status.is_terminal]


# =============================================================================
# Persons
# =============================================================================

async def find_person(session: AsyncSession, person_id: uuid.UUID) -> Person | None:
    """Non-deleted person by id."""
    result = await session.execute(
        select(Person).where(Person.id == person_id, col(Person.deleted).is_(False))
    )
    return result.scalar_one_or_none()


async def find_person_including_deleted(
    session: AsyncSession,
    person_id: uuid.UUID,
) -> Person | None:
    result = await session.execute(select(Person).where(Person.id == person_id))
    return result.scalar_one_or_none()


async def find_persons_by_ids(
    session: AsyncSession,
    person_ids: Iterable[uuid.UUID],
) -> list[Person]:
    """
    Batch lookup of non-deleted persons in a single query.

    Ids that do not resolve are simply absent from the result; callers diff
    the input against it to report every missing id at once.
    """
    ids = list(person_ids)
    if not ids:
        return []

    result = await session.execute(
        select(Person).where(col(Person.id).in_(ids), col(Person.deleted).is_(False))
    )
    return list(result.scalars().all())


async def person_exists(session: AsyncSession, person_id: uuid.UUID) -> bool:
    result = await session.execute(
        select(func.count())
        .select_from(Person)
        .where(Person.id == person_id, col(Person.deleted).is_(False))
    )
    return result.scalar_one() > 0


async def find_person_by_username(session: AsyncSession, username: str) -> Person | None:
    """Person by username, deleted rows included (usernames stay reserved)."""
    result = await session.execute(select(Person).where(Person.username == username))
    return result.scalar_one_or_none()


async def find_person_by_email(session: AsyncSession, email: str) -> Person | None:
    """Person by email, deleted rows included (emails stay reserved)."""
    result = await session.execute(select(Person).where(Person.email == email))
    return result.scalar_one_or_none()


async def list_persons(session: AsyncSession, active: bool | None = None) -> list[Person]:
    """Non-deleted persons ordered by username, optionally filtered on the active flag."""
    query = select(Person).where(col(Person.deleted).is_(False))
    if active is not None:
        query = query.where(col(Person.active).is_(active))
    result = await session.execute(query.order_by(col(Person.username)))
    return list(result.scalars().all())


# =============================================================================
# Projects
# =============================================================================

async def find_active_project(session: AsyncSession, project_id: uuid.UUID) -> Project | None:
    """Project by id, only if it has not been archived."""
    result = await session.execute(
        select(Project).where(Project.id == project_id, col(Project.active).is_(True))
    )
    return result.scalar_one_or_none()


# =============================================================================
# Rosters
# =============================================================================

async def find_assignees(session: AsyncSession, task_id: uuid.UUID) -> list[Person]:
    """
    Current roster of a task, read through an explicit join.

    Soft-deleted persons are excluded here rather than by a global filter.
    """
    result = await session.execute(
        select(Person)
        .join(TaskAssignee, col(TaskAssignee.person_id) == col(Person.id))
        .where(TaskAssignee.task_id == task_id, col(Person.deleted).is_(False))
        .order_by(col(Person.username))
    )
    return list(result.scalars().all())


async def unassign_all_tasks_for_person(session: AsyncSession, person_id: uuid.UUID) -> int:
    """
    Remove a person from every roster in set-oriented statements.

    1. Collect the affected task ids
    2. Delete all of the person's roster rows in one statement
    3. Flip affected tasks that are left with an empty roster to UNASSIGNED,
       unless they are already COMPLETED or CANCELLED

    Returns the number of roster rows removed. The statements bypass the
    identity map; callers that hold Task objects must refresh them.
    """
    affected_result = await session.execute(
        select(TaskAssignee.task_id).where(TaskAssignee.person_id == person_id)
    )
    affected_ids = list(affected_result.scalars().all())
    if not affected_ids:
        return 0

    removed = await session.execute(
        delete(TaskAssignee)
        .where(col(TaskAssignee.person_id) == person_id)
        .execution_options(synchronize_session=False)
    )

    still_staffed = exists().where(col(TaskAssignee.task_id) == col(Task.id))
    flipped = await session.execute(
        update(Task)
        .where(
            col(Task.id).in_(affected_ids),
            ~still_staffed,
            col(Task.status).notin_(TERMINAL_STATUSES),
        )
        .values(status=TaskStatus.UNASSIGNED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )

    logger.debug(
        f"Unassigned person={person_id}: roster_rows={removed.rowcount} "
        f"tasks={len(affected_ids)} now_unassigned={flipped.rowcount}"
    )
    return removed.rowcount


# =============================================================================
# Blast-radius counts
# =============================================================================

async def count_tasks_assigned_to(session: AsyncSession, person_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(TaskAssignee).where(TaskAssignee.person_id == person_id)
    )
    return result.scalar_one()


async def count_comments_authored_by(session: AsyncSession, person_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Comment).where(Comment.author_id == person_id)
    )
    return result.scalar_one()


async def count_projects_owned_by(session: AsyncSession, person_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Project).where(Project.owner_id == person_id)
    )
    return result.scalar_one()
