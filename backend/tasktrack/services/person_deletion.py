"""
Person deletion coordinator.

Deleting a person is a soft delete. The row stays so that authored comments
and owned projects keep a valid reference; only roster membership is removed,
in bulk statements rather than a per-task loop.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.exceptions import AlreadyDeletedError, NotDeletedError, PersonNotFoundError
from tasktrack.logging_config import get_logger
from tasktrack.models import Person
from tasktrack.models.base import utcnow
from tasktrack.schemas import PersonDeletionReport
from tasktrack.services import lookups

logger = get_logger(__name__)


async def delete_person(
    session: AsyncSession,
    person_id: uuid.UUID,
    deleted_by: uuid.UUID | None = None,
) -> PersonDeletionReport:
    """
    Soft-delete a person and take them off every roster.

    Steps:
    1. Resolve the person, deleted rows included, so a second delete is
       reported as AlreadyDeletedError rather than not found
    2. Measure the blast radius (assigned tasks, comments, owned projects)
    3. Bulk-remove roster rows; tasks left with nobody become UNASSIGNED
    4. Flag the person deleted

    Comments keep their author_id and projects keep their owner_id.
    """
    person = await lookups.find_person_including_deleted(session, person_id)
    if person is None:
        raise PersonNotFoundError(person_id)
    if person.deleted:
        raise AlreadyDeletedError("Person", person.id, person.username)

    task_count = await lookups.count_tasks_assigned_to(session, person.id)
    comment_count = await lookups.count_comments_authored_by(session, person.id)
    project_count = await lookups.count_projects_owned_by(session, person.id)

    logger.info(
        f"Deleting person {person.username} (id={person.id}): "
        f"tasks={task_count} comments={comment_count} projects={project_count} "
        f"by={deleted_by}"
    )

    removed = await lookups.unassign_all_tasks_for_person(session, person.id)

    now = utcnow()
    person.deleted = True
    person.deleted_at = now
    person.deleted_by = deleted_by
    person.updated_at = now
    session.add(person)
    await session.flush()

    if comment_count or project_count:
        logger.info(
            f"Kept references to deleted person {person.id}: "
            f"comments={comment_count} projects={project_count}"
        )

    return PersonDeletionReport(
        person_id=person.id,
        deleted_at=now,
        deleted_by=deleted_by,
        tasks_unassigned=removed,
        comments_retained=comment_count,
        projects_retained=project_count,
    )


async def restore_person(session: AsyncSession, person_id: uuid.UUID) -> Person:
    """
    Clear the deletion flags. Roster membership removed by the delete is
    not given back.
    """
    person = await lookups.find_person_including_deleted(session, person_id)
    if person is None:
        raise PersonNotFoundError(person_id)
    if not person.deleted:
        raise NotDeletedError("Person", person.id, person.username)

    person.deleted = False
    person.deleted_at = None
    person.deleted_by = None
    person.updated_at = utcnow()
    session.add(person)
    await session.flush()

    logger.info(f"Restored person {person.username} (id={person.id})")
    return person
