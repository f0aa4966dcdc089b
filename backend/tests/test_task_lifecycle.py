"""
Task Lifecycle Service Tests.

Run the service functions against an in-memory SQLite database. Failures
must be raised before anything is written; successful calls return a fresh
snapshot whose roster was read back through the join table.
"""

import logging
import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func
from sqlmodel import select

from tasktrack.exceptions import (
    AlreadyDeletedError,
    BusinessRuleViolationError,
    InvalidArgumentError,
    InvalidStateTransitionError,
    NotDeletedError,
    PersonNotFoundError,
    ProjectNotFoundError,
    TaskNotFoundError,
)
from tasktrack.models import Attachment, Comment, Person, Task, TaskAssignee, TaskPriority, TaskStatus
from tasktrack.models.base import utcnow
from tasktrack.schemas import TaskCreate, TaskUpdate
from tasktrack.services import person_deletion, task_lifecycle


def task_payload(**overrides) -> TaskCreate:
    fields = {
        "title": "Migrate billing service",
        "description": "Move billing onto the new payments provider.",
        "due_date": utcnow() + timedelta(days=14),
    }
    fields.update(overrides)
    return TaskCreate(**fields)


async def count_rows(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestCreateTask:

    @pytest.mark.asyncio
    async def test_create_with_assignees_starts_pending(self, test_session, make_person):
        alice = await make_person("alice")
        bob = await make_person("bob")

        task = await task_lifecycle.create_task(
            test_session,
            task_payload(assignee_ids=[alice.id, bob.id], priority=TaskPriority.HIGH),
        )

        assert task.status == TaskStatus.PENDING
        assert task.priority == TaskPriority.HIGH
        assert set(task.assignee_ids) == {alice.id, bob.id}
        assert task.completed_at is None
        assert task.deleted is False

    @pytest.mark.asyncio
    async def test_create_without_assignees(self, test_session):
        task = await task_lifecycle.create_task(test_session, task_payload())

        assert task.status == TaskStatus.PENDING
        assert task.assignee_ids == []

    @pytest.mark.asyncio
    async def test_duplicate_assignee_ids_collapse(self, test_session, make_person):
        alice = await make_person("alice")

        task = await task_lifecycle.create_task(
            test_session,
            task_payload(assignee_ids=[alice.id, alice.id, alice.id]),
        )

        assert task.assignee_ids == [alice.id]
        assert await count_rows(test_session, TaskAssignee) == 1

    @pytest.mark.asyncio
    async def test_one_unknown_assignee_names_exactly_that_id(self, test_session, make_person):
        alice = await make_person("alice")
        ghost_id = uuid.uuid4()

        with pytest.raises(PersonNotFoundError) as exc_info:
            await task_lifecycle.create_task(
                test_session,
                task_payload(assignee_ids=[alice.id, ghost_id]),
            )

        assert exc_info.value.missing_ids == [str(ghost_id)]
        assert str(ghost_id) in exc_info.value.message
        assert str(alice.id) not in exc_info.value.message
        assert await count_rows(test_session, Task) == 0
        assert await count_rows(test_session, TaskAssignee) == 0

    @pytest.mark.asyncio
    async def test_every_unknown_assignee_is_reported(self, test_session):
        missing = [uuid.uuid4(), uuid.uuid4()]

        with pytest.raises(PersonNotFoundError) as exc_info:
            await task_lifecycle.create_task(test_session, task_payload(assignee_ids=missing))

        assert exc_info.value.missing_ids == [str(pid) for pid in missing]
        assert len(exc_info.value.details) == 2

    @pytest.mark.asyncio
    async def test_soft_deleted_person_cannot_be_assigned(self, test_session, make_person):
        alice = await make_person("alice")
        alice.deleted = True
        alice.deleted_at = utcnow()
        await test_session.commit()

        with pytest.raises(PersonNotFoundError):
            await task_lifecycle.create_task(test_session, task_payload(assignee_ids=[alice.id]))

    @pytest.mark.asyncio
    async def test_inactive_assignee_is_rejected_before_persisting(self, test_session, make_person):
        alice = await make_person("alice")
        dormant = await make_person("dormant", active=False)

        with pytest.raises(BusinessRuleViolationError) as exc_info:
            await task_lifecycle.create_task(
                test_session,
                task_payload(assignee_ids=[alice.id, dormant.id]),
            )

        assert exc_info.value.offending == ["dormant"]
        assert "dormant" in exc_info.value.message
        assert await count_rows(test_session, Task) == 0

    @pytest.mark.asyncio
    async def test_roster_size_is_capped(self, test_session, make_person):
        people = [await make_person() for _ in range(11)]

        with pytest.raises(BusinessRuleViolationError):
            await task_lifecycle.create_task(
                test_session,
                task_payload(assignee_ids=[p.id for p in people]),
            )

        task = await task_lifecycle.create_task(
            test_session,
            task_payload(assignee_ids=[p.id for p in people[:10]]),
        )
        assert len(task.assignee_ids) == 10

    @pytest.mark.asyncio
    async def test_project_must_be_active(self, test_session, make_person, make_project):
        owner = await make_person("owner")
        active = await make_project(owner, name="Live")
        archived = await make_project(owner, name="Old", active=False)

        task = await task_lifecycle.create_task(test_session, task_payload(project_id=active.id))
        assert task.project_id == active.id

        with pytest.raises(ProjectNotFoundError):
            await task_lifecycle.create_task(test_session, task_payload(project_id=archived.id))

        with pytest.raises(ProjectNotFoundError):
            await task_lifecycle.create_task(test_session, task_payload(project_id=uuid.uuid4()))


class TestReadTask:

    @pytest.mark.asyncio
    async def test_get_unknown_task(self, test_session):
        with pytest.raises(TaskNotFoundError):
            await task_lifecycle.get_task(test_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_roster_snapshot_skips_deleted_persons(self, test_session, make_person):
        alice = await make_person("alice")
        bob = await make_person("bob")
        created = await task_lifecycle.create_task(
            test_session,
            task_payload(assignee_ids=[alice.id, bob.id]),
        )

        # Flag bob without going through the coordinator: the link row stays
        bob.deleted = True
        await test_session.commit()

        task = await task_lifecycle.get_task(test_session, created.id)
        assert task.assignee_ids == [alice.id]


class TestUpdateTask:

    @pytest.mark.asyncio
    async def test_only_supplied_fields_change(self, test_session, make_person):
        alice = await make_person("alice")
        created = await task_lifecycle.create_task(
            test_session,
            task_payload(assignee_ids=[alice.id], notes="first pass"),
        )

        updated = await task_lifecycle.update_task(
            test_session,
            created.id,
            TaskUpdate(title="Migrate billing and invoicing", estimated_hours=12),
        )

        assert updated.title == "Migrate billing and invoicing"
        assert updated.estimated_hours == 12
        assert updated.description == created.description
        assert updated.notes == "first pass"
        assert updated.assignee_ids == [alice.id]
        assert updated.status == TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_null_fields_are_ignored(self, test_session):
        created = await task_lifecycle.create_task(test_session, task_payload(notes="keep me"))

        updated = await task_lifecycle.update_task(
            test_session,
            created.id,
            TaskUpdate(notes=None, assignee_ids=None, status=None),
        )

        assert updated.notes == "keep me"
        assert updated.status == TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_roster_is_replaced(self, test_session, make_person):
        alice = await make_person("alice")
        bob = await make_person("bob")
        carol = await make_person("carol")
        created = await task_lifecycle.create_task(
            test_session,
            task_payload(assignee_ids=[alice.id, bob.id]),
        )

        updated = await task_lifecycle.update_task(
            test_session,
            created.id,
            TaskUpdate(assignee_ids=[carol.id]),
        )

        assert updated.assignee_ids == [carol.id]

    @pytest.mark.asyncio
    async def test_empty_roster_unassigns_everyone(self, test_session, make_person):
        alice = await make_person("alice")
        created = await task_lifecycle.create_task(test_session, task_payload(assignee_ids=[alice.id]))

        updated = await task_lifecycle.update_task(test_session, created.id, TaskUpdate(assignee_ids=[]))

        assert updated.assignee_ids == []
        assert updated.status == TaskStatus.PENDING
        assert await count_rows(test_session, TaskAssignee) == 0

    @pytest.mark.asyncio
    async def test_unassigned_task_returns_to_pending_when_restaffed(self, test_session, make_person):
        pat = await make_person("pat")
        quinn = await make_person("quinn")
        created = await task_lifecycle.create_task(test_session, task_payload(assignee_ids=[pat.id]))
        await person_deletion.delete_person(test_session, pat.id)
        assert (await task_lifecycle.get_task(test_session, created.id)).status == TaskStatus.UNASSIGNED

        updated = await task_lifecycle.update_task(
            test_session,
            created.id,
            TaskUpdate(assignee_ids=[quinn.id]),
        )

        assert updated.status == TaskStatus.PENDING
        assert updated.assignee_ids == [quinn.id]

        started = await task_lifecycle.start_task(test_session, created.id)
        assert started.status == TaskStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_explicit_status_wins_over_restaffing(self, test_session, make_person):
        pat = await make_person("pat")
        quinn = await make_person("quinn")
        created = await task_lifecycle.create_task(test_session, task_payload(assignee_ids=[pat.id]))
        await person_deletion.delete_person(test_session, pat.id)

        updated = await task_lifecycle.update_task(
            test_session,
            created.id,
            TaskUpdate(assignee_ids=[quinn.id], status=TaskStatus.BLOCKED),
        )

        assert updated.status == TaskStatus.BLOCKED

    @pytest.mark.asyncio
    async def test_invalid_roster_leaves_task_untouched(self, test_session, make_person):
        alice = await make_person("alice")
        created = await task_lifecycle.create_task(test_session, task_payload(assignee_ids=[alice.id]))

        with pytest.raises(PersonNotFoundError):
            await task_lifecycle.update_task(
                test_session,
                created.id,
                TaskUpdate(title="Should not stick", assignee_ids=[uuid.uuid4()]),
            )

        task = await task_lifecycle.get_task(test_session, created.id)
        assert task.title == created.title
        assert task.assignee_ids == [alice.id]

    @pytest.mark.asyncio
    async def test_project_change_is_validated(self, test_session, make_person, make_project):
        owner = await make_person("owner")
        archived = await make_project(owner, name="Old", active=False)
        created = await task_lifecycle.create_task(test_session, task_payload())

        with pytest.raises(ProjectNotFoundError):
            await task_lifecycle.update_task(test_session, created.id, TaskUpdate(project_id=archived.id))

    @pytest.mark.asyncio
    async def test_status_override_keeps_completed_at_consistent(self, test_session, caplog):
        created = await task_lifecycle.create_task(test_session, task_payload())

        with caplog.at_level(logging.WARNING, logger="tasktrack"):
            completed = await task_lifecycle.update_task(
                test_session,
                created.id,
                TaskUpdate(status=TaskStatus.COMPLETED),
            )

        assert completed.status == TaskStatus.COMPLETED
        assert completed.completed_at is not None
        assert "Status override outside the guarded transitions" in caplog.text

        reopened = await task_lifecycle.update_task(
            test_session,
            created.id,
            TaskUpdate(status=TaskStatus.IN_PROGRESS),
        )
        assert reopened.status == TaskStatus.IN_PROGRESS
        assert reopened.completed_at is None

    @pytest.mark.asyncio
    async def test_update_unknown_or_deleted_task(self, test_session):
        with pytest.raises(TaskNotFoundError):
            await task_lifecycle.update_task(test_session, uuid.uuid4(), TaskUpdate(title="Nope"))

        created = await task_lifecycle.create_task(test_session, task_payload())
        await task_lifecycle.soft_delete_task(test_session, created.id)

        with pytest.raises(TaskNotFoundError):
            await task_lifecycle.update_task(test_session, created.id, TaskUpdate(title="Nope"))


class TestDeleteTask:

    @pytest.mark.asyncio
    async def test_hard_delete_cascades_to_owned_rows(self, test_session, make_person):
        alice = await make_person("alice")
        created = await task_lifecycle.create_task(test_session, task_payload(assignee_ids=[alice.id]))
        test_session.add(Comment(text="Looks good", task_id=created.id, author_id=alice.id))
        test_session.add(
            Attachment(
                original_filename="brief.pdf",
                stored_filename="a1b2c3.pdf",
                file_path="/uploads/a1b2c3.pdf",
                content_type="application/pdf",
                file_size=2048,
                uploaded_by=alice.id,
                task_id=created.id,
            )
        )
        await test_session.commit()

        await task_lifecycle.delete_task(test_session, created.id)
        await test_session.commit()

        assert await count_rows(test_session, Task) == 0
        assert await count_rows(test_session, Comment) == 0
        assert await count_rows(test_session, Attachment) == 0
        assert await count_rows(test_session, TaskAssignee) == 0
        assert await count_rows(test_session, Person) == 1

    @pytest.mark.asyncio
    async def test_hard_delete_unknown_task(self, test_session):
        with pytest.raises(TaskNotFoundError):
            await task_lifecycle.delete_task(test_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_soft_delete_and_restore(self, test_session, make_person):
        alice = await make_person("alice")
        created = await task_lifecycle.create_task(test_session, task_payload(assignee_ids=[alice.id]))

        await task_lifecycle.soft_delete_task(test_session, created.id)

        with pytest.raises(TaskNotFoundError):
            await task_lifecycle.get_task(test_session, created.id)
        with pytest.raises(AlreadyDeletedError):
            await task_lifecycle.soft_delete_task(test_session, created.id)

        restored = await task_lifecycle.restore_task(test_session, created.id)

        assert restored.deleted is False
        assert restored.deleted_at is None
        assert restored.status == TaskStatus.PENDING
        assert restored.assignee_ids == [alice.id]

        with pytest.raises(NotDeletedError):
            await task_lifecycle.restore_task(test_session, created.id)


class TestStatusVerbs:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, test_session):
        created = await task_lifecycle.create_task(test_session, task_payload())

        started = await task_lifecycle.start_task(test_session, created.id)
        assert started.status == TaskStatus.IN_PROGRESS
        assert started.start_date is not None

        blocked = await task_lifecycle.block_task(test_session, created.id, "waiting on API keys")
        assert blocked.status == TaskStatus.BLOCKED
        assert "BLOCKED: waiting on API keys" in blocked.notes

        await task_lifecycle.start_task(test_session, created.id)
        completed = await task_lifecycle.complete_task(test_session, created.id)
        assert completed.status == TaskStatus.COMPLETED
        assert completed.completed_at is not None

        with pytest.raises(InvalidStateTransitionError):
            await task_lifecycle.cancel_task(test_session, created.id)

    @pytest.mark.asyncio
    async def test_rejected_verb_does_not_change_stored_task(self, test_session):
        created = await task_lifecycle.create_task(test_session, task_payload())

        with pytest.raises(InvalidStateTransitionError):
            await task_lifecycle.complete_task(test_session, created.id)

        task = await task_lifecycle.get_task(test_session, created.id)
        assert task.status == TaskStatus.PENDING
        assert task.completed_at is None

    @pytest.mark.asyncio
    async def test_block_requires_reason(self, test_session):
        created = await task_lifecycle.create_task(test_session, task_payload())

        with pytest.raises(InvalidArgumentError):
            await task_lifecycle.block_task(test_session, created.id, "  ")

    @pytest.mark.asyncio
    async def test_cancel_open_task(self, test_session):
        created = await task_lifecycle.create_task(test_session, task_payload())

        cancelled = await task_lifecycle.cancel_task(test_session, created.id)

        assert cancelled.status == TaskStatus.CANCELLED
        assert cancelled.completed_at is None
