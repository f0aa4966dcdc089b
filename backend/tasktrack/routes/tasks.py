"""
Task routes for the Tasktrack API.

Handlers only translate HTTP to service calls; every rule lives in
tasktrack.services.task_lifecycle.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.database import get_session
from tasktrack.exceptions import ErrorResponse
from tasktrack.schemas import TaskBlock, TaskCreate, TaskRead, TaskUpdate
from tasktrack.services import task_lifecycle

router = APIRouter(
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    },
)


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    """
    Create a new task.

    The task always starts in PENDING. Every assignee must exist, be active
    and not be deleted; the project, if given, must be active.
    """
    return await task_lifecycle.create_task(session, task_in)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    """Get a task by ID. Soft-deleted tasks are not found."""
    return await task_lifecycle.get_task(session, task_id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    """
    Partially update a task.

    Sending `status` overrides the lifecycle guards; use the verb endpoints
    for normal progress.
    """
    return await task_lifecycle.update_task(session, task_id, task_in)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    """Delete a task (soft delete; the row can be restored)."""
    await task_lifecycle.soft_delete_task(session, task_id)


@router.delete("/{task_id}/hard", status_code=status.HTTP_204_NO_CONTENT)
async def hard_delete_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    """Permanently delete a task together with its comments and attachments."""
    await task_lifecycle.delete_task(session, task_id)


@router.post("/{task_id}/restore", response_model=TaskRead)
async def restore_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    return await task_lifecycle.restore_task(session, task_id)


# =============================================================================
# Status verbs
# =============================================================================

@router.post("/{task_id}/start", response_model=TaskRead)
async def start_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    return await task_lifecycle.start_task(session, task_id)


@router.post("/{task_id}/complete", response_model=TaskRead)
async def complete_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    return await task_lifecycle.complete_task(session, task_id)


@router.post("/{task_id}/block", response_model=TaskRead)
async def block_task(
    task_id: uuid.UUID,
    block_in: TaskBlock,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    """Block a task. The reason is appended to the task notes."""
    return await task_lifecycle.block_task(session, task_id, block_in.reason)


@router.post("/{task_id}/cancel", response_model=TaskRead)
async def cancel_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    return await task_lifecycle.cancel_task(session, task_id)
