"""
Person routes for the Tasktrack API.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.database import get_session
from tasktrack.exceptions import ErrorResponse
from tasktrack.models import Person
from tasktrack.schemas import PersonCreate, PersonDeletionReport, PersonRead, PersonUpdate
from tasktrack.services import person_deletion, persons

router = APIRouter(
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    },
)


@router.post("/", response_model=PersonRead, status_code=status.HTTP_201_CREATED)
async def create_person(
    person_in: PersonCreate,
    session: AsyncSession = Depends(get_session),
) -> Person:
    """Create an active person. Username and email must not be taken."""
    return await persons.create_person(session, person_in)


@router.get("/", response_model=list[PersonRead])
async def list_persons(
    active: bool | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[Person]:
    """List persons that are not deleted, optionally only active or inactive ones."""
    return await persons.list_persons(session, active=active)


@router.get("/{person_id}", response_model=PersonRead)
async def get_person(
    person_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> Person:
    """Get a person by ID. Deleted persons are not found."""
    return await persons.get_person(session, person_id)


@router.patch("/{person_id}", response_model=PersonRead)
async def update_person(
    person_id: uuid.UUID,
    person_in: PersonUpdate,
    session: AsyncSession = Depends(get_session),
) -> Person:
    """Update email, full name or the active flag."""
    return await persons.update_person(session, person_id, person_in)


@router.delete("/{person_id}", response_model=PersonDeletionReport)
async def delete_person(
    person_id: uuid.UUID,
    deleted_by: uuid.UUID | None = None,
    session: AsyncSession = Depends(get_session),
) -> PersonDeletionReport:
    """
    Soft-delete a person.

    The person is removed from every task roster. Tasks left without anyone
    become UNASSIGNED unless already completed or cancelled. Comments and
    owned projects keep pointing at the person.
    """
    return await person_deletion.delete_person(session, person_id, deleted_by=deleted_by)


@router.post("/{person_id}/restore", response_model=PersonRead)
async def restore_person(
    person_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> Person:
    """Restore a deleted person. Previous task assignments are not restored."""
    return await person_deletion.restore_person(session, person_id)
