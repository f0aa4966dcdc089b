"""
Person account service.

Create, read, list and update persons. Deletion and restore live in the
person deletion coordinator. Usernames and emails are unique across every
row, soft-deleted ones included.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.exceptions import DuplicateResourceError, PersonNotFoundError
from tasktrack.logging_config import get_logger
from tasktrack.models import Person
from tasktrack.models.base import utcnow
from tasktrack.schemas import PersonCreate, PersonUpdate
from tasktrack.security import hash_password
from tasktrack.services import lookups

logger = get_logger(__name__)


async def _require_unique_email(session: AsyncSession, email: str) -> None:
    if await lookups.find_person_by_email(session, email) is not None:
        raise DuplicateResourceError("Person", "email", email)


async def create_person(session: AsyncSession, person_in: PersonCreate) -> Person:
    """
    Create an active person.

    The username is checked before the email, so a request clashing on both
    reports the username. Only the bcrypt hash of the password is stored.
    """
    if await lookups.find_person_by_username(session, person_in.username) is not None:
        raise DuplicateResourceError("Person", "username", person_in.username)
    await _require_unique_email(session, person_in.email)

    person = Person(
        username=person_in.username,
        email=person_in.email,
        full_name=person_in.full_name,
        password_hash=hash_password(person_in.password),
        active=True,
    )
    session.add(person)
    await session.flush()

    logger.info(f"Created person {person.username} (id={person.id})")
    return person


async def get_person(session: AsyncSession, person_id: uuid.UUID) -> Person:
    person = await lookups.find_person(session, person_id)
    if person is None:
        raise PersonNotFoundError(person_id)
    return person


async def list_persons(session: AsyncSession, active: bool | None = None) -> list[Person]:
    return await lookups.list_persons(session, active=active)


async def update_person(
    session: AsyncSession,
    person_id: uuid.UUID,
    person_in: PersonUpdate,
) -> Person:
    """
    Partial update of email, full name and the active flag.

    The email is checked for clashes only when it actually changes.
    Deactivating a person leaves their current rosters alone; it only stops
    new assignments.
    """
    person = await get_person(session, person_id)
    changes = person_in.model_dump(exclude_unset=True, exclude_none=True)

    new_email = changes.get("email")
    if new_email is not None and new_email != person.email:
        await _require_unique_email(session, new_email)

    for field, value in changes.items():
        setattr(person, field, value)

    person.updated_at = utcnow()
    session.add(person)
    await session.flush()

    logger.info(f"Updated person {person.username} (id={person.id}) fields={sorted(changes)}")
    return person
