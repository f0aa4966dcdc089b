import uuid
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

from tasktrack.security import BCRYPT_MAX_BYTES


class PersonCreate(BaseModel):
    """Schema for creating a person. New persons are always active."""
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=100)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode()) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return value


class PersonUpdate(BaseModel):
    """Schema for updating a person. The username never changes."""
    email: EmailStr | None = None
    full_name: str | None = Field(default=None, min_length=1, max_length=100)
    active: bool | None = None


class PersonRead(BaseModel):
    """Schema for reading a person. The password hash never leaves the service."""
    id: uuid.UUID
    username: str
    email: str
    full_name: str
    active: bool
    last_login_at: datetime | None
    deleted: bool
    deleted_at: datetime | None
    deleted_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PersonDeletionReport(BaseModel):
    """Blast radius of a person deletion, as applied."""
    person_id: uuid.UUID
    deleted_at: datetime
    deleted_by: uuid.UUID | None
    tasks_unassigned: int
    comments_retained: int
    projects_retained: int
