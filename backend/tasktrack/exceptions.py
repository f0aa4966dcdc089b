"""
Structured exceptions and error responses for Tasktrack.

Provides consistent error handling across the engine with:
- Custom exception classes, one per failure kind
- Structured error response format
- FastAPI exception handlers
"""

import logging
from typing import Any, Dict, Iterable, Optional, List
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None  # Location of error (e.g., ["body", "assignee_ids"])
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "invalid_state_transition")
    message: str  # Human-readable message
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class TasktrackException(Exception):
    """Base exception for all Tasktrack errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(TasktrackException):
    """Resource not found (or filtered out as deleted/archived)."""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id: Any):
        super().__init__("Task", task_id)


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project_id: Any):
        super().__init__("Project", project_id)


class PersonNotFoundError(NotFoundError):
    """
    One or more persons could not be resolved.

    Batch lookups report every missing id, not just the first one.
    """

    def __init__(self, person_ids: Any):
        if isinstance(person_ids, (list, tuple, set)):
            self.missing_ids = [str(pid) for pid in person_ids]
        else:
            self.missing_ids = [str(person_ids)]
        super().__init__("Person", ", ".join(self.missing_ids))
        if len(self.missing_ids) > 1:
            self.message = f"Persons not found with IDs: {', '.join(self.missing_ids)}"
            self.args = (self.message,)
        self.details = [
            {"loc": ["assignee_ids"], "msg": f"Person {pid} not found", "type": "not_found"}
            for pid in self.missing_ids
        ]


class AlreadyDeletedError(TasktrackException):
    """Soft delete requested on a row that is already flagged."""

    def __init__(self, resource: str, resource_id: Any, label: Optional[str] = None):
        name = f"'{label}'" if label else f"with ID {resource_id}"
        super().__init__(
            message=f"{resource} {name} has already been deleted",
            error_code="already_deleted",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.resource = resource
        self.resource_id = resource_id


class NotDeletedError(TasktrackException):
    """Restore requested on a row that is not flagged as deleted."""

    def __init__(self, resource: str, resource_id: Any, label: Optional[str] = None):
        name = f"'{label}'" if label else f"with ID {resource_id}"
        super().__init__(
            message=f"{resource} {name} is not deleted",
            error_code="not_deleted",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.resource = resource
        self.resource_id = resource_id


class DuplicateResourceError(TasktrackException):
    """A unique attribute (username, email) is already taken."""

    def __init__(self, resource: str, field: str, value: Any):
        super().__init__(
            message=f"{resource} with {field} '{value}' already exists",
            error_code="duplicate_resource",
            status_code=status.HTTP_409_CONFLICT,
            details=[{"loc": [field], "msg": f"{field} already exists", "type": "duplicate_resource"}],
        )
        self.resource = resource
        self.field = field
        self.value = value


class InvalidArgumentError(TasktrackException):
    """Null or empty required input."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="invalid_argument",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{"loc": [field], "msg": message, "type": "invalid_argument"}] if field else None,
        )
        self.field = field


class BusinessRuleViolationError(TasktrackException):
    """Semantically valid input that violates a domain rule."""

    def __init__(self, message: str, offending: Optional[Iterable[Any]] = None):
        super().__init__(
            message=message,
            error_code="business_rule_violation",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
        self.offending = [str(item) for item in offending] if offending is not None else []


class InvalidStateTransitionError(TasktrackException):
    """Guarded status verb called from a state that does not permit it."""

    def __init__(self, task_id: Any, current: str, action: str):
        super().__init__(
            message=f"Cannot {action} task {task_id} from status {current}",
            error_code="invalid_state_transition",
            status_code=status.HTTP_409_CONFLICT,
            details=[{
                "loc": ["status"],
                "msg": f"'{action}' is not allowed while status is {current}",
                "type": "state_transition_error",
            }],
        )
        self.task_id = task_id
        self.current = current
        self.action = action


# =============================================================================
# Exception Handlers
# =============================================================================

async def tasktrack_exception_handler(request: Request, exc: TasktrackException) -> JSONResponse:
    """Handle TasktrackException and return structured response."""
    body = ErrorResponse(error=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = logging.getLogger("tasktrack.error")
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": None,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TasktrackException, tasktrack_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
