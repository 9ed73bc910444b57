"""
Error types for the task accounter.

Use cases raise a single structured exception, TaskError, tagged with an
ErrorKind so callers (the HTTP layer in particular) can branch on the kind
without parsing messages. Collaborators raise their own narrower exceptions
(StorageError, CipherError, AuditDeliveryError); use cases wrap those.

Usage:
    try:
        use_case.execute(data)
    except TaskError as e:
        if e.kind is ErrorKind.TASK_CLOSED:
            ...
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


# PUBLIC_INTERFACE
class ErrorKind(str, Enum):
    """Failure categories surfaced by the use cases."""

    FIND_ALL_TASKS = "error finding all tasks"
    FIND_TASKS_BY_USER = "error finding tasks by user"
    FIND_TASK_BY_ID = "error finding task by id"
    SAVE_TASK = "error saving task"
    CRYPT_SUMMARY = "error decrypting task summary"
    TECHNICIAN_ROLE_REQUIRED = "technician role required"
    TASK_NOT_OWNED_BY_USER = "task not owned by user"
    TASK_CLOSED = "task is closed"
    INVALID_TASK_DATA = "invalid task data"


# Kinds whose message carries the underlying error text.
WRAPPING_KINDS = frozenset(
    {
        ErrorKind.FIND_ALL_TASKS,
        ErrorKind.FIND_TASKS_BY_USER,
        ErrorKind.FIND_TASK_BY_ID,
        ErrorKind.SAVE_TASK,
        ErrorKind.INVALID_TASK_DATA,
    }
)


# PUBLIC_INTERFACE
class TaskError(Exception):
    """
    Failure of a task use case.

    Attributes:
        kind: The ErrorKind tag
        cause: The wrapped collaborator error, if any
    """

    def __init__(self, kind: ErrorKind, cause: Optional[BaseException] = None):
        self.kind = kind
        self.cause = cause
        if cause is not None and kind in WRAPPING_KINDS:
            message = f"{kind.value}: {cause}"
        else:
            message = kind.value
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {"error": self.kind.name, "message": self.message}


class TaskValidationError(ValueError):
    """Raised when a title or summary does not pass validation."""


class StorageError(Exception):
    """Base class for task repository failures."""


class TaskNotFoundError(StorageError):
    """Raised when no task exists with the requested id."""

    def __init__(self, task_id: str):
        super().__init__(f"task {task_id} not found")
        self.task_id = task_id


class ConcurrentUpdateError(StorageError):
    """Raised when a save is based on a stale version of the task."""

    def __init__(self, task_id: str, expected: int, actual: int):
        super().__init__(
            f"task {task_id} was modified concurrently (expected version {expected}, found {actual})"
        )
        self.task_id = task_id
        self.expected = expected
        self.actual = actual


class CipherError(Exception):
    """Raised when a field cannot be encrypted or decrypted."""


class AuditDeliveryError(Exception):
    """Raised when an audit record could not be delivered."""
