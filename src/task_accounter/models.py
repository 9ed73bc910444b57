from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import TaskValidationError

TITLE_MAX_LENGTH = 200


# PUBLIC_INTERFACE
class UserRole(str, Enum):
    """Closed set of roles a requesting user can hold."""

    MANAGER = "manager"
    TECHNICIAN = "technician"


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Task lifecycle status. The only legal transition is OPEN -> CLOSED."""

    OPEN = "open"
    CLOSED = "closed"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class User:
    """
    The identity performing a request.

    Fields:
    - id: Opaque user identifier
    - role: Manager or Technician
    - name/email: Display data, used in audit records
    """

    id: str
    role: UserRole
    name: str = ""
    email: str = ""


# PUBLIC_INTERFACE
@dataclass
class Task:
    """
    A unit of work owned by a technician.

    Fields:
    - id: Unique identifier assigned at creation
    - title: Short title (1..200 chars once trimmed)
    - summary: Ciphertext when it comes from storage, plaintext only after an
      explicit decrypt or right before a save
    - owner_id: Technician that owns the task, never changes
    - status: OPEN or CLOSED
    - done_at: Time of closing, None while OPEN
    - version: Optimistic concurrency token maintained by the repository
    """

    id: str
    title: str
    summary: str
    owner_id: str
    status: TaskStatus = TaskStatus.OPEN
    done_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_closed(self) -> bool:
        return self.status == TaskStatus.CLOSED

    def copy(self) -> "Task":
        return replace(self)


# PUBLIC_INTERFACE
def validate_task_parameters(title: str, summary: str) -> None:
    """
    Validate user supplied task fields.

    Raises:
        TaskValidationError: if title or summary is blank, or title is too long.
    """
    if title is None or not title.strip():
        raise TaskValidationError("title must not be empty")
    if len(title.strip()) > TITLE_MAX_LENGTH:
        raise TaskValidationError(f"title must be at most {TITLE_MAX_LENGTH} characters")
    if summary is None or not summary.strip():
        raise TaskValidationError("summary must not be empty")
