from __future__ import annotations

from typing import Optional, assert_never

from .errors import ErrorKind, TaskError
from .models import Task, User, UserRole


# PUBLIC_INTERFACE
def visibility_scope(user: User) -> Optional[str]:
    """
    Return the owner id a user's reads are restricted to, or None when the
    user may read every task.
    """
    match user.role:
        case UserRole.MANAGER:
            return None
        case UserRole.TECHNICIAN:
            return user.id
        case _:
            assert_never(user.role)


# PUBLIC_INTERFACE
def require_technician(user: User) -> None:
    """
    Raises:
        TaskError(TECHNICIAN_ROLE_REQUIRED) unless the user is a technician.
    """
    match user.role:
        case UserRole.TECHNICIAN:
            return
        case UserRole.MANAGER:
            raise TaskError(ErrorKind.TECHNICIAN_ROLE_REQUIRED)
        case _:
            assert_never(user.role)


# PUBLIC_INTERFACE
def require_mutable(task: Task, user: User) -> None:
    """
    Ownership then status check for a task about to be changed.

    Raises:
        TaskError(TASK_NOT_OWNED_BY_USER) if the user does not own the task.
        TaskError(TASK_CLOSED) if the task is already closed.
    """
    if task.owner_id != user.id:
        raise TaskError(ErrorKind.TASK_NOT_OWNED_BY_USER)
    if task.is_closed:
        raise TaskError(ErrorKind.TASK_CLOSED)
