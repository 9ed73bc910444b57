"""
Task use cases.

Each use case is constructed once with its collaborators and holds no
per-request state; execute() runs its steps strictly in order and raises
TaskError at the first failing step.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List

from . import policy
from .audit import AuditRecord
from .errors import AuditDeliveryError, ErrorKind, TaskError, TaskValidationError
from .models import Task, TaskStatus, User, validate_task_parameters
from .ports import AuditPublisher, Encrypter, TaskRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TaskReadAllInput:
    user: User


@dataclass
class TaskReadAllOutput:
    tasks: List[Task] = field(default_factory=list)


# PUBLIC_INTERFACE
class TaskReadAllUseCase:
    """
    Return every task visible to the requesting user with summaries decrypted.

    Managers get every stored task, technicians only the tasks they own.
    Storage order is preserved. A single failed decrypt aborts the whole
    call; no partially decrypted list is ever returned.
    """

    def __init__(self, task_repository: TaskRepository, encrypter: Encrypter) -> None:
        self.task_repository = task_repository
        self.encrypter = encrypter

    def execute(self, data: TaskReadAllInput) -> TaskReadAllOutput:
        owner_id = policy.visibility_scope(data.user)

        if owner_id is None:
            try:
                tasks = self.task_repository.find_all()
            except Exception as e:
                raise TaskError(ErrorKind.FIND_ALL_TASKS, e) from e
        else:
            try:
                tasks = self.task_repository.find_by_user_id(owner_id)
            except Exception as e:
                raise TaskError(ErrorKind.FIND_TASKS_BY_USER, e) from e

        summaries: List[str] = []
        for task in tasks:
            try:
                summaries.append(self.encrypter.decrypt(task.summary))
            except Exception as e:
                logger.error("Could not decrypt summary of task %s", task.id)
                raise TaskError(ErrorKind.CRYPT_SUMMARY) from e

        # Assign only once every summary decrypted.
        for task, summary in zip(tasks, summaries):
            task.summary = summary

        return TaskReadAllOutput(tasks=list(tasks))


@dataclass(frozen=True)
class TaskUpdateInput:
    task_id: str
    title: str
    summary: str
    close_task: bool
    user: User


# PUBLIC_INTERFACE
class TaskUpdateUseCase:
    """
    Edit and optionally close a task owned by the requesting technician.

    Guards run in the order role, load, ownership, status, validation. The
    summary is handed to the repository as plaintext; the repository
    encrypts it on save. When the task is closed, exactly one AuditRecord is
    published after the save succeeded. An audit delivery failure is logged
    but never rolls back or fails the update.
    """

    def __init__(
        self,
        task_repository: TaskRepository,
        audit_publisher: AuditPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self.task_repository = task_repository
        self.audit_publisher = audit_publisher
        self.clock = clock

    def execute(self, data: TaskUpdateInput) -> None:
        policy.require_technician(data.user)

        try:
            task = self.task_repository.find_by_id(data.task_id)
        except Exception as e:
            raise TaskError(ErrorKind.FIND_TASK_BY_ID, e) from e

        policy.require_mutable(task, data.user)

        try:
            validate_task_parameters(data.title, data.summary)
        except TaskValidationError as e:
            raise TaskError(ErrorKind.INVALID_TASK_DATA, e) from e

        task.title = data.title.strip()
        task.summary = data.summary

        if data.close_task:
            task.status = TaskStatus.CLOSED
            task.done_at = self.clock()

        try:
            self.task_repository.save(task)
        except Exception as e:
            raise TaskError(ErrorKind.SAVE_TASK, e) from e

        if data.close_task:
            self._publish_closed(data.user, task)

    def _publish_closed(self, user: User, task: Task) -> None:
        record = AuditRecord.for_closed_task(user, task)
        try:
            self.audit_publisher.publish(record)
        except AuditDeliveryError:
            logger.error("Audit record for closed task %s was not delivered", task.id)
        except Exception:
            logger.exception("Audit publisher failed for closed task %s", task.id)


@dataclass(frozen=True)
class TaskCreateInput:
    title: str
    summary: str
    user: User


@dataclass(frozen=True)
class TaskCreateOutput:
    task_id: str


# PUBLIC_INTERFACE
class TaskCreateUseCase:
    """Create an open task owned by the requesting technician."""

    def __init__(self, task_repository: TaskRepository) -> None:
        self.task_repository = task_repository

    def execute(self, data: TaskCreateInput) -> TaskCreateOutput:
        policy.require_technician(data.user)

        try:
            validate_task_parameters(data.title, data.summary)
        except TaskValidationError as e:
            raise TaskError(ErrorKind.INVALID_TASK_DATA, e) from e

        task = Task(
            id=uuid.uuid4().hex,
            title=data.title.strip(),
            summary=data.summary,
            owner_id=data.user.id,
        )
        try:
            saved = self.task_repository.save(task)
        except Exception as e:
            raise TaskError(ErrorKind.SAVE_TASK, e) from e

        logger.info("Task %s created by %s", saved.id, data.user.id)
        return TaskCreateOutput(task_id=saved.id)
