"""
Audit records for closed tasks.

When a technician closes a task, the update use case hands one AuditRecord
to an AuditPublisher. Two publishers are provided:

- LoggingAuditPublisher writes the record to the "task_accounter.audit"
  logger, which is where downstream accounting picks it up today.
- RetryingAuditPublisher wraps any publisher with bounded retries and keeps
  records that could not be delivered in a bounded dead-letter list so they
  can be replayed.

Usage:
    publisher = RetryingAuditPublisher(LoggingAuditPublisher(), max_retries=3)
    publisher.publish(record)
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime
from functools import lru_cache
from threading import Lock
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from .errors import AuditDeliveryError
from .models import Task, User
from .ports import AuditPublisher
from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class AuditRecord:
    """A technician closed a task at done_at."""

    technician_id: str
    technician_name: str
    technician_email: str
    task_id: str
    task_title: str
    done_at: datetime

    @classmethod
    def for_closed_task(cls, user: User, task: Task) -> "AuditRecord":
        if task.done_at is None:
            raise ValueError(f"task {task.id} is not closed")
        return cls(
            technician_id=user.id,
            technician_name=user.name,
            technician_email=user.email,
            task_id=task.id,
            task_title=task.title,
            done_at=task.done_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["done_at"] = self.done_at.isoformat()
        return data


class LoggingAuditPublisher:
    """Publishes audit records as log lines."""

    def __init__(self, logger_name: str = "task_accounter.audit") -> None:
        self._logger = logging.getLogger(logger_name)

    def publish(self, record: AuditRecord) -> None:
        self._logger.info(
            "The tech %s<%s> performed the task %s<%s> on date %s",
            record.technician_name,
            record.technician_email,
            record.task_title,
            record.task_id,
            record.done_at.isoformat(),
        )


class RetryingAuditPublisher:
    """
    At-least-once wrapper around another publisher.

    publish() tries the inner publisher up to 1 + max_retries times, sleeping
    backoff_seconds * attempt between tries. When every attempt fails the
    record is logged at ERROR, appended to dead_letters and
    AuditDeliveryError is raised. dead_letters keeps at most
    dead_letter_limit records; the oldest are dropped first.
    """

    def __init__(
        self,
        inner: AuditPublisher,
        max_retries: int = 3,
        backoff_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
        dead_letter_limit: int = 1000,
    ) -> None:
        self._inner = inner
        self._max_retries = max(max_retries, 0)
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._lock = Lock()
        self._dead_letters: Deque[Tuple[AuditRecord, str]] = deque(maxlen=max(dead_letter_limit, 1))

    @property
    def dead_letters(self) -> List[Tuple[AuditRecord, str]]:
        with self._lock:
            return list(self._dead_letters)

    def publish(self, record: AuditRecord) -> None:
        attempts = self._max_retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                self._inner.publish(record)
                return
            except Exception as e:
                last_error = e
                logger.warning(
                    "Audit publish failed for task %s (attempt %d/%d): %s",
                    record.task_id,
                    attempt,
                    attempts,
                    e,
                )
                if attempt < attempts:
                    self._sleep(self._backoff_seconds * attempt)

        self._dead_letter(record, str(last_error))
        raise AuditDeliveryError(
            f"audit record for task {record.task_id} not delivered after {attempts} attempts"
        ) from last_error

    def replay_dead_letters(self) -> int:
        """Retry every dead-lettered record once. Returns how many were delivered."""
        with self._lock:
            pending = list(self._dead_letters)
            self._dead_letters.clear()
        delivered = 0
        for record, _reason in pending:
            try:
                self._inner.publish(record)
                delivered += 1
            except Exception as e:
                self._dead_letter(record, str(e))
        return delivered

    def _dead_letter(self, record: AuditRecord, reason: str) -> None:
        logger.error("Audit record dead-lettered (%s): %s", reason, record.to_dict())
        with self._lock:
            self._dead_letters.append((record, reason))


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_audit_publisher() -> RetryingAuditPublisher:
    """Process-wide audit publisher: log sink wrapped with configured retries."""
    settings = get_settings()
    return RetryingAuditPublisher(LoggingAuditPublisher(), max_retries=settings.audit_max_retries)
