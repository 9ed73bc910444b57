"""
Collaborators consumed by the use cases.

The use cases depend on Protocols instead of concrete implementations, so
storage backends, the field cipher and the audit sink stay swappable and
tests can pass fakes. Implementations must be safe to share between
concurrent requests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol

from .models import Task

if TYPE_CHECKING:
    from .audit import AuditRecord


class TaskRepository(Protocol):
    """
    Task storage.

    save() encrypts the summary before persisting it; the finders return
    tasks whose summary is still ciphertext. Every returned Task is a copy.
    """

    def find_all(self) -> List[Task]: ...

    def find_by_user_id(self, user_id: str) -> List[Task]: ...

    def find_by_id(self, task_id: str) -> Task: ...

    def save(self, task: Task) -> Task: ...


class Encrypter(Protocol):
    """Field cipher. decrypt(encrypt(x)) == x for every string x."""

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...


class AuditPublisher(Protocol):
    """Sink for task-closed audit records."""

    def publish(self, record: "AuditRecord") -> None: ...
