from __future__ import annotations

from functools import lru_cache
from threading import RLock
from typing import Dict, List

from .crypto import get_configured_encrypter
from .errors import ConcurrentUpdateError, TaskNotFoundError
from .models import Task
from .ports import Encrypter, TaskRepository
from .settings import get_settings


def check_version(stored_version: int, task: Task) -> None:
    """Raise ConcurrentUpdateError if task was loaded from an older version."""
    if stored_version != task.version:
        raise ConcurrentUpdateError(task.id, expected=task.version, actual=stored_version)


class InMemoryRepository:
    """
    Thread-safe in-memory repository suitable for testing and default runtime.

    Summaries are encrypted on save and kept as ciphertext; tasks are listed
    in insertion order.
    """

    def __init__(self, encrypter: Encrypter) -> None:
        self._lock = RLock()
        self._items: Dict[str, Task] = {}
        self._encrypter = encrypter

    def find_all(self) -> List[Task]:
        with self._lock:
            return [t.copy() for t in self._items.values()]

    def find_by_user_id(self, user_id: str) -> List[Task]:
        with self._lock:
            return [t.copy() for t in self._items.values() if t.owner_id == user_id]

    def find_by_id(self, task_id: str) -> Task:
        with self._lock:
            item = self._items.get(task_id)
            if item is None:
                raise TaskNotFoundError(task_id)
            return item.copy()

    def save(self, task: Task) -> Task:
        stored = task.copy()
        stored.summary = self._encrypter.encrypt(task.summary)
        with self._lock:
            existing = self._items.get(task.id)
            check_version(existing.version if existing else 0, task)
            stored.version = task.version + 1
            self._items[task.id] = stored
            return stored.copy()


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> TaskRepository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository

    The instance is cached so every request shares the same storage.
    """
    settings = get_settings()
    encrypter = get_configured_encrypter()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path, encrypter)
    return InMemoryRepository(encrypter)
