from __future__ import annotations

import os

import pytest

# Ensure the app under test uses the in-memory backend and a stable key.
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("ENCRYPTION_KEY", "ZmDfcTF7_60GrrY167zsiPd67pEvs0aGOv2oasOM1Pg=")

from task_accounter.models import Task, TaskStatus, User, UserRole  # noqa: E402

from .fakes import FakeAuditPublisher, FakeEncrypter, FakeRepository  # noqa: E402


@pytest.fixture()
def manager() -> User:
    return User(id="manager-1", role=UserRole.MANAGER, name="Mia", email="mia@example.com")


@pytest.fixture()
def technician() -> User:
    return User(id="tech-1", role=UserRole.TECHNICIAN, name="Tom", email="tom@example.com")


@pytest.fixture()
def other_technician() -> User:
    return User(id="tech-2", role=UserRole.TECHNICIAN, name="Tia", email="tia@example.com")


@pytest.fixture()
def stored_tasks() -> list[Task]:
    """Tasks as storage holds them: summaries are FakeEncrypter ciphertext."""
    return [
        Task(id="t1", title="Fix pump", summary="enc:Pump leaks", owner_id="tech-1"),
        Task(id="t2", title="Check boiler", summary="enc:Annual check", owner_id="tech-2"),
        Task(
            id="t3",
            title="Paint wall",
            summary="enc:Second coat",
            owner_id="tech-1",
            status=TaskStatus.CLOSED,
        ),
    ]


@pytest.fixture()
def repository(stored_tasks: list[Task]) -> FakeRepository:
    return FakeRepository(stored_tasks)


@pytest.fixture()
def encrypter() -> FakeEncrypter:
    return FakeEncrypter()


@pytest.fixture()
def publisher() -> FakeAuditPublisher:
    return FakeAuditPublisher()
