from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional

from .errors import TaskNotFoundError
from .models import Task, TaskStatus
from .ports import Encrypter
from .repositories import check_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    seq: str = "seq"
    id: str = "id"
    title: str = "title"
    summary: str = "summary"
    owner_id: str = "owner_id"
    status: str = "status"
    done_at: str = "done_at"
    version: str = "version"


_COLS = _Cols()


class SQLiteRepository:
    """
    Lightweight SQLite repository implementing the TaskRepository protocol.

    Each call opens its own connection, so one instance can be shared between
    request threads. Saves use a version-guarded UPDATE; a stale version
    raises ConcurrentUpdateError instead of overwriting.
    """

    def __init__(self, db_path: str, encrypter: Encrypter) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._encrypter = encrypter
        self._init_db()
        logger.info("SQLiteRepository ready db=%s", db_path)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.seq} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.id} TEXT NOT NULL UNIQUE,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.summary} TEXT NOT NULL,
                    {_COLS.owner_id} TEXT NOT NULL,
                    {_COLS.status} TEXT NOT NULL DEFAULT 'open',
                    {_COLS.done_at} TEXT NULL,
                    {_COLS.version} INTEGER NOT NULL DEFAULT 1
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_owner_id ON {_COLS.table}({_COLS.owner_id})"
            )

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        def parse_dt(s: Optional[str]) -> Optional[datetime]:
            if s is None:
                return None
            return datetime.fromisoformat(s)

        return Task(
            id=str(row[_COLS.id]),
            title=str(row[_COLS.title]),
            summary=str(row[_COLS.summary]),
            owner_id=str(row[_COLS.owner_id]),
            status=TaskStatus(row[_COLS.status]),
            done_at=parse_dt(row[_COLS.done_at]),
            version=int(row[_COLS.version]),
        )

    def find_all(self) -> List[Task]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.seq}").fetchall()
            return [self._row_to_task(r) for r in rows]

    def find_by_user_id(self, user_id: str) -> List[Task]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_COLS.owner_id} = ? ORDER BY {_COLS.seq}",
                (user_id,),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def find_by_id(self, task_id: str) -> Task:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)
            ).fetchone()
            if row is None:
                raise TaskNotFoundError(task_id)
            return self._row_to_task(row)

    def save(self, task: Task) -> Task:
        ciphertext = self._encrypter.encrypt(task.summary)
        done_at = task.done_at.isoformat() if task.done_at else None
        new_version = task.version + 1

        with self._conn() as conn:
            row = conn.execute(
                f"SELECT {_COLS.version} FROM {_COLS.table} WHERE {_COLS.id} = ?", (task.id,)
            ).fetchone()
            if row is None:
                check_version(0, task)
                conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.summary},
                        {_COLS.owner_id}, {_COLS.status}, {_COLS.done_at}, {_COLS.version})
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (task.id, task.title, ciphertext, task.owner_id, task.status.value, done_at, new_version),
                )
            else:
                check_version(int(row[_COLS.version]), task)
                cur = conn.execute(
                    f"""
                    UPDATE {_COLS.table}
                    SET {_COLS.title} = ?, {_COLS.summary} = ?, {_COLS.status} = ?,
                        {_COLS.done_at} = ?, {_COLS.version} = ?
                    WHERE {_COLS.id} = ? AND {_COLS.version} = ?
                    """,
                    (task.title, ciphertext, task.status.value, done_at, new_version, task.id, task.version),
                )
                if cur.rowcount == 0:
                    # Another connection committed between the SELECT and the UPDATE.
                    current = conn.execute(
                        f"SELECT {_COLS.version} FROM {_COLS.table} WHERE {_COLS.id} = ?", (task.id,)
                    ).fetchone()
                    check_version(int(current[_COLS.version]) if current else 0, task)

            row2 = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task.id,)
            ).fetchone()
            assert row2 is not None
            return self._row_to_task(row2)
