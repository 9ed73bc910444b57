from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import Task, TaskStatus


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task. Title and summary are validated by the
    create use case so that blank values surface as INVALID_TASK_DATA.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Fix pump",
                "summary": "Pump in room 3 leaks at the seal",
            }
        }
    )

    title: str = Field(..., description="Short title for the task")
    summary: str = Field(..., description="Confidential description, encrypted at rest")


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating a task. Title and summary replace the stored values;
    close=true also closes the task, which cannot be undone.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Fix pump",
                "summary": "Replaced seal",
                "close": True,
            }
        }
    )

    title: str = Field(..., description="Short title for the task")
    summary: str = Field(..., description="Confidential description, encrypted at rest")
    close: bool = Field(default=False, description="Close the task after applying the edit")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task. The summary is plaintext.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5b0f5a0e1b8c4a4f9b6c7e0d3a2f1c9e",
                "title": "Fix pump",
                "summary": "Replaced seal",
                "owner_id": "tech-1",
                "status": "closed",
                "done_at": "2025-01-26T09:00:00+00:00",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    summary: str = Field(..., description="Decrypted task description")
    owner_id: str = Field(..., description="Technician owning the task")
    status: TaskStatus = Field(..., description="open or closed")
    done_at: Optional[datetime] = Field(default=None, description="Time the task was closed")

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        return cls(
            id=task.id,
            title=task.title,
            summary=task.summary,
            owner_id=task.owner_id,
            status=task.status,
            done_at=task.done_at,
        )


# PUBLIC_INTERFACE
class TaskList(BaseModel):
    """Envelope for the task list response, in storage order."""

    items: List[TaskOut] = Field(..., description="Tasks visible to the requesting user")
    total: int = Field(..., description="Number of items")


# PUBLIC_INTERFACE
class TaskCreated(BaseModel):
    id: str = Field(..., description="Identifier of the created task")
