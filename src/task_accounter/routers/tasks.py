from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ..audit import get_audit_publisher
from ..auth import get_current_user
from ..crypto import get_configured_encrypter
from ..models import User
from ..repositories import get_repository
from ..schemas import TaskCreate, TaskCreated, TaskList, TaskOut, TaskUpdate
from ..usecases import (
    TaskCreateInput,
    TaskCreateUseCase,
    TaskReadAllInput,
    TaskReadAllUseCase,
    TaskUpdateInput,
    TaskUpdateUseCase,
)

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)


def get_read_all_use_case() -> TaskReadAllUseCase:
    return TaskReadAllUseCase(get_repository(), get_configured_encrypter())


def get_create_use_case() -> TaskCreateUseCase:
    return TaskCreateUseCase(get_repository())


def get_update_use_case() -> TaskUpdateUseCase:
    return TaskUpdateUseCase(get_repository(), get_audit_publisher())


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=TaskList,
    summary="List Tasks",
    description=(
        "List the tasks visible to the requesting user with decrypted summaries.\n\n"
        "Managers see every task, technicians only the tasks they own. "
        "Tasks are returned in storage order."
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        401: {"description": "Missing identity headers"},
    },
)
def list_tasks(
    user: User = Depends(get_current_user),
    use_case: TaskReadAllUseCase = Depends(get_read_all_use_case),
) -> TaskList:
    """
    List tasks for the requesting user.
    """
    output = use_case.execute(TaskReadAllInput(user=user))
    items = [TaskOut.from_task(t) for t in output.tasks]
    return TaskList(items=items, total=len(items))


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create an open task owned by the requesting technician.",
    responses={
        201: {"description": "Task created successfully"},
        403: {"description": "Technician role required"},
        422: {"description": "Invalid task data"},
    },
)
def create_task(
    payload: TaskCreate,
    user: User = Depends(get_current_user),
    use_case: TaskCreateUseCase = Depends(get_create_use_case),
) -> TaskCreated:
    """
    Create a new task.
    """
    output = use_case.execute(TaskCreateInput(title=payload.title, summary=payload.summary, user=user))
    return TaskCreated(id=output.task_id)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Update Task",
    description=(
        "Replace title and summary of a task owned by the requesting technician, "
        "optionally closing it. Closed tasks cannot be changed."
    ),
    responses={
        204: {"description": "Task updated"},
        403: {"description": "Technician role required or task not owned by user"},
        404: {"description": "Task not found"},
        409: {"description": "Task closed or modified concurrently"},
        422: {"description": "Invalid task data"},
    },
)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    user: User = Depends(get_current_user),
    use_case: TaskUpdateUseCase = Depends(get_update_use_case),
) -> Response:
    """
    Update (and optionally close) a task. Returns 204 on success.
    """
    use_case.execute(
        TaskUpdateInput(
            task_id=task_id,
            title=payload.title,
            summary=payload.summary,
            close_task=payload.close,
            user=user,
        )
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
