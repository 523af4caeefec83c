"""Routes handling task CRUD operations for the authenticated user."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from ...deps import CurrentIdentityDependency, TaskServiceDependency
from ...errors import NotFoundError, ValidationError
from ...models import Task, TaskPriority, TaskStatus
from ...schemas import ApiResponse, TaskCreate, TaskRead, TaskStats, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])

LimitQuery = Annotated[
    int | None,
    Query(
        ge=1,
        le=100,
        description="Maximum number of tasks to return in a single response.",
    ),
]
OffsetQuery = Annotated[
    int | None,
    Query(
        ge=0,
        description="Number of tasks to skip before collecting results.",
    ),
]
StatusQuery = Annotated[
    TaskStatus | None,
    Query(
        alias="status",
        description="Filter results to tasks matching the supplied status.",
    ),
]
PriorityQuery = Annotated[
    TaskPriority | None,
    Query(description="Filter results to tasks matching the supplied priority."),
]
SearchQuery = Annotated[
    str | None,
    Query(description="Substring matched against title and description; a non-empty term overrides other filters."),
]


def parse_task_id(
    task_id: Annotated[str, Path(description="Identifier of the task.")],
) -> int:
    """Reject non-numeric ids with the API's own error envelope."""
    if not task_id.isdecimal() or int(task_id) < 1:
        raise ValidationError("Invalid task ID")
    return int(task_id)


TaskIdPath = Annotated[int, Depends(parse_task_id)]


def _map_task(task: Task) -> TaskRead:
    return TaskRead.model_validate(task)


@router.post(
    "",
    response_model=ApiResponse[TaskRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    identity: CurrentIdentityDependency,
    payload: TaskCreate,
    service: TaskServiceDependency,
) -> ApiResponse[TaskRead]:
    task = await service.create_task(
        identity.id,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        due_date=payload.due_date,
    )
    return ApiResponse(data=_map_task(task), message="Task created successfully")


@router.get(
    "",
    response_model=ApiResponse[list[TaskRead]],
    summary="List or search the caller's tasks",
)
async def list_tasks(
    identity: CurrentIdentityDependency,
    service: TaskServiceDependency,
    status_filter: StatusQuery = None,
    priority: PriorityQuery = None,
    limit: LimitQuery = None,
    offset: OffsetQuery = None,
    search: SearchQuery = None,
) -> ApiResponse[list[TaskRead]]:
    if search:
        tasks = await service.search_tasks(identity.id, search)
    else:
        tasks = await service.list_tasks(
            identity.id,
            status=status_filter,
            priority=priority,
            limit=limit,
            offset=offset,
        )
    return ApiResponse(data=[_map_task(task) for task in tasks])


@router.get(
    "/stats",
    response_model=ApiResponse[TaskStats],
    summary="Per-status task counts",
)
async def read_task_stats(
    identity: CurrentIdentityDependency,
    service: TaskServiceDependency,
) -> ApiResponse[TaskStats]:
    statistics = await service.get_statistics(identity.id)
    return ApiResponse(data=TaskStats.model_validate(statistics))


@router.get(
    "/{task_id}",
    response_model=ApiResponse[TaskRead],
    summary="Retrieve a task",
)
async def read_task(
    identity: CurrentIdentityDependency,
    task_id: TaskIdPath,
    service: TaskServiceDependency,
) -> ApiResponse[TaskRead]:
    task = await service.get_task(task_id, identity.id)
    if task is None:
        raise NotFoundError("Task not found")
    return ApiResponse(data=_map_task(task))


@router.put(
    "/{task_id}",
    response_model=ApiResponse[TaskRead],
    summary="Partially update a task",
)
async def update_task(
    identity: CurrentIdentityDependency,
    task_id: TaskIdPath,
    payload: TaskUpdate,
    service: TaskServiceDependency,
) -> ApiResponse[TaskRead]:
    task = await service.update_task(task_id, identity.id, payload.changes())
    return ApiResponse(data=_map_task(task), message="Task updated successfully")


@router.delete(
    "/{task_id}",
    response_model=ApiResponse[None],
    summary="Delete a task",
)
async def delete_task(
    identity: CurrentIdentityDependency,
    task_id: TaskIdPath,
    service: TaskServiceDependency,
) -> ApiResponse[None]:
    await service.delete_task(task_id, identity.id)
    return ApiResponse(message="Task deleted successfully")
