"""HTTP routes for the task resource."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from tasktracker.core.config import constants
from tasktracker.core.store import TaskStore
from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.query_models import SortField, SortOrder, TaskFilters, TaskPage
from tasktracker.domain.task import Task, TaskStatus
from tasktracker.domain.update_models import TaskUpdate
from tasktracker.interface.auth import require_api_token
from tasktracker.interface.dependencies import get_store
from tasktracker.services import task_service


router = APIRouter(prefix="/tasks", tags=["tasks"])

StoreDep = Annotated[TaskStore, Depends(get_store)]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Task)
async def create_task(body: TaskCreate, store: StoreDep) -> Task:
    """Create a new task."""
    return await task_service.create_task(store=store, data=body)


@router.get("", response_model=TaskPage)
async def list_tasks(
    store: StoreDep,
    status_filter: Annotated[TaskStatus | None, Query(alias="status")] = None,
    tag: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    sort_by: Annotated[SortField | None, Query(alias="sortBy")] = None,
    sort_order: Annotated[SortOrder, Query(alias="sortOrder")] = SortOrder.ASC,
    page: Annotated[int, Query(ge=1, le=constants.MAX_PAGE)] = constants.DEFAULT_PAGE,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=constants.MAX_PAGE_SIZE)] = constants.DEFAULT_PAGE_SIZE,
) -> TaskPage:
    """List tasks with filters, sorting and pagination."""
    filters = TaskFilters(
        status=status_filter,
        tag=tag,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    return await task_service.list_tasks(store=store, filters=filters)


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: str, store: StoreDep) -> Task:
    """Get a single task."""
    return await task_service.get_task(store=store, task_id=task_id)


@router.patch("/{task_id}", response_model=Task, dependencies=[Depends(require_api_token)])
async def update_task(task_id: str, body: TaskUpdate, store: StoreDep) -> Task:
    """Apply a version-checked partial update."""
    return await task_service.update_task(store=store, task_id=task_id, data=body)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_api_token)],
)
async def delete_task(
    task_id: str,
    store: StoreDep,
    version: Annotated[
        int | None,
        Query(ge=1, le=constants.SQLITE_MAX_INTEGER, description="Delete only if this is the current version"),
    ] = None,
) -> Response:
    """Delete a task, optionally guarded by its current version."""
    await task_service.delete_task(store=store, task_id=task_id, expected_version=version)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
