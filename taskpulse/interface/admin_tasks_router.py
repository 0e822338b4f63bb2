"""Administrator endpoints for task creation, assignment and archiving."""

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from taskpulse.domain.create_models import TaskCreate
from taskpulse.domain.task import Task, TaskPriority
from taskpulse.domain.update_models import ArchiveUpdate, AssigneesUpdate, TaskUpdate
from taskpulse.domain.user import Caller
from taskpulse.interface.dependencies import require_admin
from taskpulse.services import task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/tasks", tags=["admin-tasks"], dependencies=[Depends(require_admin)])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(body: TaskCreate, admin: Caller = Depends(require_admin)) -> Task:
    """Create a task; the creator defaults to the calling administrator."""
    if body.created_by is None:
        body = body.model_copy(update={"created_by": admin.user_id})
    return await task_service.create_task(params=body)


@router.get("")
async def list_tasks(
    priority: TaskPriority | None = Query(default=None),
    assignee_id: str | None = Query(default=None),
    include_archived: bool = Query(default=False),
) -> list[Task]:
    return await task_service.list_tasks(priority=priority, assignee_id=assignee_id, include_archived=include_archived)


@router.get("/{task_id}")
async def get_task(task_id: str) -> Task:
    return await task_service.get_task(task_id=task_id)


@router.patch("/{task_id}")
async def update_task(task_id: str, body: TaskUpdate) -> Task:
    return await task_service.update_task(task_id=task_id, params=body)


@router.put("/{task_id}/assignees")
async def set_assignees(task_id: str, body: AssigneesUpdate) -> Task:
    """Replace the assignee list; users that stay assigned keep their progress."""
    return await task_service.set_assignees(task_id=task_id, assignee_ids=body.assignee_ids)


@router.post("/{task_id}/assignees/{user_id}", status_code=status.HTTP_201_CREATED)
async def add_assignee(task_id: str, user_id: str) -> Task:
    return await task_service.add_assignee(task_id=task_id, user_id=user_id)


@router.delete("/{task_id}/assignees/{user_id}")
async def remove_assignee(task_id: str, user_id: str) -> Task:
    return await task_service.remove_assignee(task_id=task_id, user_id=user_id)


@router.put("/{task_id}/archive")
async def set_archived(task_id: str, body: ArchiveUpdate) -> Task:
    return await task_service.set_archived(task_id=task_id, archived=body.archived)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str) -> Response:
    await task_service.delete_task(task_id=task_id)
    logger.info("admin_task_deleted", extra={"task_id": task_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
