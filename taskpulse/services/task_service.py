"""Task service for creating, updating and assigning tasks."""

import logging
from datetime import UTC, datetime

from taskpulse.core.errors import ConflictError, ErrorCode, NotFoundError
from taskpulse.core.logging import span
from taskpulse.domain.create_models import TaskCreate
from taskpulse.domain.task import AssigneeProgress, Task, TaskPriority
from taskpulse.domain.update_models import TaskUpdate
from taskpulse.services import task_repository


logger = logging.getLogger(__name__)


async def create_task(*, params: TaskCreate) -> Task:
    """Create a task, initializing default progress for every assignee."""
    with span("task_service.create_task"):
        now = datetime.now(UTC)
        task_data = {
            "title": params.title,
            "description": params.description,
            "priority": params.priority.value,
            "due_date": params.due_date.isoformat() if params.due_date else None,
            "created_by": params.created_by,
            "tags": params.tags,
            "assignees": [AssigneeProgress(user_id=user_id).model_dump(mode="json") for user_id in params.assignee_ids],
            "is_archived": False,
            "archived_at": None,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
            "version": 1,
        }
        task = await task_repository.create_task(task_data=task_data)

        logger.info(
            "Created task",
            extra={"task_id": task.id, "title": task.title, "assignee_count": len(task.assignees)},
        )
        return task


async def get_task(*, task_id: str) -> Task:
    """Get a task by ID."""
    with span("task_service.get_task"):
        return await task_repository.get_task(task_id=task_id)


async def list_tasks(
    *,
    priority: TaskPriority | None = None,
    assignee_id: str | None = None,
    include_archived: bool = False,
) -> list[Task]:
    """List tasks with optional filters, newest first."""
    with span("task_service.list_tasks"):
        tasks = await task_repository.list_tasks(
            user_id=assignee_id, priority=priority, include_archived=include_archived
        )
        return sorted(tasks, key=lambda task: task.created_at, reverse=True)


async def update_task(*, task_id: str, params: TaskUpdate) -> Task:
    """Update task metadata; only fields explicitly provided are changed."""
    with span("task_service.update_task"):
        changes = params.model_dump(exclude_unset=True)

        def apply(task: Task) -> None:
            for field, value in changes.items():
                setattr(task, field, value)

        saved, _ = await task_repository.modify_task(task_id=task_id, mutate=apply)
        logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(changes)})
        return saved


async def set_assignees(*, task_id: str, assignee_ids: list[str]) -> Task:
    """Replace the assignee list.

    Users that stay assigned keep their workflow, timer and status; new users
    start from defaults; removed users lose their progress.
    """
    with span("task_service.set_assignees"):

        def apply(task: Task) -> set[str]:
            existing = {assignee.user_id: assignee for assignee in task.assignees}
            task.assignees = [existing.get(user_id) or AssigneeProgress(user_id=user_id) for user_id in assignee_ids]
            return set(existing)

        saved, previous = await task_repository.modify_task(task_id=task_id, mutate=apply)
        logger.info(
            "Replaced task assignees",
            extra={
                "task_id": task_id,
                "added": sorted(set(assignee_ids) - previous),
                "removed": sorted(previous - set(assignee_ids)),
            },
        )
        return saved


async def add_assignee(*, task_id: str, user_id: str) -> Task:
    """Assign a user with default progress.

    Raises:
        ConflictError: If the user is already assigned
    """
    with span("task_service.add_assignee"):

        def apply(task: Task) -> None:
            if task.is_assigned(user_id):
                msg = f"User {user_id} is already assigned to this task"
                raise ConflictError(msg, code=ErrorCode.ERR_DUPLICATE_ASSIGNEE)
            task.assignees.append(AssigneeProgress(user_id=user_id))

        saved, _ = await task_repository.modify_task(task_id=task_id, mutate=apply)
        logger.info("Added assignee", extra={"task_id": task_id, "user_id": user_id})
        return saved


async def remove_assignee(*, task_id: str, user_id: str) -> Task:
    """Unassign a user, discarding their workflow and timer history.

    Raises:
        NotFoundError: If the user is not assigned
    """
    with span("task_service.remove_assignee"):

        def apply(task: Task) -> None:
            if not task.is_assigned(user_id):
                msg = f"User {user_id} is not assigned to this task"
                raise NotFoundError(msg, code=ErrorCode.ERR_ASSIGNEE_NOT_FOUND)
            task.assignees = [assignee for assignee in task.assignees if assignee.user_id != user_id]

        saved, _ = await task_repository.modify_task(task_id=task_id, mutate=apply)
        logger.info("Removed assignee", extra={"task_id": task_id, "user_id": user_id})
        return saved


async def set_archived(*, task_id: str, archived: bool) -> Task:
    """Archive or unarchive a task. Archived tasks are excluded from analytics."""
    with span("task_service.set_archived"):

        def apply(task: Task) -> None:
            task.is_archived = archived
            task.archived_at = datetime.now(UTC) if archived else None

        saved, _ = await task_repository.modify_task(task_id=task_id, mutate=apply)
        logger.info("Changed task archive state", extra={"task_id": task_id, "archived": archived})
        return saved


async def delete_task(*, task_id: str) -> None:
    """Delete a task permanently."""
    with span("task_service.delete_task"):
        await task_repository.delete_task(task_id=task_id)
        logger.info("Deleted task", extra={"task_id": task_id})
