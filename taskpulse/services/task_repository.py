"""Persistence boundary for Task aggregates.

Tasks are stored one row per aggregate with the assignee list embedded as JSON.
Writes are compare-and-set on the `version` column, so two actors updating the
same task cannot silently overwrite each other.

Raises (all operations):
    NotFoundError: Task id does not exist
    ConflictError: Stale version on save
    StorageError: Backing store failure
"""

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from taskpulse.core import db_client
from taskpulse.core.config import Constants, settings
from taskpulse.core.errors import ConflictError, ErrorCode, NotFoundError, StorageError
from taskpulse.core.logging import span
from taskpulse.domain.task import Task, TaskPriority


logger = logging.getLogger(__name__)

T = TypeVar("T")

_COLLECTION = "tasks"
_JSON_FIELDS = ("tags", "assignees")


def _record_to_task(record: dict[str, Any]) -> Task:
    data = dict(record)
    for field in _JSON_FIELDS:
        value = data.get(field)
        if isinstance(value, str):
            data[field] = json.loads(value) if value else []
    try:
        return Task.model_validate(data)
    except PydanticValidationError as e:
        logger.error("Corrupt task record", extra={"task_id": record.get("id"), "error": str(e)})
        msg = f"Stored task {record.get('id')} is invalid: {e}"
        raise StorageError(msg) from e


def _task_to_record(task: Task) -> dict[str, Any]:
    """Serialize mutable columns; id and version are managed by the store."""
    return task.model_dump(mode="json", exclude={"id", "version"})


def _not_found(task_id: str) -> NotFoundError:
    return NotFoundError(f"Task not found: {task_id}", code=ErrorCode.ERR_TASK_NOT_FOUND)


async def create_task(*, task_data: dict[str, Any]) -> Task:
    """Insert a new task from already-serialized column values."""
    with span("task_repository.create_task"):
        record = await db_client.create_record(collection=_COLLECTION, data=task_data)
        return _record_to_task(record)


async def get_task(*, task_id: str) -> Task:
    """Load a task aggregate by id."""
    with span("task_repository.get_task"):
        try:
            record = await db_client.get_record(collection=_COLLECTION, record_id=task_id)
        except KeyError as e:
            raise _not_found(task_id) from e
        return _record_to_task(record)


async def save_task(*, task: Task) -> Task:
    """Persist a modified task if nobody else wrote it since it was loaded.

    The task's updated_at is refreshed and the returned task carries the new
    version.
    """
    with span("task_repository.save_task"):
        task.updated_at = datetime.now(UTC)
        try:
            record = await db_client.compare_and_update_record(
                collection=_COLLECTION,
                record_id=task.id,
                expected_version=task.version,
                data=_task_to_record(task),
            )
        except KeyError as e:
            raise _not_found(task.id) from e
        return _record_to_task(record)


async def modify_task(
    *,
    task_id: str,
    mutate: Callable[[Task], T],
    max_attempts: int | None = None,
) -> tuple[Task, T]:
    """Read-modify-write a task, re-running `mutate` on a fresh copy after a version conflict.

    `mutate` must only touch the task it is handed; anything it raises aborts
    the operation without writing.

    Returns:
        The saved task and whatever `mutate` returned
    """
    attempts = max_attempts or settings.max_write_attempts
    for attempt in range(1, attempts + 1):
        task = await get_task(task_id=task_id)
        result = mutate(task)
        try:
            return await save_task(task=task), result
        except ConflictError as e:
            if e.code != ErrorCode.ERR_VERSION_CONFLICT or attempt == attempts:
                raise
            logger.info(
                "Retrying task write after version conflict",
                extra={"task_id": task_id, "attempt": attempt, "max_attempts": attempts},
            )
    # Unreachable: the final attempt either returns or raises
    msg = f"Exhausted write attempts for task {task_id}"
    raise ConflictError(msg, code=ErrorCode.ERR_VERSION_CONFLICT)


async def delete_task(*, task_id: str) -> None:
    """Hard-delete a task together with all assignee progress."""
    with span("task_repository.delete_task"):
        try:
            await db_client.delete_record(collection=_COLLECTION, record_id=task_id)
        except KeyError as e:
            raise _not_found(task_id) from e


async def list_tasks(
    *,
    user_id: str | None = None,
    priority: TaskPriority | None = None,
    include_archived: bool = False,
) -> list[Task]:
    """Load all tasks, optionally restricted to those a user is assigned to.

    Archive state and priority are filtered in the store; assignment is checked
    on the decoded assignee list. Results are ordered by creation (id ascending).
    """
    with span("task_repository.list_tasks"):
        conditions = []
        if not include_archived:
            conditions.append('is_archived = "false"')
        if priority is not None:
            conditions.append(f'priority = "{priority.value}"')
        filter_query = " && ".join(conditions)
        per_page = Constants.DEFAULT_PER_PAGE_LIMIT
        tasks: list[Task] = []
        page = 1

        while True:
            records = await db_client.list_records(
                collection=_COLLECTION,
                filter_query=filter_query,
                per_page=per_page,
                page=page,
            )
            tasks.extend(_record_to_task(record) for record in records)
            if len(records) < per_page:
                break
            page += 1

        if user_id is not None:
            tasks = [task for task in tasks if task.is_assigned(user_id)]

        logger.debug("Listed tasks", extra={"count": len(tasks), "user_id": user_id})
        return tasks
