"""Progress service: personal workflow, timer and status operations.

Each operation is a single read-modify-write of one task aggregate that touches
only the calling assignee's entry. Validation and state errors are raised
before anything is written, so a failed call leaves the stored task unchanged.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeVar

from taskpulse.core.errors import AuthorizationError, ErrorCode
from taskpulse.core.logging import log_with_user_context, span
from taskpulse.domain.task import AssigneeProgress, AssigneeStatus, Task, TaskPriority
from taskpulse.domain.workflow import AddStep, DeleteStep, Reorder, StepOrder, ToggleStep, WorkflowCommand
from taskpulse.models.service_models import (
    MyTask,
    StatusChanged,
    StepAdded,
    StepDeleted,
    StepToggled,
    TimerState,
    WorkflowReordered,
    WorkflowUpdated,
    WorkflowView,
)
from taskpulse.services import progress_state_machine, task_repository
from taskpulse.services.progress_state_machine import TimerAction


logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _require_assignee(task: Task, user_id: str) -> AssigneeProgress:
    assignee = task.find_assignee(user_id)
    if assignee is None:
        msg = "You are not assigned to this task"
        raise AuthorizationError(msg, code=ErrorCode.ERR_NOT_ASSIGNED)
    return assignee


async def _modify_assignee(
    *,
    task_id: str,
    user_id: str,
    mutate: Callable[[AssigneeProgress, datetime], T],
) -> tuple[AssigneeProgress, T]:
    """Run `mutate` on the caller's entry and save the task with version checking."""

    def apply(task: Task) -> T:
        assignee = _require_assignee(task, user_id)
        return mutate(assignee, _utcnow())

    saved, result = await task_repository.modify_task(task_id=task_id, mutate=apply)
    return _require_assignee(saved, user_id), result


async def get_workflow(*, task_id: str, user_id: str) -> WorkflowView:
    """Get the caller's personal workflow and its derived progress."""
    with span("progress_service.get_workflow"):
        task = await task_repository.get_task(task_id=task_id)
        assignee = _require_assignee(task, user_id)
        return WorkflowView(
            workflow=list(assignee.workflow),
            progress=assignee.progress,
            status=assignee.status,
            total_steps=assignee.workflow.total_steps,
            completed_steps=assignee.workflow.completed_steps,
        )


async def apply_workflow_command(*, task_id: str, user_id: str, command: WorkflowCommand) -> WorkflowUpdated:
    """Apply any workflow command and return the resulting workflow."""
    with span("progress_service.apply_workflow_command"):
        assignee, step_id = await _modify_assignee(
            task_id=task_id,
            user_id=user_id,
            mutate=lambda a, now: progress_state_machine.apply_workflow_command(a, command, now=now),
        )
        log_with_user_context(
            logger,
            "info",
            "Applied workflow command",
            user_id=user_id,
            task_id=task_id,
            action=command.action,
            progress=assignee.progress,
            status=assignee.status.value,
        )
        return WorkflowUpdated(
            workflow=list(assignee.workflow),
            progress=assignee.progress,
            status=assignee.status,
            step_id=step_id,
        )


async def add_workflow_step(*, task_id: str, user_id: str, label: str) -> StepAdded:
    """Append a step to the caller's workflow.

    Raises:
        ValidationError: If the label is empty
    """
    with span("progress_service.add_workflow_step"):
        result = await apply_workflow_command(task_id=task_id, user_id=user_id, command=AddStep(label=label))
        return StepAdded(step_id=result.step_id or "", progress=result.progress, status=result.status)


async def toggle_workflow_step(*, task_id: str, user_id: str, step_id: str) -> StepToggled:
    """Flip a step's done flag and recompute progress/status.

    Raises:
        NotFoundError: If the step does not exist
    """
    with span("progress_service.toggle_workflow_step"):
        result = await apply_workflow_command(task_id=task_id, user_id=user_id, command=ToggleStep(step_id=step_id))
        return StepToggled(
            progress=result.progress,
            status=result.status,
            completed_steps=sum(1 for step in result.workflow if step.done),
            total_steps=len(result.workflow),
        )


async def reorder_workflow_steps(*, task_id: str, user_id: str, steps: list[StepOrder]) -> WorkflowReordered:
    """Assign new order values and return the re-sorted workflow."""
    with span("progress_service.reorder_workflow_steps"):
        result = await apply_workflow_command(task_id=task_id, user_id=user_id, command=Reorder(steps=steps))
        return WorkflowReordered(workflow=result.workflow)


async def delete_workflow_step(*, task_id: str, user_id: str, step_id: str) -> StepDeleted:
    """Remove a step and recompute progress/status.

    Raises:
        NotFoundError: If the step does not exist
    """
    with span("progress_service.delete_workflow_step"):
        result = await apply_workflow_command(task_id=task_id, user_id=user_id, command=DeleteStep(step_id=step_id))
        return StepDeleted(progress=result.progress, status=result.status)


async def update_timer(*, task_id: str, user_id: str, action: TimerAction) -> TimerState:
    """Start, pause or stop the caller's timer.

    Raises:
        ConflictError: Starting a running timer or stopping an idle one
    """
    with span("progress_service.update_timer"):
        assignee, _ = await _modify_assignee(
            task_id=task_id,
            user_id=user_id,
            mutate=lambda a, now: progress_state_machine.apply_timer_action(a, action, now=now),
        )
        log_with_user_context(
            logger,
            "info",
            "Timer updated",
            user_id=user_id,
            task_id=task_id,
            action=action,
            time_spent_minutes=assignee.time_spent_minutes,
        )
        return TimerState(time_spent_minutes=assignee.time_spent_minutes, is_timer_active=assignee.is_timer_active)


async def set_assignee_status(*, task_id: str, user_id: str, status: AssigneeStatus) -> StatusChanged:
    """Directly set the caller's status."""
    with span("progress_service.set_assignee_status"):
        assignee, _ = await _modify_assignee(
            task_id=task_id,
            user_id=user_id,
            mutate=lambda a, now: progress_state_machine.set_status(a, status, now=now),
        )
        log_with_user_context(
            logger, "info", "Assignee status changed", user_id=user_id, task_id=task_id, status=status.value
        )
        return StatusChanged(status=assignee.status, progress=assignee.progress)


def _to_my_task(task: Task, user_id: str, now: datetime) -> MyTask:
    assignee = _require_assignee(task, user_id)
    return MyTask(
        id=task.id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        due_date=task.due_date,
        tags=task.tags,
        created_at=task.created_at,
        updated_at=task.updated_at,
        assignee_count=len(task.assignees),
        is_overdue=task.is_overdue(now),
        days_until_due=task.days_until_due(now),
        my_status=assignee.status,
        my_progress=assignee.progress,
        my_workflow=list(assignee.workflow),
        my_time_spent_minutes=assignee.time_spent_minutes,
        my_started_at=assignee.started_at,
        my_completed_at=assignee.completed_at,
        is_timer_active=assignee.is_timer_active,
    )


async def get_my_task(*, task_id: str, user_id: str) -> MyTask:
    """Get one task from the caller's point of view."""
    with span("progress_service.get_my_task"):
        task = await task_repository.get_task(task_id=task_id)
        return _to_my_task(task, user_id, _utcnow())


async def get_my_tasks(
    *,
    user_id: str,
    status: AssigneeStatus | None = None,
    priority: TaskPriority | None = None,
    search: str | None = None,
) -> list[MyTask]:
    """List the caller's non-archived tasks, newest first.

    Args:
        user_id: Assignee whose tasks to list
        status: Only tasks where the caller's own status matches
        priority: Only tasks with this priority
        search: Case-insensitive substring of title or description
    """
    with span("progress_service.get_my_tasks"):
        now = _utcnow()
        tasks = await task_repository.list_tasks(user_id=user_id, priority=priority)
        needle = search.lower() if search else None

        result = []
        for task in sorted(tasks, key=lambda t: t.created_at, reverse=True):
            my_task = _to_my_task(task, user_id, now)
            if status is not None and my_task.my_status != status:
                continue
            if needle and needle not in task.title.lower() and needle not in task.description.lower():
                continue
            result.append(my_task)
        return result
