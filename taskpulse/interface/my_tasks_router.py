"""Personal task endpoints: workflow checklist, timer and status."""

from fastapi import APIRouter, Depends, Query, status

from taskpulse.domain.create_models import StepCreate
from taskpulse.domain.task import AssigneeStatus, TaskPriority
from taskpulse.domain.update_models import AssigneeStatusUpdate, StepsReorder, TimerUpdate
from taskpulse.domain.workflow import WorkflowCommand
from taskpulse.interface.dependencies import get_target_user_id
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
from taskpulse.services import progress_service


router = APIRouter(prefix="/me/tasks", tags=["my-tasks"])


@router.get("")
async def list_my_tasks(
    user_id: str = Depends(get_target_user_id),
    task_status: AssigneeStatus | None = Query(default=None, alias="status"),
    priority: TaskPriority | None = Query(default=None),
    search: str | None = Query(default=None),
) -> list[MyTask]:
    """List tasks assigned to the user, newest first."""
    return await progress_service.get_my_tasks(user_id=user_id, status=task_status, priority=priority, search=search)


@router.get("/{task_id}")
async def get_my_task(task_id: str, user_id: str = Depends(get_target_user_id)) -> MyTask:
    return await progress_service.get_my_task(task_id=task_id, user_id=user_id)


@router.get("/{task_id}/workflow")
async def get_workflow(task_id: str, user_id: str = Depends(get_target_user_id)) -> WorkflowView:
    return await progress_service.get_workflow(task_id=task_id, user_id=user_id)


@router.patch("/{task_id}/workflow")
async def apply_workflow_command(
    task_id: str,
    command: WorkflowCommand,
    user_id: str = Depends(get_target_user_id),
) -> WorkflowUpdated:
    """Apply one workflow command: add_step, toggle_step, delete_step or reorder."""
    return await progress_service.apply_workflow_command(task_id=task_id, user_id=user_id, command=command)


@router.post("/{task_id}/workflow/steps", status_code=status.HTTP_201_CREATED)
async def add_workflow_step(
    task_id: str,
    body: StepCreate,
    user_id: str = Depends(get_target_user_id),
) -> StepAdded:
    return await progress_service.add_workflow_step(task_id=task_id, user_id=user_id, label=body.label)


@router.post("/{task_id}/workflow/steps/{step_id}/toggle")
async def toggle_workflow_step(
    task_id: str,
    step_id: str,
    user_id: str = Depends(get_target_user_id),
) -> StepToggled:
    return await progress_service.toggle_workflow_step(task_id=task_id, user_id=user_id, step_id=step_id)


@router.delete("/{task_id}/workflow/steps/{step_id}")
async def delete_workflow_step(
    task_id: str,
    step_id: str,
    user_id: str = Depends(get_target_user_id),
) -> StepDeleted:
    return await progress_service.delete_workflow_step(task_id=task_id, user_id=user_id, step_id=step_id)


@router.put("/{task_id}/workflow/order")
async def reorder_workflow_steps(
    task_id: str,
    body: StepsReorder,
    user_id: str = Depends(get_target_user_id),
) -> WorkflowReordered:
    return await progress_service.reorder_workflow_steps(task_id=task_id, user_id=user_id, steps=body.steps)


@router.post("/{task_id}/timer")
async def update_timer(
    task_id: str,
    body: TimerUpdate,
    user_id: str = Depends(get_target_user_id),
) -> TimerState:
    """Start, pause or stop the user's timer on a task."""
    return await progress_service.update_timer(task_id=task_id, user_id=user_id, action=body.action)


@router.put("/{task_id}/status")
async def set_status(
    task_id: str,
    body: AssigneeStatusUpdate,
    user_id: str = Depends(get_target_user_id),
) -> StatusChanged:
    return await progress_service.set_assignee_status(task_id=task_id, user_id=user_id, status=body.status)
