"""Pure state transition functions for per-assignee progress.

Every function mutates the AssigneeProgress it is given in place and performs
no I/O; the caller loads and saves the enclosing task. `now` is always passed in
so transitions are deterministic under test.

Status follows pending -> in-progress -> completed, with completed ->
in-progress when a workflow regresses.
"""

import logging
from datetime import datetime, timedelta
from typing import Literal

from taskpulse.core.config import Constants
from taskpulse.core.errors import ConflictError, ErrorCode
from taskpulse.core.rounding import round_half_up
from taskpulse.domain.task import AssigneeProgress, AssigneeStatus
from taskpulse.domain.workflow import AddStep, DeleteStep, Reorder, ToggleStep, WorkflowCommand


logger = logging.getLogger(__name__)

TimerAction = Literal["start", "pause", "stop"]


def _mark_started(assignee: AssigneeProgress, now: datetime) -> None:
    if assignee.started_at is None:
        assignee.started_at = now


def _mark_completed(assignee: AssigneeProgress, now: datetime) -> None:
    _mark_started(assignee, now)
    assignee.status = AssigneeStatus.COMPLETED
    assignee.progress = 100
    assignee.completed_at = now


def set_status(assignee: AssigneeProgress, status: AssigneeStatus, *, now: datetime) -> None:
    """Apply an explicit status change requested by the assignee.

    Completing forces progress to 100 and stamps completed_at with the time of
    this request. Any other status clears completed_at. started_at is stamped on
    the first move out of pending.
    """
    if status == AssigneeStatus.COMPLETED:
        _mark_completed(assignee, now)
        return

    if status == AssigneeStatus.IN_PROGRESS:
        _mark_started(assignee, now)

    assignee.status = status
    assignee.completed_at = None


def workflow_progress(assignee: AssigneeProgress) -> int:
    """Progress percentage implied by the assignee's workflow."""
    return int(round_half_up(assignee.workflow.completion_ratio() * 100))


def resolve_workflow_status(
    *,
    current: AssigneeStatus,
    progress: int,
    total_steps: int,
) -> AssigneeStatus:
    """Regression policy: the status a workflow mutation leads to.

    - all steps done (non-empty workflow): completed
    - some steps done: in-progress
    - no steps done: pending stays pending; started or completed work regresses
      to in-progress
    - no steps left: pending
    """
    if total_steps == 0:
        return AssigneeStatus.PENDING
    if progress >= 100:
        return AssigneeStatus.COMPLETED
    if progress > 0:
        return AssigneeStatus.IN_PROGRESS
    if current == AssigneeStatus.PENDING:
        return AssigneeStatus.PENDING
    return AssigneeStatus.IN_PROGRESS


def apply_workflow_progress(assignee: AssigneeProgress, *, now: datetime) -> None:
    """Recompute progress and status after a workflow mutation.

    Reaching completion stamps completed_at with `now`, even if it was already set.
    """
    total_steps = assignee.workflow.total_steps
    progress = workflow_progress(assignee)
    status = resolve_workflow_status(current=assignee.status, progress=progress, total_steps=total_steps)

    if status == AssigneeStatus.COMPLETED:
        _mark_completed(assignee, now)
        return

    assignee.progress = progress
    assignee.status = status
    assignee.completed_at = None
    if status == AssigneeStatus.IN_PROGRESS:
        _mark_started(assignee, now)


def apply_workflow_command(assignee: AssigneeProgress, command: WorkflowCommand, *, now: datetime) -> str | None:
    """Apply one workflow command and recompute derived progress.

    Returns:
        The new step id for AddStep, otherwise None

    Raises:
        ValidationError: AddStep with an empty label
        NotFoundError: ToggleStep/DeleteStep with an unknown step id
    """
    workflow = assignee.workflow
    new_step_id: str | None = None

    match command:
        case AddStep(label=label):
            new_step_id = workflow.add_step(label)
        case ToggleStep(step_id=step_id):
            workflow.toggle_step(step_id)
        case DeleteStep(step_id=step_id):
            workflow.delete_step(step_id)
        case Reorder(steps=steps):
            workflow.reorder(steps)
            # Ordering never changes completion
            return None

    apply_workflow_progress(assignee, now=now)
    return new_step_id


def start_timer(assignee: AssigneeProgress, *, now: datetime) -> None:
    """Start the assignee's timer.

    Raises:
        ConflictError: If a timer is already running
    """
    if assignee.active_timer_started_at is not None:
        msg = "Timer is already running"
        raise ConflictError(msg, code=ErrorCode.ERR_TIMER_ALREADY_RUNNING)
    assignee.active_timer_started_at = now


def stop_timer(assignee: AssigneeProgress, *, now: datetime) -> int:
    """Stop (or pause) the running timer and bank the elapsed minutes.

    Returns:
        Minutes added to time_spent_minutes

    Raises:
        ConflictError: If no timer is running
    """
    started = assignee.active_timer_started_at
    if started is None:
        msg = "Timer is not running"
        raise ConflictError(msg, code=ErrorCode.ERR_TIMER_NOT_RUNNING)

    elapsed = now - started
    if elapsed < timedelta(0):
        # Wall clock moved backwards since start
        logger.warning(
            "Negative timer interval",
            extra={"user_id": assignee.user_id, "elapsed_seconds": elapsed.total_seconds()},
        )
        elapsed = timedelta(0)

    elapsed_minutes = int(round_half_up(elapsed.total_seconds() / Constants.SECONDS_PER_MINUTE))
    assignee.time_spent_minutes += elapsed_minutes
    assignee.active_timer_started_at = None
    return elapsed_minutes


def apply_timer_action(assignee: AssigneeProgress, action: TimerAction, *, now: datetime) -> None:
    """Dispatch a timer action; pause and stop are equivalent."""
    if action == "start":
        start_timer(assignee, now=now)
    else:
        stop_timer(assignee, now=now)
