"""Pydantic models for service layer return types.

These models provide type safety at service boundaries. Analytics records are
computed on demand from the task population and are never persisted.
"""

from datetime import date, datetime

from pydantic import BaseModel

from taskpulse.domain.task import AssigneeStatus, TaskPriority
from taskpulse.domain.workflow import WorkflowStep


# Personal workflow / timer / status results


class WorkflowView(BaseModel):
    """An assignee's workflow with its derived progress."""

    workflow: list[WorkflowStep]
    progress: int
    status: AssigneeStatus
    total_steps: int
    completed_steps: int


class StepAdded(BaseModel):
    """Result of adding a workflow step."""

    step_id: str
    progress: int
    status: AssigneeStatus


class StepToggled(BaseModel):
    """Result of toggling a workflow step."""

    progress: int
    status: AssigneeStatus
    completed_steps: int
    total_steps: int


class WorkflowReordered(BaseModel):
    """Result of reordering workflow steps."""

    workflow: list[WorkflowStep]


class StepDeleted(BaseModel):
    """Result of deleting a workflow step."""

    progress: int
    status: AssigneeStatus


class WorkflowUpdated(BaseModel):
    """Result of applying a workflow command."""

    workflow: list[WorkflowStep]
    progress: int
    status: AssigneeStatus
    step_id: str | None = None


class TimerState(BaseModel):
    """Timer state after a start/pause/stop action."""

    time_spent_minutes: int
    is_timer_active: bool


class StatusChanged(BaseModel):
    """Result of a direct status change."""

    status: AssigneeStatus
    progress: int


class MyTask(BaseModel):
    """Task as seen by one assignee, with their own progress lifted to the top."""

    id: str
    title: str
    description: str
    priority: TaskPriority
    due_date: datetime | None
    tags: list[str]
    created_at: datetime
    updated_at: datetime
    assignee_count: int
    is_overdue: bool
    days_until_due: int | None
    my_status: AssigneeStatus
    my_progress: int
    my_workflow: list[WorkflowStep]
    my_time_spent_minutes: int
    my_started_at: datetime | None
    my_completed_at: datetime | None
    is_timer_active: bool


# Analytics results


class OverviewStats(BaseModel):
    """Assignee-entry status counts."""

    total: int
    pending: int
    in_progress: int
    completed: int
    completion_rate: int


class AdminOverview(OverviewStats):
    """Organization-wide overview."""

    total_tasks: int
    active_assignees: int
    avg_completion_days: float


class DailyCount(BaseModel):
    """Completions on one calendar day."""

    date: date
    count: int


class PriorityCount(BaseModel):
    """Number of tasks with one priority."""

    priority: TaskPriority
    count: int


class LeaderboardEntry(BaseModel):
    """User entry in the productivity leaderboard."""

    user_id: str
    completed: int
    total: int
    avg_completion_days: float
    productivity_score: int


class OverdueTask(BaseModel):
    """Task past its due date with unfinished assignees."""

    id: str
    title: str
    priority: TaskPriority
    due_date: datetime
    assignee_count: int
    progress: int


class LongRunningTask(BaseModel):
    """Unfinished task that has not been updated recently."""

    id: str
    title: str
    priority: TaskPriority
    duration_days: int
    days_since_update: int
    progress: int


class ReassignedTask(BaseModel):
    """Task spread across many assignees."""

    id: str
    title: str
    priority: TaskPriority
    assignee_count: int
    progress: int


class BottleneckSet(BaseModel):
    """Bottleneck analysis."""

    overdue: list[OverdueTask]
    long_running: list[LongRunningTask]
    most_reassigned: list[ReassignedTask]


class UserSummary(BaseModel):
    """Personal productivity summary with generated insights."""

    best_day: str
    best_day_count: int
    worst_day: str
    worst_day_count: int | None
    current_streak: int
    avg_per_week: float
    total_completed: int
    insights: list[str]


class TaskTime(BaseModel):
    """Tracked time for one task."""

    task_id: str
    title: str
    time_spent_minutes: int
    is_timer_active: bool


class TimeTrackingSummary(BaseModel):
    """Tracked time across all of a user's tasks."""

    user_id: str
    total_minutes: int
    tasks_tracked: int
    active_timers: int
    tasks: list[TaskTime]
