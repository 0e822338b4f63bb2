"""Task aggregate and per-assignee progress models."""

import math
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from taskpulse.core.rounding import round_half_up
from taskpulse.domain.workflow import WorkflowList


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to timestamps without an offset and convert the rest to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


class TaskPriority(StrEnum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AssigneeStatus(StrEnum):
    """Per-assignee lifecycle state."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class AssigneeProgress(BaseModel):
    """One user's independent progress on a task."""

    user_id: str = Field(..., description="Assigned user ID")
    status: AssigneeStatus = Field(default=AssigneeStatus.PENDING, description="Personal lifecycle state")
    progress: int = Field(default=0, ge=0, le=100, description="Completion percentage")
    started_at: datetime | None = Field(default=None, description="First transition out of pending")
    completed_at: datetime | None = Field(default=None, description="When the assignee completed the task")
    time_spent_minutes: int = Field(default=0, ge=0, description="Accumulated tracked minutes")
    active_timer_started_at: datetime | None = Field(default=None, description="Set while a timer is running")
    workflow: WorkflowList = Field(default_factory=WorkflowList, description="Personal checklist")

    @property
    def is_timer_active(self) -> bool:
        return self.active_timer_started_at is not None

    @property
    def is_completed(self) -> bool:
        return self.status == AssigneeStatus.COMPLETED


class Task(BaseModel):
    """Task aggregate root.

    Derived values (progress, overdue state, days until due) are computed on
    access and never persisted.
    """

    id: str = Field(..., description="Unique task ID from database")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    due_date: datetime | None = Field(default=None, description="Due date")
    created_by: str | None = Field(default=None, description="Creator user ID")
    tags: list[str] = Field(default_factory=list, description="Free-form labels")
    assignees: list[AssigneeProgress] = Field(default_factory=list, description="Per-user progress entries")
    is_archived: bool = Field(default=False, description="Soft-delete flag")
    archived_at: datetime | None = Field(default=None, description="When the task was archived")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    version: int = Field(default=1, ge=1, description="Optimistic concurrency revision")

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v: datetime | None) -> datetime | None:
        return None if v is None else as_utc(v)

    @model_validator(mode="after")
    def _check_unique_assignees(self) -> "Task":
        user_ids = [assignee.user_id for assignee in self.assignees]
        if len(user_ids) != len(set(user_ids)):
            msg = f"Task {self.id} has duplicate assignee entries"
            raise ValueError(msg)
        return self

    def find_assignee(self, user_id: str) -> AssigneeProgress | None:
        """Return the progress entry for a user, or None if not assigned."""
        for assignee in self.assignees:
            if assignee.user_id == user_id:
                return assignee
        return None

    def is_assigned(self, user_id: str) -> bool:
        return self.find_assignee(user_id) is not None

    @property
    def progress(self) -> int:
        """Mean progress across assignees, 0 with no assignees."""
        if not self.assignees:
            return 0
        return int(round_half_up(sum(a.progress for a in self.assignees) / len(self.assignees)))

    @property
    def has_incomplete_assignee(self) -> bool:
        return any(not assignee.is_completed for assignee in self.assignees)

    @property
    def is_fully_completed(self) -> bool:
        return bool(self.assignees) and not self.has_incomplete_assignee

    def is_overdue(self, now: datetime) -> bool:
        """Due date has passed and at least one assignee has not completed."""
        if self.due_date is None:
            return False
        return self.due_date < now and self.has_incomplete_assignee

    def days_until_due(self, now: datetime) -> int | None:
        """Whole days until the due date, rounded up; negative once overdue."""
        if self.due_date is None:
            return None
        return math.ceil((self.due_date - now) / timedelta(days=1))
