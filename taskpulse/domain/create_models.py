"""Pydantic models for creating records in database."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from taskpulse.core.config import Constants
from taskpulse.domain.task import TaskPriority, as_utc


def _validate_title(v: str) -> str:
    v = v.strip()
    if len(v) < Constants.TASK_TITLE_MIN_LENGTH:
        raise ValueError(f"Task title must be at least {Constants.TASK_TITLE_MIN_LENGTH} characters")
    if len(v) > Constants.TASK_TITLE_MAX_LENGTH:
        raise ValueError(f"Task title cannot exceed {Constants.TASK_TITLE_MAX_LENGTH} characters")
    return v


def _dedupe_user_ids(v: list[str]) -> list[str]:
    """Drop repeated user ids while keeping first-seen order."""
    return list(dict.fromkeys(user_id.strip() for user_id in v if user_id.strip()))


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record."""

    title: str = Field(..., description="Task title")
    description: str = Field(default="", max_length=Constants.TASK_DESCRIPTION_MAX_LENGTH)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    due_date: datetime | None = Field(default=None)
    tags: list[str] = Field(default_factory=list)
    assignee_ids: list[str] = Field(default_factory=list, description="Users to assign with default progress")
    created_by: str | None = Field(default=None, description="Creator user ID")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate title length after trimming."""
        return _validate_title(v)

    @field_validator("assignee_ids")
    @classmethod
    def validate_assignee_ids(cls, v: list[str]) -> list[str]:
        """Collapse duplicate assignees into one entry each."""
        return _dedupe_user_ids(v)

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: datetime | None) -> datetime | None:
        """Read due dates without an offset as UTC."""
        return None if v is None else as_utc(v)


class StepCreate(BaseModel):
    """New workflow step; the label is trimmed and validated when applied."""

    label: str = Field(..., description="Step label")
