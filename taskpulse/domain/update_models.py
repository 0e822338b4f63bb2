"""Pydantic models for updating records in database."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from taskpulse.core.config import Constants
from taskpulse.domain.create_models import _dedupe_user_ids, _validate_title
from taskpulse.domain.task import AssigneeStatus, TaskPriority, as_utc
from taskpulse.domain.workflow import StepOrder


class TaskUpdate(BaseModel):
    """Partial update of task metadata; unset fields are left unchanged.

    Only due_date may be cleared with an explicit null.
    """

    title: str | None = None
    description: str | None = Field(default=None, max_length=Constants.TASK_DESCRIPTION_MAX_LENGTH)
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None

    @field_validator("title", "description", "priority", "tags")
    @classmethod
    def reject_null(cls, v: object, info: ValidationInfo) -> object:
        """Omitted fields are never validated, so None here is an explicit null."""
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate title length after trimming."""
        return _validate_title(v)

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: datetime | None) -> datetime | None:
        """Read due dates without an offset as UTC."""
        return None if v is None else as_utc(v)


class AssigneesUpdate(BaseModel):
    """Replacement assignee list; users that remain keep their progress."""

    assignee_ids: list[str] = Field(default_factory=list)

    @field_validator("assignee_ids")
    @classmethod
    def validate_assignee_ids(cls, v: list[str]) -> list[str]:
        """Collapse duplicate assignees into one entry each."""
        return _dedupe_user_ids(v)


class AssigneeStatusUpdate(BaseModel):
    """Direct status change requested by an assignee."""

    status: AssigneeStatus


class StepsReorder(BaseModel):
    """New order values for some or all workflow steps."""

    steps: list[StepOrder] = Field(default_factory=list)


class TimerUpdate(BaseModel):
    """Timer action requested by an assignee."""

    action: Literal["start", "pause", "stop"]


class ArchiveUpdate(BaseModel):
    """Archive or restore a task."""

    archived: bool
