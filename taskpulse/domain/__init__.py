"""Domain models and DTOs."""

from taskpulse.domain.create_models import StepCreate, TaskCreate
from taskpulse.domain.task import AssigneeProgress, AssigneeStatus, Task, TaskPriority
from taskpulse.domain.update_models import (
    ArchiveUpdate,
    AssigneesUpdate,
    AssigneeStatusUpdate,
    StepsReorder,
    TaskUpdate,
    TimerUpdate,
)
from taskpulse.domain.user import Caller, UserRole
from taskpulse.domain.workflow import (
    AddStep,
    DeleteStep,
    Reorder,
    StepOrder,
    ToggleStep,
    WorkflowCommand,
    WorkflowList,
    WorkflowStep,
)


__all__ = [
    "AddStep",
    "ArchiveUpdate",
    "AssigneeProgress",
    "AssigneeStatus",
    "AssigneeStatusUpdate",
    "AssigneesUpdate",
    "Caller",
    "DeleteStep",
    "Reorder",
    "StepCreate",
    "StepOrder",
    "StepsReorder",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskUpdate",
    "TimerUpdate",
    "ToggleStep",
    "UserRole",
    "WorkflowCommand",
    "WorkflowList",
    "WorkflowStep",
]
