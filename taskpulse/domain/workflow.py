"""Personal workflow (checklist) models and the workflow command set."""

import secrets
from collections.abc import Iterator
from typing import Annotated, Literal

from pydantic import BaseModel, Field, RootModel

from taskpulse.core.config import Constants
from taskpulse.core.errors import ErrorCode, NotFoundError, ValidationError


class WorkflowStep(BaseModel):
    """Single checklist step owned by one assignee."""

    step_id: str = Field(..., description="Identifier unique within the owning workflow")
    label: str = Field(..., description="Step label (trimmed, non-empty)")
    done: bool = Field(default=False, description="Whether the step is checked off")
    order: int = Field(default=0, description="Display/ranking order; need not be contiguous")


class StepOrder(BaseModel):
    """New order value for one step in a reorder request."""

    step_id: str
    order: int


class WorkflowList(RootModel[list[WorkflowStep]]):
    """Ordered checklist of steps for one assignee on one task."""

    root: list[WorkflowStep] = Field(default_factory=list)

    def __iter__(self) -> Iterator[WorkflowStep]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    @property
    def total_steps(self) -> int:
        return len(self.root)

    @property
    def completed_steps(self) -> int:
        return sum(1 for step in self.root if step.done)

    def get_step(self, step_id: str) -> WorkflowStep:
        """Return the step with the given id.

        Raises:
            NotFoundError: If no step has that id
        """
        for step in self.root:
            if step.step_id == step_id:
                return step
        msg = "Workflow step not found"
        raise NotFoundError(msg, code=ErrorCode.ERR_STEP_NOT_FOUND)

    def _new_step_id(self) -> str:
        existing = {step.step_id for step in self.root}
        while True:
            step_id = secrets.token_urlsafe(Constants.WORKFLOW_STEP_ID_BYTES)
            if step_id not in existing:
                return step_id

    def add_step(self, label: str) -> str:
        """Append a new unchecked step and return its id.

        Raises:
            ValidationError: If the label is empty after trimming or too long
        """
        cleaned = (label or "").strip()
        if not cleaned:
            msg = "Step label is required"
            raise ValidationError(msg)
        if len(cleaned) > Constants.WORKFLOW_STEP_LABEL_MAX_LENGTH:
            msg = f"Step label cannot exceed {Constants.WORKFLOW_STEP_LABEL_MAX_LENGTH} characters"
            raise ValidationError(msg)

        step_id = self._new_step_id()
        self.root.append(WorkflowStep(step_id=step_id, label=cleaned, done=False, order=len(self.root) + 1))
        return step_id

    def toggle_step(self, step_id: str) -> WorkflowStep:
        """Flip the done flag of a step and return it."""
        step = self.get_step(step_id)
        step.done = not step.done
        return step

    def delete_step(self, step_id: str) -> None:
        """Remove a step."""
        step = self.get_step(step_id)
        self.root.remove(step)

    def reorder(self, orders: list[StepOrder]) -> None:
        """Apply new order values to known steps, then stably sort by order.

        Unknown step ids are ignored.
        """
        by_id = {step.step_id: step for step in self.root}
        for item in orders:
            step = by_id.get(item.step_id)
            if step is not None:
                step.order = item.order
        # list.sort is stable, so equal orders keep their relative position
        self.root.sort(key=lambda step: step.order)

    def completion_ratio(self) -> float:
        """Fraction of steps done, 0.0 for an empty workflow."""
        if not self.root:
            return 0.0
        return self.completed_steps / len(self.root)


# Workflow commands: a closed set dispatched on the "action" discriminator.


class AddStep(BaseModel):
    """Append a step with the given label."""

    action: Literal["add_step"] = "add_step"
    label: str


class ToggleStep(BaseModel):
    """Flip a step's done flag."""

    action: Literal["toggle_step"] = "toggle_step"
    step_id: str


class DeleteStep(BaseModel):
    """Remove a step."""

    action: Literal["delete_step"] = "delete_step"
    step_id: str


class Reorder(BaseModel):
    """Assign new order values to steps."""

    action: Literal["reorder"] = "reorder"
    steps: list[StepOrder]


WorkflowCommand = Annotated[AddStep | ToggleStep | DeleteStep | Reorder, Field(discriminator="action")]
