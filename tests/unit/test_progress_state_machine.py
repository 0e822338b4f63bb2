"""Unit tests for per-assignee progress transitions."""

from datetime import UTC, datetime, timedelta

import pytest

from taskpulse.core.errors import ConflictError, ErrorCode, NotFoundError, ValidationError
from taskpulse.domain.task import AssigneeProgress, AssigneeStatus
from taskpulse.domain.workflow import AddStep, DeleteStep, Reorder, StepOrder, ToggleStep
from taskpulse.services import progress_state_machine as psm


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def _with_steps(*done: bool, status: AssigneeStatus = AssigneeStatus.PENDING) -> tuple[AssigneeProgress, list[str]]:
    assignee = AssigneeProgress(user_id="alice", status=status)
    ids = []
    for index, flag in enumerate(done):
        step_id = assignee.workflow.add_step(f"step {index}")
        assignee.workflow.get_step(step_id).done = flag
        ids.append(step_id)
    return assignee, ids


def _assert_completion_invariant(assignee: AssigneeProgress) -> None:
    if assignee.status == AssigneeStatus.COMPLETED:
        assert assignee.progress == 100
        assert assignee.completed_at is not None
    else:
        assert assignee.completed_at is None


@pytest.mark.unit
class TestResolveWorkflowStatus:
    """Regression policy table."""

    @pytest.mark.parametrize(
        ("current", "progress", "total_steps", "expected"),
        [
            (AssigneeStatus.PENDING, 100, 1, AssigneeStatus.COMPLETED),
            (AssigneeStatus.IN_PROGRESS, 100, 3, AssigneeStatus.COMPLETED),
            (AssigneeStatus.PENDING, 50, 2, AssigneeStatus.IN_PROGRESS),
            (AssigneeStatus.COMPLETED, 67, 3, AssigneeStatus.IN_PROGRESS),
            (AssigneeStatus.PENDING, 0, 2, AssigneeStatus.PENDING),
            (AssigneeStatus.IN_PROGRESS, 0, 2, AssigneeStatus.IN_PROGRESS),
            (AssigneeStatus.COMPLETED, 0, 2, AssigneeStatus.IN_PROGRESS),
            (AssigneeStatus.COMPLETED, 0, 0, AssigneeStatus.PENDING),
            (AssigneeStatus.IN_PROGRESS, 0, 0, AssigneeStatus.PENDING),
        ],
    )
    def test_policy(self, current, progress, total_steps, expected):
        assert psm.resolve_workflow_status(current=current, progress=progress, total_steps=total_steps) == expected


@pytest.mark.unit
class TestWorkflowCommands:
    """Tests for applying workflow commands."""

    def test_toggling_only_step_completes(self):
        assignee, (step_id,) = _with_steps(False)

        psm.apply_workflow_command(assignee, ToggleStep(step_id=step_id), now=NOW)

        assert assignee.progress == 100
        assert assignee.status == AssigneeStatus.COMPLETED
        assert assignee.completed_at == NOW
        assert assignee.started_at == NOW

    def test_half_done_is_in_progress(self):
        assignee, (first, _second) = _with_steps(False, False)

        psm.apply_workflow_command(assignee, ToggleStep(step_id=first), now=NOW)

        assert assignee.workflow.completion_ratio() == 0.5
        assert assignee.progress == 50
        assert assignee.status == AssigneeStatus.IN_PROGRESS
        assert assignee.started_at == NOW
        _assert_completion_invariant(assignee)

    def test_progress_rounds_half_up(self):
        assignee, ids = _with_steps(False, False, False)

        psm.apply_workflow_command(assignee, ToggleStep(step_id=ids[0]), now=NOW)
        assert assignee.progress == 33

        psm.apply_workflow_command(assignee, ToggleStep(step_id=ids[1]), now=NOW)
        assert assignee.progress == 67

    def test_toggle_twice_restores_done_and_progress(self):
        assignee, (first, _second) = _with_steps(True, False, status=AssigneeStatus.IN_PROGRESS)
        assignee.progress = 50

        psm.apply_workflow_command(assignee, ToggleStep(step_id=first), now=NOW)
        psm.apply_workflow_command(assignee, ToggleStep(step_id=first), now=NOW)

        assert assignee.workflow.get_step(first).done is True
        assert assignee.progress == 50

    def test_untoggling_completed_workflow_regresses_to_in_progress(self):
        assignee, (step_id,) = _with_steps(False)
        later = NOW + timedelta(hours=1)

        psm.apply_workflow_command(assignee, ToggleStep(step_id=step_id), now=NOW)
        psm.apply_workflow_command(assignee, ToggleStep(step_id=step_id), now=later)

        assert assignee.status == AssigneeStatus.IN_PROGRESS
        assert assignee.progress == 0
        assert assignee.completed_at is None
        assert assignee.started_at == NOW

    def test_adding_step_to_completed_workflow_reopens_it(self):
        assignee, (step_id,) = _with_steps(False)
        psm.apply_workflow_command(assignee, ToggleStep(step_id=step_id), now=NOW)

        new_id = psm.apply_workflow_command(assignee, AddStep(label="One more thing"), now=NOW)

        assert new_id is not None
        assert assignee.progress == 50
        assert assignee.status == AssigneeStatus.IN_PROGRESS
        _assert_completion_invariant(assignee)

    def test_add_step_on_pending_stays_pending(self):
        assignee = AssigneeProgress(user_id="alice")

        psm.apply_workflow_command(assignee, AddStep(label="First"), now=NOW)

        assert assignee.status == AssigneeStatus.PENDING
        assert assignee.progress == 0
        assert assignee.started_at is None

    def test_deleting_last_step_resets_to_pending(self):
        assignee, (step_id,) = _with_steps(False)
        psm.apply_workflow_command(assignee, ToggleStep(step_id=step_id), now=NOW)

        psm.apply_workflow_command(assignee, DeleteStep(step_id=step_id), now=NOW)

        assert assignee.status == AssigneeStatus.PENDING
        assert assignee.progress == 0
        assert assignee.completed_at is None

    def test_deleting_unchecked_step_can_complete(self):
        assignee, (_done, pending) = _with_steps(True, False, status=AssigneeStatus.IN_PROGRESS)

        psm.apply_workflow_command(assignee, DeleteStep(step_id=pending), now=NOW)

        assert assignee.status == AssigneeStatus.COMPLETED
        assert assignee.completed_at == NOW

    def test_reorder_keeps_progress_and_status(self):
        assignee, (a, b) = _with_steps(True, False, status=AssigneeStatus.IN_PROGRESS)
        assignee.progress = 50

        result = psm.apply_workflow_command(
            assignee, Reorder(steps=[StepOrder(step_id=a, order=2), StepOrder(step_id=b, order=1)]), now=NOW
        )

        assert result is None
        assert [step.step_id for step in assignee.workflow] == [b, a]
        assert assignee.progress == 50
        assert assignee.status == AssigneeStatus.IN_PROGRESS

    def test_workflow_completion_restamps_completed_at(self):
        earlier = NOW - timedelta(days=1)
        assignee, (a, _b) = _with_steps(True, True, status=AssigneeStatus.COMPLETED)
        assignee.progress = 100
        assignee.completed_at = earlier

        psm.apply_workflow_command(assignee, DeleteStep(step_id=a), now=NOW)

        assert assignee.status == AssigneeStatus.COMPLETED
        assert assignee.completed_at == NOW

    def test_unknown_step_leaves_assignee_untouched(self):
        assignee, _ = _with_steps(False)
        before = assignee.model_copy(deep=True)

        with pytest.raises(NotFoundError):
            psm.apply_workflow_command(assignee, ToggleStep(step_id="missing"), now=NOW)

        assert assignee == before

    def test_empty_label_rejected(self):
        assignee = AssigneeProgress(user_id="alice")

        with pytest.raises(ValidationError):
            psm.apply_workflow_command(assignee, AddStep(label="  "), now=NOW)


@pytest.mark.unit
class TestSetStatus:
    """Tests for direct status changes."""

    def test_completing_sets_progress_and_timestamps(self):
        assignee = AssigneeProgress(user_id="alice", progress=20)

        psm.set_status(assignee, AssigneeStatus.COMPLETED, now=NOW)

        assert assignee.status == AssigneeStatus.COMPLETED
        assert assignee.progress == 100
        assert assignee.completed_at == NOW
        assert assignee.started_at == NOW

    def test_starting_stamps_started_at_once(self):
        earlier = NOW - timedelta(days=2)
        assignee = AssigneeProgress(user_id="alice", started_at=earlier)

        psm.set_status(assignee, AssigneeStatus.IN_PROGRESS, now=NOW)

        assert assignee.started_at == earlier

    def test_reopening_clears_completed_at(self):
        assignee = AssigneeProgress(user_id="alice")
        psm.set_status(assignee, AssigneeStatus.COMPLETED, now=NOW)

        psm.set_status(assignee, AssigneeStatus.PENDING, now=NOW)

        assert assignee.status == AssigneeStatus.PENDING
        assert assignee.completed_at is None


@pytest.mark.unit
class TestTimer:
    """Tests for timer accounting."""

    def test_start_twice_conflicts(self):
        assignee = AssigneeProgress(user_id="alice")
        psm.start_timer(assignee, now=NOW)

        with pytest.raises(ConflictError) as exc_info:
            psm.start_timer(assignee, now=NOW)

        assert exc_info.value.code == ErrorCode.ERR_TIMER_ALREADY_RUNNING
        assert assignee.active_timer_started_at == NOW

    def test_stop_after_90_seconds_adds_two_minutes(self):
        assignee = AssigneeProgress(user_id="alice", time_spent_minutes=10)
        psm.start_timer(assignee, now=NOW)

        added = psm.stop_timer(assignee, now=NOW + timedelta(seconds=90))

        assert added == 2
        assert assignee.time_spent_minutes == 12
        assert assignee.active_timer_started_at is None
        assert assignee.is_timer_active is False

    def test_short_interval_rounds_down(self):
        assignee = AssigneeProgress(user_id="alice")
        psm.start_timer(assignee, now=NOW)

        assert psm.stop_timer(assignee, now=NOW + timedelta(seconds=29)) == 0

    def test_stop_without_running_timer_conflicts(self):
        assignee = AssigneeProgress(user_id="alice")

        with pytest.raises(ConflictError) as exc_info:
            psm.stop_timer(assignee, now=NOW)

        assert exc_info.value.code == ErrorCode.ERR_TIMER_NOT_RUNNING

    def test_negative_interval_is_clamped(self):
        assignee = AssigneeProgress(user_id="alice", time_spent_minutes=5)
        psm.start_timer(assignee, now=NOW)

        added = psm.stop_timer(assignee, now=NOW - timedelta(minutes=3))

        assert added == 0
        assert assignee.time_spent_minutes == 5
        assert assignee.active_timer_started_at is None

    @pytest.mark.parametrize("action", ["pause", "stop"])
    def test_pause_and_stop_are_equivalent(self, action):
        assignee = AssigneeProgress(user_id="alice")
        psm.apply_timer_action(assignee, "start", now=NOW)

        psm.apply_timer_action(assignee, action, now=NOW + timedelta(minutes=5))

        assert assignee.time_spent_minutes == 5
        assert assignee.is_timer_active is False

    def test_timer_does_not_change_status(self):
        assignee = AssigneeProgress(user_id="alice")

        psm.apply_timer_action(assignee, "start", now=NOW)

        assert assignee.status == AssigneeStatus.PENDING
