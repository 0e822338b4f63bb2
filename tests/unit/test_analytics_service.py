"""Unit tests for analytics_service module."""

from datetime import UTC, datetime

import pytest

from taskpulse.core.config import settings
from taskpulse.domain.create_models import TaskCreate
from taskpulse.domain.task import AssigneeStatus
from taskpulse.services import analytics_service, progress_service, task_service


@pytest.fixture
async def team_tasks(patched_db, fixed_now):
    """Two tasks: alice completes one, bob is partway through the other."""
    first = await task_service.create_task(
        params=TaskCreate(title="Ship release", priority="urgent", assignee_ids=["alice", "bob"])
    )
    second = await task_service.create_task(params=TaskCreate(title="Write changelog", assignee_ids=["bob"]))

    await progress_service.set_assignee_status(task_id=first.id, user_id="alice", status=AssigneeStatus.COMPLETED)
    step = await progress_service.add_workflow_step(task_id=second.id, user_id="bob", label="Draft")
    await progress_service.add_workflow_step(task_id=second.id, user_id="bob", label="Publish")
    await progress_service.toggle_workflow_step(task_id=second.id, user_id="bob", step_id=step.step_id)
    return first, second


@pytest.mark.unit
class TestPersonalAnalytics:
    """Tests for per-user analytics."""

    @pytest.mark.asyncio
    async def test_user_overview(self, team_tasks):
        overview = await analytics_service.get_user_overview(user_id="bob")

        assert overview.total == 2
        assert overview.pending == 1
        assert overview.in_progress == 1
        assert overview.completion_rate == 0

    @pytest.mark.asyncio
    async def test_user_progress_window(self, team_tasks, fixed_now):
        series = await analytics_service.get_user_progress(user_id="alice")

        assert len(series) == settings.progress_window_days
        assert series[-1].date == fixed_now.date()
        assert series[-1].count == 1

    @pytest.mark.asyncio
    async def test_user_summary_uses_clock(self, team_tasks):
        summary = await analytics_service.get_user_summary(user_id="alice")

        assert summary.total_completed == 1
        assert summary.current_streak == 1
        assert summary.best_day == "Friday"

    @pytest.mark.asyncio
    async def test_archived_tasks_are_excluded(self, team_tasks):
        first, _ = team_tasks
        await task_service.set_archived(task_id=first.id, archived=True)

        overview = await analytics_service.get_user_overview(user_id="alice")
        heatmap = await analytics_service.get_user_heatmap(user_id="alice")

        assert overview.total == 0
        assert heatmap == []


@pytest.mark.unit
class TestTeamAnalytics:
    """Tests for organization-wide analytics."""

    @pytest.mark.asyncio
    async def test_admin_overview(self, team_tasks):
        overview = await analytics_service.get_admin_overview()

        assert overview.total_tasks == 2
        assert overview.total == 3
        assert overview.completed == 1
        assert overview.completion_rate == 33
        assert overview.active_assignees == 2

    @pytest.mark.asyncio
    async def test_leaderboard(self, team_tasks):
        board = await analytics_service.get_leaderboard()

        assert [(entry.user_id, entry.productivity_score) for entry in board] == [("alice", 100), ("bob", 0)]

    @pytest.mark.asyncio
    async def test_bottlenecks_with_fresh_tasks(self, team_tasks):
        bottlenecks = await analytics_service.get_bottlenecks()

        assert bottlenecks.overdue == []
        assert bottlenecks.long_running == []
        assert bottlenecks.most_reassigned == []

    @pytest.mark.asyncio
    async def test_priority_distribution(self, team_tasks):
        distribution = await analytics_service.get_priority_distribution()

        assert {entry.priority.value: entry.count for entry in distribution} == {
            "low": 0,
            "medium": 1,
            "high": 0,
            "urgent": 1,
        }

    @pytest.mark.asyncio
    async def test_bottlenecks_with_date_only_due_date(self, patched_db, fixed_now):
        task = await task_service.create_task(
            params=TaskCreate(title="Naive due", due_date="2024-03-01", assignee_ids=["alice"])
        )

        bottlenecks = await analytics_service.get_bottlenecks()

        assert [item.id for item in bottlenecks.overdue] == [task.id]
        assert bottlenecks.overdue[0].due_date == datetime(2024, 3, 1, tzinfo=UTC)
