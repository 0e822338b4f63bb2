"""Analytics service for personal and organization-wide statistics.

This module loads a snapshot of non-archived tasks and hands it to the pure
functions in analytics_aggregator. Results are computed per request and never
stored, so a snapshot may be slightly stale relative to concurrent writes.

Key Concepts:
- Personal analytics: scoped to the assignments of one user.
- Team analytics: every assignment across the organization.
- Calendar days: taken in the configured analytics time zone.
"""

import logging
from datetime import UTC, date, datetime, tzinfo

from taskpulse.core.config import settings
from taskpulse.core.logging import span
from taskpulse.models.service_models import (
    AdminOverview,
    BottleneckSet,
    DailyCount,
    LeaderboardEntry,
    OverviewStats,
    PriorityCount,
    TimeTrackingSummary,
    UserSummary,
)
from taskpulse.services import analytics_aggregator, task_repository


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _today() -> tuple[tzinfo, date]:
    tz = analytics_aggregator.resolve_timezone(settings.analytics_timezone)
    return tz, analytics_aggregator.local_date(_utcnow(), tz)


async def get_user_overview(*, user_id: str) -> OverviewStats:
    """Status counts and completion rate for one user's assignments."""
    with span("analytics_service.get_user_overview"):
        tasks = await task_repository.list_tasks(user_id=user_id)
        return analytics_aggregator.compute_overview(tasks, user_id=user_id)


async def get_user_progress(*, user_id: str, window_days: int | None = None) -> list[DailyCount]:
    """Daily completions for one user over the trailing window (default 30 days)."""
    with span("analytics_service.get_user_progress"):
        tasks = await task_repository.list_tasks(user_id=user_id)
        tz, today = _today()
        return analytics_aggregator.compute_daily_counts(
            tasks,
            today=today,
            tz=tz,
            window_days=window_days or settings.progress_window_days,
            user_id=user_id,
        )


async def get_user_heatmap(*, user_id: str) -> list[DailyCount]:
    """All-time completions per day for one user, days without completions omitted."""
    with span("analytics_service.get_user_heatmap"):
        tasks = await task_repository.list_tasks(user_id=user_id)
        tz = analytics_aggregator.resolve_timezone(settings.analytics_timezone)
        return analytics_aggregator.compute_heatmap(tasks, tz=tz, user_id=user_id)


async def get_user_summary(*, user_id: str) -> UserSummary:
    """Get streak, weekday pattern, weekly pace and insights for a user.

    Args:
        user_id: User whose completions to summarize

    Returns:
        UserSummary; a user with no completions gets best/worst day "N/A",
        zero counts and no insights
    """
    with span("analytics_service.get_user_summary"):
        tasks = await task_repository.list_tasks(user_id=user_id)
        tz = analytics_aggregator.resolve_timezone(settings.analytics_timezone)
        summary = analytics_aggregator.compute_user_summary(
            tasks,
            user_id=user_id,
            now=_utcnow(),
            tz=tz,
            policy=settings.avg_per_week_policy,
        )
        logger.debug(
            "Computed user summary",
            extra={"user_id": user_id, "total_completed": summary.total_completed, "streak": summary.current_streak},
        )
        return summary


async def get_time_tracking_summary(*, user_id: str) -> TimeTrackingSummary:
    """Tracked minutes across a user's tasks."""
    with span("analytics_service.get_time_tracking_summary"):
        tasks = await task_repository.list_tasks(user_id=user_id)
        return analytics_aggregator.compute_time_tracking(tasks, user_id=user_id)


async def get_admin_overview() -> AdminOverview:
    """Organization-wide status counts, task totals and average completion time."""
    with span("analytics_service.get_admin_overview"):
        tasks = await task_repository.list_tasks()
        overview = analytics_aggregator.compute_admin_overview(tasks)
        logger.info(
            "Computed admin overview",
            extra={"total_tasks": overview.total_tasks, "completion_rate": overview.completion_rate},
        )
        return overview


async def get_team_progress(*, window_days: int | None = None) -> list[DailyCount]:
    """Daily completions across all users over the trailing window."""
    with span("analytics_service.get_team_progress"):
        tasks = await task_repository.list_tasks()
        tz, today = _today()
        return analytics_aggregator.compute_daily_counts(
            tasks,
            today=today,
            tz=tz,
            window_days=window_days or settings.progress_window_days,
        )


async def get_priority_distribution() -> list[PriorityCount]:
    """Number of tasks per priority, all four priorities always present."""
    with span("analytics_service.get_priority_distribution"):
        tasks = await task_repository.list_tasks()
        return analytics_aggregator.compute_priority_distribution(tasks)


async def get_leaderboard(*, user_ids: list[str] | None = None) -> list[LeaderboardEntry]:
    """Get users ranked by productivity score.

    Args:
        user_ids: Restrict to these users; users without assignments appear
            with zero counts. Defaults to everyone with an assignment.

    Returns:
        List of LeaderboardEntry sorted by productivity_score descending
    """
    with span("analytics_service.get_leaderboard"):
        tasks = await task_repository.list_tasks()
        return analytics_aggregator.compute_leaderboard(tasks, user_ids=user_ids)


async def get_bottlenecks() -> BottleneckSet:
    """Overdue, long-running and most-reassigned tasks."""
    with span("analytics_service.get_bottlenecks"):
        tasks = await task_repository.list_tasks()
        bottlenecks = analytics_aggregator.compute_bottlenecks(
            tasks,
            now=_utcnow(),
            stale_days=settings.stale_task_days,
            limit=settings.bottleneck_limit,
            min_assignees=settings.reassigned_min_assignees,
        )
        logger.info(
            "Computed bottlenecks",
            extra={
                "overdue": len(bottlenecks.overdue),
                "long_running": len(bottlenecks.long_running),
                "most_reassigned": len(bottlenecks.most_reassigned),
            },
        )
        return bottlenecks
