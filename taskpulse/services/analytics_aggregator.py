"""Pure analytics computations over a snapshot of tasks.

Nothing here performs I/O or mutates a task. Every function that depends on the
current time takes `now` (or `today`) explicitly, and calendar days are taken in
the time zone passed as `tz`.

Key Concepts:
- Assignment: one (task, assignee) pair. Counts are per assignment, so a task
  shared by three users contributes three entries.
- Completion: an assignment in the completed state with completed_at set.
- Whole days: elapsed time truncated toward zero, so 47 hours is 1 day.
"""

import math
from collections import Counter
from collections.abc import Iterable, Iterator
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Literal
from zoneinfo import ZoneInfo

from taskpulse.core.config import Constants
from taskpulse.core.rounding import percent, round_half_up
from taskpulse.domain.task import AssigneeProgress, AssigneeStatus, Task, TaskPriority, as_utc
from taskpulse.models.service_models import (
    AdminOverview,
    BottleneckSet,
    DailyCount,
    LeaderboardEntry,
    LongRunningTask,
    OverdueTask,
    OverviewStats,
    PriorityCount,
    ReassignedTask,
    TaskTime,
    TimeTrackingSummary,
    UserSummary,
)


AvgPerWeekPolicy = Literal["calendar", "legacy"]

# Sunday-first, matching weekday indexes 0..6
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
NO_DAY = "N/A"


def resolve_timezone(name: str) -> tzinfo:
    """Return a tzinfo for an IANA name."""
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)


def local_date(moment: datetime, tz: tzinfo) -> date:
    """Calendar date of a timestamp in the given zone."""
    return as_utc(moment).astimezone(tz).date()


def whole_days(later: datetime, earlier: datetime) -> int:
    """Full days between two timestamps, truncated toward zero."""
    return int((as_utc(later) - as_utc(earlier)) / timedelta(days=1))


def weekday_index(day: date) -> int:
    """0 for Sunday through 6 for Saturday."""
    return (day.weekday() + 1) % 7


def iter_assignments(tasks: Iterable[Task], user_id: str | None = None) -> Iterator[tuple[Task, AssigneeProgress]]:
    """Yield (task, assignee) pairs, optionally for one user only."""
    for task in tasks:
        for assignee in task.assignees:
            if user_id is None or assignee.user_id == user_id:
                yield task, assignee


def completion_dates(tasks: Iterable[Task], tz: tzinfo, user_id: str | None = None) -> list[date]:
    """Local completion dates of every completed assignment, in no particular order."""
    return [
        local_date(assignee.completed_at, tz)
        for _, assignee in iter_assignments(tasks, user_id)
        if assignee.status == AssigneeStatus.COMPLETED and assignee.completed_at is not None
    ]


# Overview


def compute_overview(tasks: Iterable[Task], user_id: str | None = None) -> OverviewStats:
    """Count assignments by status; completion_rate is the completed percentage."""
    counts = Counter(assignee.status for _, assignee in iter_assignments(tasks, user_id))
    total = sum(counts.values())
    completed = counts[AssigneeStatus.COMPLETED]
    return OverviewStats(
        total=total,
        pending=counts[AssigneeStatus.PENDING],
        in_progress=counts[AssigneeStatus.IN_PROGRESS],
        completed=completed,
        completion_rate=percent(completed, total),
    )


def compute_avg_completion_days(tasks: Iterable[Task]) -> float:
    """Mean days from start (or task creation) to completion, to one decimal.

    Negative spans count as 0. Returns 0.0 when nothing has been completed.
    """
    durations = [
        max(0, whole_days(assignee.completed_at, assignee.started_at or task.created_at))
        for task, assignee in iter_assignments(tasks)
        if assignee.status == AssigneeStatus.COMPLETED and assignee.completed_at is not None
    ]
    if not durations:
        return 0.0
    return round_half_up(sum(durations) / len(durations), 1)


def compute_admin_overview(tasks: list[Task]) -> AdminOverview:
    """Organization-wide overview including task and assignee totals."""
    overview = compute_overview(tasks)
    active_assignees = {assignee.user_id for _, assignee in iter_assignments(tasks)}
    return AdminOverview(
        **overview.model_dump(),
        total_tasks=len(tasks),
        active_assignees=len(active_assignees),
        avg_completion_days=compute_avg_completion_days(tasks),
    )


# Time series


def compute_daily_counts(
    tasks: Iterable[Task],
    *,
    today: date,
    tz: tzinfo,
    window_days: int,
    user_id: str | None = None,
) -> list[DailyCount]:
    """Dense, chronological completion counts for the trailing window ending today.

    Every day in the window appears, with 0 when nothing was completed.
    """
    buckets = {today - timedelta(days=offset): 0 for offset in range(window_days - 1, -1, -1)}
    for day in completion_dates(tasks, tz, user_id):
        if day in buckets:
            buckets[day] += 1
    return [DailyCount(date=day, count=count) for day, count in buckets.items()]


def compute_heatmap(tasks: Iterable[Task], *, tz: tzinfo, user_id: str) -> list[DailyCount]:
    """Sparse completion counts over all time, only for days with completions."""
    counts = Counter(completion_dates(tasks, tz, user_id))
    return [DailyCount(date=day, count=counts[day]) for day in sorted(counts)]


def compute_priority_distribution(tasks: Iterable[Task]) -> list[PriorityCount]:
    """Task counts for every priority level, including empty ones."""
    counts = Counter(task.priority for task in tasks)
    return [PriorityCount(priority=priority, count=counts[priority]) for priority in TaskPriority]


# Leaderboard


def compute_leaderboard(tasks: Iterable[Task], user_ids: list[str] | None = None) -> list[LeaderboardEntry]:
    """Rank users by productivity score (completed / assigned).

    Args:
        tasks: Task snapshot
        user_ids: Restrict the board to these users, in this order; users with no
            assignments get zero entries. Defaults to every assignee in order of
            first appearance.

    Returns:
        Entries sorted by productivity_score descending; ties keep their order
    """
    task_list = list(tasks)
    if user_ids is None:
        user_ids = list(dict.fromkeys(assignee.user_id for _, assignee in iter_assignments(task_list)))

    totals = dict.fromkeys(user_ids, 0)
    completed = dict.fromkeys(user_ids, 0)
    durations: dict[str, list[int]] = {user_id: [] for user_id in user_ids}

    for _, assignee in iter_assignments(task_list):
        user_id = assignee.user_id
        if user_id not in totals:
            continue
        totals[user_id] += 1
        if assignee.status != AssigneeStatus.COMPLETED:
            continue
        completed[user_id] += 1
        if assignee.started_at is not None and assignee.completed_at is not None:
            durations[user_id].append(whole_days(assignee.completed_at, assignee.started_at))

    entries = []
    for user_id in user_ids:
        spans = durations[user_id]
        entries.append(
            LeaderboardEntry(
                user_id=user_id,
                completed=completed[user_id],
                total=totals[user_id],
                avg_completion_days=round_half_up(sum(spans) / len(spans), 1) if spans else 0.0,
                productivity_score=percent(completed[user_id], totals[user_id]),
            )
        )

    return sorted(entries, key=lambda entry: entry.productivity_score, reverse=True)


# Bottlenecks


def compute_bottlenecks(
    tasks: Iterable[Task],
    *,
    now: datetime,
    stale_days: int = 7,
    limit: int = 10,
    min_assignees: int = 2,
) -> BottleneckSet:
    """Find overdue, long-running and most-reassigned tasks.

    - overdue: due date passed and some assignee unfinished (uncapped)
    - long_running: some assignee unfinished and no update for more than
      stale_days; oldest first, capped at limit
    - most_reassigned: more than min_assignees assignees; most first, capped
    """
    task_list = list(tasks)

    overdue = [
        OverdueTask(
            id=task.id,
            title=task.title,
            priority=task.priority,
            due_date=task.due_date,
            assignee_count=len(task.assignees),
            progress=task.progress,
        )
        for task in task_list
        if task.due_date is not None and task.is_overdue(now)
    ]

    long_running = [
        LongRunningTask(
            id=task.id,
            title=task.title,
            priority=task.priority,
            duration_days=whole_days(now, task.created_at),
            days_since_update=whole_days(now, task.updated_at),
            progress=task.progress,
        )
        for task in task_list
        if task.has_incomplete_assignee and whole_days(now, task.updated_at) > stale_days
    ]
    long_running.sort(key=lambda item: item.duration_days, reverse=True)

    most_reassigned = [
        ReassignedTask(
            id=task.id,
            title=task.title,
            priority=task.priority,
            assignee_count=len(task.assignees),
            progress=task.progress,
        )
        for task in task_list
        if len(task.assignees) > min_assignees
    ]
    most_reassigned.sort(key=lambda item: item.assignee_count, reverse=True)

    return BottleneckSet(
        overdue=overdue,
        long_running=long_running[:limit],
        most_reassigned=most_reassigned[:limit],
    )


# Personal summary


def compute_streak(dates: Iterable[date], *, today: date) -> int:
    """Consecutive days with a completion, counting back from today.

    A day without completions today means a streak of 0.
    """
    completed_days = set(dates)
    streak = 0
    day = today
    while day in completed_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def compute_weekday_stats(dates: list[date]) -> tuple[str, int, str, int | None]:
    """Best and worst weekday by completion count.

    The best day is the first weekday (Sunday first) with the strictly highest
    count, "N/A" when there are no completions. The worst day is the first with
    the strictly lowest count and is only reported when completions exist.

    Returns:
        (best_day, best_count, worst_day, worst_count)
    """
    tally = [0] * 7
    for day in dates:
        tally[weekday_index(day)] += 1

    best_day, best_count = NO_DAY, 0
    for index, count in enumerate(tally):
        if count > best_count:
            best_day, best_count = DAY_NAMES[index], count

    if not dates:
        return best_day, best_count, NO_DAY, None

    worst_index = min(range(7), key=lambda index: tally[index])
    return best_day, best_count, DAY_NAMES[worst_index], tally[worst_index]


def compute_avg_per_week(dates: list[date], *, today: date, policy: AvgPerWeekPolicy = "calendar") -> float:
    """Average completions per week.

    calendar: completions divided by the Monday-start calendar weeks from the
        week of the first completion through the current week, to one decimal.
    legacy: total / ceil(total / 7), rounded to a whole number.
    """
    total = len(dates)
    if total == 0:
        return 0.0

    if policy == "legacy":
        weeks = math.ceil(total / 7) or 1
        return round_half_up(total / weeks)

    first = min(dates)
    first_monday = first - timedelta(days=first.weekday())
    current_monday = today - timedelta(days=today.weekday())
    weeks = max(1, (current_monday - first_monday).days // 7 + 1)
    return round_half_up(total / weeks, 1)


def build_insights(*, best_day: str, best_day_count: int, current_streak: int, avg_per_week: float) -> list[str]:
    """Human-readable observations derived from the summary numbers."""
    insights = []
    if best_day_count > 0:
        insights.append(f"You're most productive on {best_day}s with {best_day_count} tasks completed.")
    if current_streak > 0:
        insights.append(f"You're on a {current_streak}-day completion streak! Keep it up!")
    if avg_per_week > Constants.INSIGHT_GREAT_PACE_PER_WEEK:
        insights.append(f"You average {avg_per_week:g} tasks per week - great pace!")
    elif avg_per_week > 0:
        insights.append("Try to increase your completion rate to boost productivity.")
    return insights


def compute_user_summary(
    tasks: Iterable[Task],
    *,
    user_id: str,
    now: datetime,
    tz: tzinfo,
    policy: AvgPerWeekPolicy = "calendar",
) -> UserSummary:
    """Streak, weekday pattern, weekly pace and insights for one user."""
    dates = completion_dates(tasks, tz, user_id)
    today = local_date(now, tz)

    best_day, best_count, worst_day, worst_count = compute_weekday_stats(dates)
    streak = compute_streak(dates, today=today)
    avg_per_week = compute_avg_per_week(dates, today=today, policy=policy)

    return UserSummary(
        best_day=best_day,
        best_day_count=best_count,
        worst_day=worst_day,
        worst_day_count=worst_count,
        current_streak=streak,
        avg_per_week=avg_per_week,
        total_completed=len(dates),
        insights=build_insights(
            best_day=best_day,
            best_day_count=best_count,
            current_streak=streak,
            avg_per_week=avg_per_week,
        ),
    )


# Time tracking


def compute_time_tracking(tasks: Iterable[Task], *, user_id: str) -> TimeTrackingSummary:
    """Tracked minutes per task for one user.

    Minutes of a timer that is still running are not included until it stops.
    """
    entries = [
        TaskTime(
            task_id=task.id,
            title=task.title,
            time_spent_minutes=assignee.time_spent_minutes,
            is_timer_active=assignee.is_timer_active,
        )
        for task, assignee in iter_assignments(tasks, user_id)
        if assignee.time_spent_minutes > 0 or assignee.is_timer_active
    ]
    return TimeTrackingSummary(
        user_id=user_id,
        total_minutes=sum(entry.time_spent_minutes for entry in entries),
        tasks_tracked=len(entries),
        active_timers=sum(1 for entry in entries if entry.is_timer_active),
        tasks=entries,
    )
