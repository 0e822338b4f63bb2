"""Analytics endpoints for personal and organization-wide statistics."""

from fastapi import APIRouter, Depends, Query

from taskpulse.domain.user import Caller
from taskpulse.interface.dependencies import get_target_user_id, require_admin
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
from taskpulse.services import analytics_service


router = APIRouter(prefix="/analytics", tags=["analytics"])


# Personal analytics


@router.get("/me/overview")
async def get_my_overview(user_id: str = Depends(get_target_user_id)) -> OverviewStats:
    return await analytics_service.get_user_overview(user_id=user_id)


@router.get("/me/progress")
async def get_my_progress(
    user_id: str = Depends(get_target_user_id),
    window_days: int | None = Query(default=None, ge=1, le=366),
) -> list[DailyCount]:
    """Completions per day over the trailing window (30 days unless configured)."""
    return await analytics_service.get_user_progress(user_id=user_id, window_days=window_days)


@router.get("/me/heatmap")
async def get_my_heatmap(user_id: str = Depends(get_target_user_id)) -> list[DailyCount]:
    return await analytics_service.get_user_heatmap(user_id=user_id)


@router.get("/me/summary")
async def get_my_summary(user_id: str = Depends(get_target_user_id)) -> UserSummary:
    return await analytics_service.get_user_summary(user_id=user_id)


@router.get("/me/time-tracking")
async def get_my_time_tracking(user_id: str = Depends(get_target_user_id)) -> TimeTrackingSummary:
    return await analytics_service.get_time_tracking_summary(user_id=user_id)


# Administrator analytics


@router.get("/admin/overview")
async def get_admin_overview(_admin: Caller = Depends(require_admin)) -> AdminOverview:
    return await analytics_service.get_admin_overview()


@router.get("/admin/team-progress")
async def get_team_progress(
    _admin: Caller = Depends(require_admin),
    window_days: int | None = Query(default=None, ge=1, le=366),
) -> list[DailyCount]:
    return await analytics_service.get_team_progress(window_days=window_days)


@router.get("/admin/priority-distribution")
async def get_priority_distribution(_admin: Caller = Depends(require_admin)) -> list[PriorityCount]:
    return await analytics_service.get_priority_distribution()


@router.get("/admin/leaderboard")
async def get_leaderboard(
    _admin: Caller = Depends(require_admin),
    user_ids: list[str] | None = Query(default=None, alias="user_id"),
) -> list[LeaderboardEntry]:
    """Users ranked by productivity score; repeat `user_id` to restrict the board."""
    return await analytics_service.get_leaderboard(user_ids=user_ids)


@router.get("/admin/bottlenecks")
async def get_bottlenecks(_admin: Caller = Depends(require_admin)) -> BottleneckSet:
    return await analytics_service.get_bottlenecks()
