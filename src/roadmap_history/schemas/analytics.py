"""Pydantic models for roadmap usage analytics."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from roadmap_history.schemas.roadmap import CamelModel

ActionType = Literal["view", "edit", "export", "share", "compare", "analyze"]

ACTION_TYPES: tuple[ActionType, ...] = ("view", "edit", "export", "share", "compare", "analyze")


class RoadmapAnalyticsEvent(CamelModel):
    """One user interaction with a saved roadmap."""

    roadmap_id: str
    action_type: ActionType
    action_details: dict[str, Any] = {}
    session_id: str = ""
    user_id: str | None = None
    created_at: str = ""


class RoadmapUsageStats(CamelModel):
    """Aggregated usage row from the ``roadmap_usage_stats`` view."""

    roadmap_id: str
    roadmap_name: str = ""
    roadmap_created_at: str = ""
    unique_users: int = 0
    total_interactions: int = 0
    view_count: int = 0
    edit_count: int = 0
    export_count: int = 0
    last_interaction_at: str = ""


class DailyActivity(CamelModel):
    date: str  # YYYY-MM-DD (UTC)
    count: int = 0
    view_count: int = 0
    edit_count: int = 0
    export_count: int = 0
    share_count: int = 0
    compare_count: int = 0
    analyze_count: int = 0


class EngagementTrend(CamelModel):
    """Events in the last 7 days against the 7 days before."""

    current: int = 0
    previous: int = 0
    change: float = 0.0  # percent


class TimeData(CamelModel):
    daily_data: list[DailyActivity] = []
    action_counts: dict[str, int] = {}
    unique_users: int = 0
    unique_sessions: int = 0
    avg_actions_per_user: float = 0.0
    avg_actions_per_session: float = 0.0
    engagement_trend: EngagementTrend = EngagementTrend()
    total_events: int = 0


class RoadmapAnalytics(CamelModel):
    """Detailed analytics for a single roadmap."""

    total_events: int = 0
    action_counts: dict[str, int] = {}  # only action types that occurred
    unique_users: int = 0
    unique_sessions: int = 0
    time_data: TimeData = TimeData()


class UsageSnapshot(CamelModel):
    roadmap_id: str
    total_events: int = 0
    unique_users: int = 0
    action_counts: dict[str, int] = {}


class UsageDifferences(CamelModel):
    total_events: float = 0
    unique_users: float = 0
    view_count: float = 0
    edit_count: float = 0
    export_count: float = 0


class UsageComparison(CamelModel):
    """Usage of ``first`` relative to ``second``."""

    first: UsageSnapshot
    second: UsageSnapshot
    differences: UsageDifferences
    percentage_differences: UsageDifferences


class AnalyticsExport(CamelModel):
    roadmap_info: dict[str, Any] | None = None
    time_range: str = "all"
    analytics: RoadmapAnalytics
    export_date: str = Field(default_factory=lambda: datetime.now().isoformat())
