"""Roadmap usage analytics stored in the hosted backend."""

from __future__ import annotations

import logging
from typing import Any, Literal

from roadmap_history.analytics.usage import compare_usage, daily_csv, new_session_id, summarize_events
from roadmap_history.schemas.analytics import (
    AnalyticsExport,
    RoadmapAnalytics,
    RoadmapAnalyticsEvent,
    RoadmapUsageStats,
    UsageComparison,
)
from roadmap_history.store.postgrest import PostgrestClient, PostgrestError

logger = logging.getLogger(__name__)

EVENTS_TABLE = "roadmap_analytics"
USAGE_VIEW = "roadmap_usage_stats"


class RoadmapAnalyticsService:
    """Tracks and reads roadmap interactions.

    Follows the store's soft-fail policy: reads return ``None`` or an empty
    list on failure, writes return ``False``.
    """

    def __init__(self, client: PostgrestClient, *, roadmaps_table: str = "project_roadmaps") -> None:
        self.client = client
        self.roadmaps_table = roadmaps_table

    async def track_event(self, event: RoadmapAnalyticsEvent) -> bool:
        try:
            await self.client.request(
                "POST",
                EVENTS_TABLE,
                json={
                    "roadmap_id": event.roadmap_id,
                    "user_id": event.user_id,
                    "action_type": event.action_type,
                    "action_details": event.action_details,
                    "session_id": event.session_id or new_session_id(),
                },
            )
        except (PostgrestError, ValueError) as exc:
            logger.error("Error tracking roadmap event: %s", exc)
            return False
        return True

    async def get_roadmap_events(self, roadmap_id: str) -> list[RoadmapAnalyticsEvent] | None:
        try:
            rows = await self.client.request(
                "GET",
                EVENTS_TABLE,
                params={
                    "select": "*",
                    "roadmap_id": f"eq.{roadmap_id}",
                    "order": "created_at.desc",
                },
            )
            return [RoadmapAnalyticsEvent.model_validate(row) for row in rows or []]
        except (PostgrestError, ValueError) as exc:
            logger.error("Error fetching analytics for roadmap %s: %s", roadmap_id, exc)
            return None

    async def get_detailed_analytics(self, roadmap_id: str) -> RoadmapAnalytics | None:
        events = await self.get_roadmap_events(roadmap_id)
        if events is None:
            return None
        try:
            return summarize_events(events)
        except ValueError as exc:
            logger.error("Could not process analytics for roadmap %s: %s", roadmap_id, exc)
            return None

    async def _usage_rows(self, order: str, limit: int | None = None) -> list[RoadmapUsageStats]:
        params = {"select": "*", "order": order}
        if limit is not None:
            params["limit"] = str(limit)
        try:
            rows = await self.client.request("GET", USAGE_VIEW, params=params)
            return [RoadmapUsageStats.model_validate(row) for row in rows or []]
        except (PostgrestError, ValueError) as exc:
            logger.error("Error fetching roadmap usage stats: %s", exc)
            return []

    async def get_usage_stats(self) -> list[RoadmapUsageStats]:
        """Usage of every roadmap, most interactions first."""
        return await self._usage_rows("total_interactions.desc")

    async def get_trending_roadmaps(self, limit: int = 5) -> list[RoadmapUsageStats]:
        """The ``limit`` roadmaps with the most recent activity."""
        return await self._usage_rows("last_interaction_at.desc", limit)

    async def get_roadmap_info(self, roadmap_id: str) -> dict[str, Any] | None:
        try:
            return await self.client.request(
                "GET",
                self.roadmaps_table,
                params={"select": "id,name,created_at", "id": f"eq.{roadmap_id}"},
                single=True,
            )
        except (PostgrestError, ValueError) as exc:
            logger.error("Error fetching roadmap info for %s: %s", roadmap_id, exc)
            return None

    async def compare_roadmap_usage(self, first_id: str, second_id: str) -> UsageComparison | None:
        first = await self.get_detailed_analytics(first_id)
        second = await self.get_detailed_analytics(second_id)
        if first is None or second is None:
            return None
        return compare_usage(first_id, first, second_id, second)

    async def export_analytics(
        self,
        roadmap_id: str,
        *,
        time_range: str = "all",
        fmt: Literal["json", "csv"] = "json",
    ) -> AnalyticsExport | str | None:
        """Analytics for one roadmap as an export envelope, or daily CSV."""
        analytics = await self.get_detailed_analytics(roadmap_id)
        if analytics is None:
            return None
        if fmt == "csv":
            return daily_csv(analytics)
        return AnalyticsExport(
            roadmap_info=await self.get_roadmap_info(roadmap_id),
            time_range=time_range,
            analytics=analytics,
        )
