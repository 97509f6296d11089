"""Pure processing of roadmap analytics events."""

from __future__ import annotations

import csv
import io
import random
import string
import time
from collections import Counter, defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from roadmap_history.schemas.analytics import (
    ACTION_TYPES,
    DailyActivity,
    EngagementTrend,
    RoadmapAnalytics,
    RoadmapAnalyticsEvent,
    TimeData,
    UsageComparison,
    UsageDifferences,
    UsageSnapshot,
)

_TREND_WINDOW = timedelta(days=7)


def new_session_id() -> str:
    """``<epoch millis>-<random suffix>``, unique enough for grouping events."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=13))
    return f"{int(time.time() * 1000)}-{suffix}"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _timestamp(value: str) -> datetime:
    return _as_utc(datetime.fromisoformat(value))


def _percent_change(current: float, previous: float) -> float:
    if previous:
        return (current - previous) / previous * 100
    return 100.0 if current else 0.0


def _time_data(events: Sequence[RoadmapAnalyticsEvent], now: datetime) -> TimeData:
    by_day: dict[str, list[RoadmapAnalyticsEvent]] = defaultdict(list)
    stamps: list[datetime] = []
    for event in events:
        stamp = _timestamp(event.created_at)
        stamps.append(stamp)
        by_day[stamp.date().isoformat()].append(event)

    daily: list[DailyActivity] = []
    for day in sorted(by_day):
        counts = Counter(e.action_type for e in by_day[day])
        daily.append(
            DailyActivity(
                date=day,
                count=len(by_day[day]),
                **{f"{action}_count": counts[action] for action in ACTION_TYPES},
            )
        )

    totals = Counter(e.action_type for e in events)
    users = {e.user_id for e in events if e.user_id}
    sessions = {e.session_id for e in events if e.session_id}

    last_start = now - _TREND_WINDOW
    previous_start = now - 2 * _TREND_WINDOW
    current = sum(1 for s in stamps if last_start <= s <= now)
    previous = sum(1 for s in stamps if previous_start <= s < last_start)

    return TimeData(
        daily_data=daily,
        action_counts={action: totals[action] for action in ACTION_TYPES},
        unique_users=len(users),
        unique_sessions=len(sessions),
        avg_actions_per_user=len(events) / len(users) if users else 0.0,
        avg_actions_per_session=len(events) / len(sessions) if sessions else 0.0,
        engagement_trend=EngagementTrend(
            current=current,
            previous=previous,
            change=_percent_change(current, previous),
        ),
        total_events=len(events),
    )


def summarize_events(
    events: Sequence[RoadmapAnalyticsEvent],
    *,
    now: datetime | None = None,
) -> RoadmapAnalytics:
    """Aggregate raw events into per-roadmap analytics.

    Timestamps without an offset are treated as UTC.  ``now`` anchors the
    7-day engagement trend and defaults to the current time.
    """
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    time_data = _time_data(events, now)
    return RoadmapAnalytics(
        total_events=len(events),
        action_counts=dict(Counter(e.action_type for e in events)),
        unique_users=time_data.unique_users,
        unique_sessions=time_data.unique_sessions,
        time_data=time_data,
    )


def _ratio(diff: float, base: float) -> float:
    return diff / base * 100 if base else 0.0


def compare_usage(
    first_id: str,
    first: RoadmapAnalytics,
    second_id: str,
    second: RoadmapAnalytics,
) -> UsageComparison:
    """Usage of the first roadmap relative to the second.

    Percentages are relative to the second roadmap and 0 where it has no
    activity of that kind.
    """
    def _count(analytics: RoadmapAnalytics, action: str) -> int:
        return analytics.action_counts.get(action, 0)

    differences = UsageDifferences(
        total_events=first.total_events - second.total_events,
        unique_users=first.unique_users - second.unique_users,
        view_count=_count(first, "view") - _count(second, "view"),
        edit_count=_count(first, "edit") - _count(second, "edit"),
        export_count=_count(first, "export") - _count(second, "export"),
    )
    return UsageComparison(
        first=UsageSnapshot(
            roadmap_id=first_id,
            total_events=first.total_events,
            unique_users=first.unique_users,
            action_counts=first.action_counts,
        ),
        second=UsageSnapshot(
            roadmap_id=second_id,
            total_events=second.total_events,
            unique_users=second.unique_users,
            action_counts=second.action_counts,
        ),
        differences=differences,
        percentage_differences=UsageDifferences(
            total_events=_ratio(differences.total_events, second.total_events),
            unique_users=_ratio(differences.unique_users, second.unique_users),
            view_count=_ratio(differences.view_count, _count(second, "view")),
            edit_count=_ratio(differences.edit_count, _count(second, "edit")),
            export_count=_ratio(differences.export_count, _count(second, "export")),
        ),
    )


def daily_csv(analytics: RoadmapAnalytics) -> str:
    """Daily activity as CSV with camelCase headers."""
    rows = [day.model_dump(by_alias=True) for day in analytics.time_data.daily_data]
    if not rows:
        return "No data available"

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(rows[0]), lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue().rstrip("\n")
