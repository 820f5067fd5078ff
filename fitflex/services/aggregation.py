"""Monthly, weekly and overall running statistics.

All functions here are pure: they take cached activities plus a reference
"now" and return new objects, so the dashboard endpoints and the tests can
call them with literal fixtures.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Sequence

from fitflex.models.schemas import ActivityRecord, ActivitySummary, MonthBucket, WeekBucket
from fitflex.services.units import (
    DEFAULT_CALORIES_PER_KM,
    calorie_estimate,
    distance_km,
    duration_label,
    pace_from_speed,
    pace_label,
    round_half_up,
)


logger = logging.getLogger(__name__)

MONTHS_IN_SERIES = 12
WEEKS_IN_SERIES = 8


def _shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def _short_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}"


def aggregate_monthly(
    activities: Sequence[ActivityRecord],
    now: datetime,
    kcal_per_km: float = DEFAULT_CALORIES_PER_KM,
) -> list[MonthBucket]:
    """
    Fold runs into calendar-month buckets for the current and previous 11 months.

    Pace, heart rate and calories are averaged per run; distance (km) and
    time (minutes) are summed. Months without runs are left out, the rest
    are returned oldest first. Runs outside the window are ignored.
    """
    buckets: dict[tuple[int, int], dict[str, Any]] = {}
    for offset in range(MONTHS_IN_SERIES - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        buckets[(year, month)] = {
            "month": date(year, month, 1).strftime("%b"),
            "year": year,
            "distance": 0.0,
            "time": 0.0,
            "calories": 0.0,
            "heartrate": 0.0,
            "pace": 0.0,
            "runs": 0,
        }

    for activity in activities:
        started = activity.local_start
        if started is None:
            continue
        stats = buckets.get((started.year, started.month))
        if stats is None:
            continue
        stats["distance"] += activity.distance / 1000
        stats["time"] += activity.moving_time / 60
        stats["calories"] += calorie_estimate(activity, kcal_per_km)
        stats["heartrate"] += activity.average_heartrate or 0
        stats["pace"] += pace_from_speed(activity.average_speed)
        stats["runs"] += 1

    series = []
    for stats in buckets.values():
        runs = stats["runs"]
        if runs == 0:
            continue
        series.append(
            MonthBucket(
                month=stats["month"],
                year=stats["year"],
                pace=round_half_up(stats["pace"] / runs, 1),
                distance=round_half_up(stats["distance"], 1),
                time=round_half_up(stats["time"], 1),
                calories=int(round_half_up(stats["calories"] / runs)),
                heartrate=int(round_half_up(stats["heartrate"] / runs)),
                runs=runs,
            )
        )
    return series


def aggregate_weekly(activities: Sequence[ActivityRecord], now: datetime) -> list[WeekBucket]:
    """
    Total distance and run count for the current and previous 7 weeks.

    Weeks start on Monday. All eight buckets are always returned, oldest
    first, even when a week has no runs.
    """
    current_monday = now.date() - timedelta(days=now.weekday())
    series = []

    for offset in range(WEEKS_IN_SERIES - 1, -1, -1):
        week_start = current_monday - timedelta(weeks=offset)
        week_end = week_start + timedelta(days=6)
        window_start = datetime.combine(week_start, time.min)
        window_end = datetime.combine(week_end, time.max)

        in_week = [
            activity
            for activity in activities
            if activity.local_start is not None
            and window_start <= activity.local_start <= window_end
        ]
        distance = sum(activity.distance for activity in in_week) / 1000

        series.append(
            WeekBucket(
                week=f"{week_start.day}/{week_start.month}",
                full_week=f"{_short_date(week_start)} - {_short_date(week_end)}",
                distance=round_half_up(distance, 1),
                runs=len(in_week),
                week_start=week_start,
                week_end=week_end,
            )
        )
    return series


def summarize(
    activities: Sequence[ActivityRecord],
    exclude_missing_heartrate: bool = False,
    kcal_per_km: float = DEFAULT_CALORIES_PER_KM,
) -> ActivitySummary:
    """
    Overall totals and means for a set of runs.

    Args:
        activities: Runs to summarise
        exclude_missing_heartrate: When False (default) runs without heart
            rate count as 0 bpm in the mean, which pulls it down. When True
            they are left out of the heart rate mean entirely.
        kcal_per_km: Calorie estimate for runs without recorded calories

    Returns:
        ActivitySummary, all zeros for an empty list
    """
    count = len(activities)
    if count == 0:
        return ActivitySummary()

    total_distance = sum(activity.distance for activity in activities) / 1000
    total_hours = sum(activity.moving_time for activity in activities) / 3600
    mean_pace = sum(pace_from_speed(activity.average_speed) for activity in activities) / count
    total_calories = sum(calorie_estimate(activity, kcal_per_km) for activity in activities)

    if exclude_missing_heartrate:
        readings = [a.average_heartrate for a in activities if a.average_heartrate]
        mean_hr = sum(readings) / len(readings) if readings else 0.0
    else:
        mean_hr = sum(activity.average_heartrate or 0 for activity in activities) / count

    return ActivitySummary(
        total_distance=round_half_up(total_distance, 1),
        total_time=round_half_up(total_hours, 1),
        avg_pace=round_half_up(mean_pace, 1),
        total_calories=int(round_half_up(total_calories)),
        total_runs=count,
        avg_heartrate=int(round_half_up(mean_hr)),
    )


def activity_date_label(started: datetime | None) -> str:
    """Format a start time like "Mon, Mar 3, 07:05 AM"."""
    if started is None:
        return ""
    return f"{started.strftime('%a, %b')} {started.day}, {started.strftime('%I:%M %p')}"


def format_activity_row(
    activity: ActivityRecord,
    kcal_per_km: float = DEFAULT_CALORIES_PER_KM,
) -> dict[str, Any]:
    """Display row for activity lists on the dashboard and runs pages."""
    started = activity.local_start
    return {
        "id": activity.id,
        "name": activity.name,
        "date": activity_date_label(started),
        "raw_date": started.date().isoformat() if started else None,
        "distance": distance_km(activity.distance),
        "duration": duration_label(activity.moving_time),
        "pace": pace_from_speed(activity.average_speed),
        "pace_label": pace_label(activity.average_speed, seconds_rounding="floor"),
        "calories": calorie_estimate(activity, kcal_per_km),
        "heartrate": activity.average_heartrate or 0,
        "elevation": activity.total_elevation_gain or 0,
        "type": activity.type,
        "ai_analysis": activity.ai_analysis,
    }
