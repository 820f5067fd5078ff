"""Line a weekly plan up against the runs actually recorded this week."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Sequence

from fitflex.models.schemas import ActivityRecord, ActualActivity, TrainingSession
from fitflex.services.plan_extractor import DAY_NAMES
from fitflex.services.units import duration_label, matcher_pace, round_half_up


logger = logging.getLogger(__name__)

DEFAULT_PLAN_TYPE = "Half Marathon Training"

_DEFAULT_WEEK = (
    ("easy", "45 min", "6-7 km", "Easy run at conversational pace"),
    ("interval", "50 min", "8 km", "4x 1km intervals at 5K pace with 2min recovery"),
    ("rest", "Rest", None, "Rest day or gentle yoga/stretching"),
    ("tempo", "55 min", "9 km", "3km warm-up, 5km tempo, 1km cool-down"),
    ("rest", "Rest", None, "Rest day or light cross-training"),
    ("long", "90 min", "15 km", "Long steady run at easy pace"),
    ("easy", "30 min", "4-5 km", "Recovery run at very easy pace"),
)


def week_dates(now: datetime | date) -> list[date]:
    """Monday through Sunday of the week containing ``now``."""
    today = now.date() if isinstance(now, datetime) else now
    monday = today - timedelta(days=today.weekday())
    return [monday + timedelta(days=offset) for offset in range(7)]


def default_weekly_plan() -> list[TrainingSession]:
    """Generated week used when no saved plan has been selected."""
    return [
        TrainingSession(
            day=day,
            type=session_type,
            duration=duration,
            distance=distance,
            description=description,
        )
        for day, (session_type, duration, distance, description) in zip(DAY_NAMES, _DEFAULT_WEEK)
    ]


def _rest_day(day: str) -> TrainingSession:
    return TrainingSession(day=day, type="rest", duration="Rest", description="Rest day")


def to_weekly_sessions(sessions: Sequence[TrainingSession]) -> list[TrainingSession]:
    """
    Lay a saved plan's sessions out as exactly seven Monday-first days.

    Sessions naming a weekday go on that day; the first one wins when two
    share a day. Sessions without a recognisable day fill the remaining
    days in order. Days still empty become rest days and anything left
    over is dropped.
    """
    by_day: dict[str, TrainingSession] = {}
    unplaced: list[TrainingSession] = []

    for session in sessions:
        day = session.day.strip().capitalize()
        if day not in DAY_NAMES:
            day = next((name for name in DAY_NAMES if name[:3] == day[:3]), "")
        if day and day not in by_day:
            by_day[day] = session.model_copy(update={"day": day})
        elif not day:
            unplaced.append(session)
        else:
            logger.debug("Dropping extra session for %s", day)

    week = []
    for name in DAY_NAMES:
        if name in by_day:
            week.append(by_day[name])
        elif unplaced:
            week.append(unplaced.pop(0).model_copy(update={"day": name}))
        else:
            week.append(_rest_day(name))

    if unplaced:
        logger.debug("Dropping %d sessions beyond one week", len(unplaced))
    return week


def _is_run(activity: ActivityRecord) -> bool:
    return activity.type == "Run" or activity.sport_type == "Run"


def _date_label(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}"


def match_plan_to_activities(
    sessions: Sequence[TrainingSession],
    activities: Sequence[ActivityRecord],
    now: datetime | date,
) -> list[TrainingSession]:
    """
    Mark plan days completed when a run was recorded on that date.

    Session ``i`` is tied to day ``i`` of the current Monday-Sunday week.
    The longest run of the day (first one on a tie) is attached as the
    actual activity. Days without a run are returned unchanged apart from
    their date label.

    Args:
        sessions: Weekly plan, Monday first
        activities: Candidate activities, non-runs are ignored
        now: Any moment inside the week to match

    Returns:
        New list of sessions; the inputs are not modified

    Example:
        >>> matched = match_plan_to_activities(default_weekly_plan(), runs, now)
        >>> matched[5].completed
        True
    """
    matched = []
    for session, day in zip(sessions, week_dates(now)):
        day_start = datetime.combine(day, time.min)
        day_end = datetime.combine(day, time.max)
        day_runs = [
            activity
            for activity in activities
            if _is_run(activity)
            and activity.local_start is not None
            and day_start <= activity.local_start <= day_end
        ]

        update: dict = {"date": _date_label(day)}
        if day_runs:
            longest = day_runs[0]
            for run in day_runs[1:]:
                if run.distance > longest.distance:
                    longest = run
            update["completed"] = True
            update["actual_activity"] = ActualActivity(
                name=longest.name,
                distance=round_half_up(longest.distance / 100) / 10,
                duration=duration_label(longest.moving_time),
                pace=matcher_pace(longest.average_speed),
            )
        matched.append(session.model_copy(update=update))
    return matched


def weekly_progress(sessions: Sequence[TrainingSession], plan_type: str = DEFAULT_PLAN_TYPE) -> dict:
    """Completion counts for the weekly view."""
    completed = sum(1 for session in sessions if session.completed)
    total = len(sessions)
    percentage = int(round_half_up(completed / total * 100)) if total else 0
    return {
        "completed_sessions": completed,
        "total_sessions": total,
        "progress_percentage": percentage,
        "plan_type": plan_type,
    }
