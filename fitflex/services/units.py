"""Conversions from raw Strava units to the values shown to runners."""
from __future__ import annotations

import math
from typing import Literal

from fitflex.models.schemas import ActivityRecord


DEFAULT_CALORIES_PER_KM = 65.0

PaceRounding = Literal["round", "floor"]


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round with halves going up, the way dashboard numbers were always rounded.

    Python's built-in round() uses banker's rounding (round(142.5) == 142),
    which would shift zone boundaries and averages by one unit.

    Example:
        >>> round_half_up(142.5)
        143.0
        >>> round_half_up(5.25, 1)
        5.3
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def pace_from_speed(speed_mps: float | None) -> float:
    """
    Convert speed to pace in decimal minutes per km (2 decimals).

    Returns 0.0 when speed is missing or not positive.

    Example:
        >>> pace_from_speed(3.0)
        5.56
    """
    if not speed_mps or speed_mps <= 0:
        return 0.0
    return round_half_up(1000 / speed_mps / 60, 2)


def pace_label(speed_mps: float | None, seconds_rounding: PaceRounding = "round") -> str:
    """
    Convert speed to a "M:SS" per km label.

    Minutes are always floored; seconds are rounded or floored depending on
    the caller. Returns "0:00" when speed is missing or not positive.
    """
    if not speed_mps or speed_mps <= 0:
        return "0:00"

    pace_seconds = 1000 / speed_mps
    minutes = math.floor(pace_seconds / 60)
    remainder = pace_seconds % 60
    seconds = math.floor(remainder) if seconds_rounding == "floor" else int(round_half_up(remainder))
    if seconds == 60:
        minutes += 1
        seconds = 0
    return f"{minutes}:{seconds:02d}"


def matcher_pace(speed_mps: float | None) -> float:
    """Pace in minutes per km with a single decimal, as shown on plan days."""
    if not speed_mps or speed_mps <= 0:
        return 0.0
    kmh = speed_mps * 3.6
    return round_half_up(60 / kmh, 1)


def distance_km(meters: float | None) -> float:
    """Meters to kilometres with 2 decimals."""
    return round_half_up((meters or 0) / 10) / 100


def duration_label(seconds: float | None) -> str:
    """Format seconds as H:MM:SS (one hour or more) or M:SS."""
    total = int(seconds or 0)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def calorie_estimate(activity: ActivityRecord, kcal_per_km: float = DEFAULT_CALORIES_PER_KM) -> float:
    """
    Return the recorded calories, or estimate them from distance.

    The fallback of 65 kcal per km is a rough running average, not a physical
    constant; it can be changed through Settings.calories_per_km.
    """
    if activity.calories:
        return activity.calories
    return int(round_half_up((activity.distance / 1000) * kcal_per_km))
