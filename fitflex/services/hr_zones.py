"""Heart rate zone calculation for the three supported methods."""

from __future__ import annotations

import logging

from fitflex.models.schemas import HeartRateZoneSet, ZoneRange
from fitflex.services.units import round_half_up


logger = logging.getLogger(__name__)

DEFAULT_AGE = 30

ZONE_NAMES = ("Recovery", "Aerobic Base", "Aerobic", "Threshold", "Neuromuscular")

# (lower, upper) fractions per zone
_PERCENT_OF_MAX = ((0.50, 0.60), (0.60, 0.70), (0.70, 0.80), (0.80, 0.90), (0.90, 1.00))
_PERCENT_OF_LTHR = ((0.60, 0.85), (0.86, 0.89), (0.90, 0.94), (0.95, 0.99), (1.00, 1.05))


def estimate_max_hr(age: int) -> int:
    """
    Calculate estimated maximum heart rate from age.

    Uses the traditional formula: 220 - age.

    Example:
        >>> estimate_max_hr(30)
        190
    """
    return 220 - age


def _bpm(value: float) -> int:
    return int(round_half_up(value))


def _zone_set(bounds: list[tuple[float, float]]) -> HeartRateZoneSet:
    ranges = [ZoneRange(min=_bpm(low), max=_bpm(high)) for low, high in bounds]
    return HeartRateZoneSet(
        zone1=ranges[0],
        zone2=ranges[1],
        zone3=ranges[2],
        zone4=ranges[3],
        zone5=ranges[4],
    )


def _max_hr_zones(effective_max: float) -> HeartRateZoneSet:
    bounds = [(effective_max * low, effective_max * high) for low, high in _PERCENT_OF_MAX]
    bounds[-1] = (bounds[-1][0], effective_max)
    return _zone_set(bounds)


def _lthr_zones(lthr: float) -> HeartRateZoneSet:
    return _zone_set([(lthr * low, lthr * high) for low, high in _PERCENT_OF_LTHR])


def _reserve_zones(max_hr: float, resting_hr: float) -> HeartRateZoneSet:
    reserve = max_hr - resting_hr
    bounds = [
        (resting_hr + reserve * low, resting_hr + reserve * high)
        for low, high in _PERCENT_OF_MAX
    ]
    bounds[-1] = (bounds[-1][0], max_hr)
    return _zone_set(bounds)


def compute_zones(
    method: str | None,
    max_hr: int | None = None,
    lthr: int | None = None,
    resting_hr: int | None = None,
    age: int | None = None,
) -> HeartRateZoneSet:
    """
    Calculate five heart rate zones for the selected method.

    Methods:
        - maxhr: 50/60/70/80/90/100% of max HR (max HR estimated as 220 - age
          when not set). Also used whenever the chosen method lacks inputs.
        - lthr: 60-85, 86-89, 90-94, 95-99, 100-105% of lactate threshold HR.
        - hrr: Karvonen, resting HR plus a share of the heart rate reserve,
          zone 5 capped at max HR.

    Every bound is rounded on its own, so neighbouring zones can end up one
    beat apart. Never raises; unknown methods are treated as maxhr.

    Args:
        method: "maxhr", "lthr" or "hrr"
        max_hr: Maximum heart rate in bpm
        lthr: Lactate threshold heart rate in bpm
        resting_hr: Resting heart rate in bpm
        age: Athlete's age in years (defaults to 30)

    Returns:
        HeartRateZoneSet with zone1..zone5

    Example:
        >>> compute_zones("maxhr", max_hr=190).zone2
        ZoneRange(min=114, max=133)
    """
    effective_age = age or DEFAULT_AGE
    effective_max = max_hr or estimate_max_hr(effective_age)

    if method == "lthr":
        if lthr:
            return _lthr_zones(lthr)
        logger.debug("LTHR not set - falling back to max HR zones")
    elif method == "hrr":
        if max_hr and resting_hr:
            return _reserve_zones(max_hr, resting_hr)
        logger.debug("Max or resting HR not set - falling back to max HR zones")
    elif method not in (None, "maxhr"):
        logger.warning("Unknown zone method %r - using max HR zones", method)

    return _max_hr_zones(effective_max)


def format_zones_for_prompt(zones: HeartRateZoneSet) -> str:
    """Render zones as one "Zone N (Name): min-max bpm" line each."""
    lines = []
    for index, (name, zone) in enumerate(zip(ZONE_NAMES, zones.ordered()), start=1):
        lines.append(f"Zone {index} ({name}): {zone.min}-{zone.max} bpm")
    return "\n".join(lines)


def zone2_range_label(zones: HeartRateZoneSet) -> str:
    return f"{zones.zone2.min}-{zones.zone2.max} bpm"
