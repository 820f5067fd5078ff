"""Split runs into aerobic-base (Zone 2) efforts and everything else."""

from __future__ import annotations

import logging
from typing import Sequence

from fitflex.models.schemas import (
    ActivityRecord,
    ClassifiedRun,
    HeartRateZoneMatch,
    HeartRateZoneSet,
    Zone2Analysis,
    Zone2AnalysisMethod,
    Zone2Summary,
)
from fitflex.services.hr_zones import zone2_range_label
from fitflex.services.units import pace_from_speed, round_half_up


logger = logging.getLogger(__name__)

# Runs at least 15% slower than the cohort average count as easy.
EASY_PACE_FACTOR = 1.15


def _has_heartrate(activity: ActivityRecord) -> bool:
    return bool(activity.average_heartrate and activity.average_heartrate > 0)


def _in_zone2(heartrate: float, zones: HeartRateZoneSet) -> bool:
    return zones.zone2.min <= heartrate <= zones.zone2.max


def _is_easy_by_pace(pace: float, mean_pace: float) -> bool:
    if not pace or not mean_pace:
        return False
    return pace >= mean_pace * EASY_PACE_FACTOR


def classify_zone2(
    activities: Sequence[ActivityRecord],
    zones: HeartRateZoneSet,
    method: str,
) -> Zone2Analysis:
    """
    Classify each run as Zone 2 or not.

    Runs with heart rate data are judged against the zone 2 range. Runs
    without it fall back to relative pace: a run qualifies when its pace is
    at least 15% slower than the mean pace of all given runs.

    Args:
        activities: Runs to classify, typically the last six months
        zones: Zones computed from the runner's preferences
        method: Zone method label reported back to the caller

    Returns:
        Zone2Analysis where every input run is in exactly one of
        ``classified`` or ``unclassified``.
    """
    paces = [pace_from_speed(activity.average_speed) for activity in activities]
    mean_pace = sum(paces) / len(paces) if paces else 0.0

    classified: list[ClassifiedRun] = []
    unclassified: list[ActivityRecord] = []
    range_label = zone2_range_label(zones)

    for activity, pace in zip(activities, paces):
        if _has_heartrate(activity):
            if _in_zone2(activity.average_heartrate, zones):
                classified.append(
                    ClassifiedRun(
                        activity=activity,
                        zone2_method="heartrate",
                        hr_zone=HeartRateZoneMatch(
                            zone2_range=range_label,
                            actual_hr=activity.average_heartrate,
                        ),
                    )
                )
                continue
        elif _is_easy_by_pace(pace, mean_pace):
            classified.append(ClassifiedRun(activity=activity, zone2_method="pace"))
            continue
        unclassified.append(activity)

    total_distance_km = sum(run.activity.distance for run in classified) / 1000
    classified_paces = [pace_from_speed(run.activity.average_speed) for run in classified]
    avg_pace = sum(classified_paces) / len(classified_paces) if classified_paces else 0.0
    percentage = (
        int(round_half_up(len(classified) / len(activities) * 100)) if activities else 0
    )

    summary = Zone2Summary(
        total_zone2_runs=len(classified),
        total_zone2_distance=round_half_up(total_distance_km, 1),
        avg_zone2_pace=round_half_up(avg_pace, 1),
        zone2_percentage=percentage,
    )
    analysis_method = Zone2AnalysisMethod(
        heart_rate_available=sum(1 for run in classified if run.zone2_method == "heartrate"),
        pace_based_analysis=sum(1 for run in classified if run.zone2_method == "pace"),
        total_activities_analyzed=len(activities),
    )

    logger.debug(
        "Zone 2 classification: %d of %d runs (method=%s)",
        len(classified),
        len(activities),
        method,
    )

    return Zone2Analysis(
        classified=classified,
        unclassified=unclassified,
        summary=summary,
        analysis_method=analysis_method,
        calculation_method=method,
    )
