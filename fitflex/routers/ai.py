"""AI insight endpoints: fitness summary and single-run analysis."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from fitflex.config import get_settings
from fitflex.database import get_db
from fitflex.dependencies import get_current_user_id
from fitflex.models.database_models import FitnessSummary
from fitflex.models.schemas import ActivityAnalysisRequest, ActivityRecord
from fitflex.services.activity_store import cached_runs, get_activity, get_profile
from fitflex.services.aggregation import format_activity_row, summarize
from fitflex.services.coach import CoachNotConfiguredError, CoachService, rule_based_summary


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])

SUMMARY_WINDOW = timedelta(days=365)
SUMMARY_ACTIVITY_LIMIT = 500
SUMMARY_RECENT_ROWS = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@router.get("/fitness-summary")
async def fitness_summary(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
    refresh: bool = False,
):
    """
    Narrative summary of the runner's recent training.

    A stored summary younger than the configured TTL (7 days by default) is
    returned as is unless ``refresh`` is set. Otherwise a new one is
    generated and replaces it.
    """
    settings = get_settings()
    try:
        cached = db.get(FitnessSummary, user_id)
        ttl = timedelta(days=settings.fitness_summary_ttl_days)
        if cached is not None and not refresh and _utcnow() - cached.generated_at < ttl:
            return {
                "summary": cached.summary,
                "data_source": "cached",
                "last_updated": cached.generated_at,
                "activity_count": cached.activity_count,
            }

        if get_profile(db, user_id) is None:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Failed to fetch Strava data",
                    "summary": "Unable to generate fitness summary - Strava data unavailable",
                    "needs_sync": True,
                },
            )

        runs = cached_runs(
            db, user_id, since=datetime.now() - SUMMARY_WINDOW, limit=SUMMARY_ACTIVITY_LIMIT
        )
        rows = [
            format_activity_row(run, settings.calories_per_km)
            for run in runs[:SUMMARY_RECENT_ROWS]
        ]
        totals = summarize(
            runs,
            exclude_missing_heartrate=settings.exclude_missing_heartrate,
            kcal_per_km=settings.calories_per_km,
        )

        try:
            text = await CoachService().fitness_summary(rows, totals)
        except CoachNotConfiguredError:
            logger.warning("Coach not configured, using rule-based fitness summary")
            text = rule_based_summary(rows, totals)

        generated_at = _utcnow()
        if cached is None:
            cached = FitnessSummary(user_id=user_id)
            db.add(cached)
        cached.summary = text
        cached.activity_count = len(rows)
        cached.generated_at = generated_at

        return {
            "summary": text,
            "data_source": "generated",
            "last_updated": generated_at,
            "activity_count": len(rows),
        }
    except Exception:
        logger.exception("Error generating fitness summary")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to generate fitness summary",
                "summary": "Unable to analyze your fitness data at the moment. Please try again later.",
            },
        )


@router.post("/activity-analysis")
async def activity_analysis(
    payload: ActivityAnalysisRequest,
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Generate and store a coaching insight for one run."""
    if not payload.activity_id:
        return JSONResponse(status_code=400, content={"error": "Activity ID is required"})

    activity = get_activity(db, payload.activity_id)
    if activity is None:
        return JSONResponse(status_code=404, content={"error": "Activity not found"})
    if activity.user_id != user_id:
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        coach = CoachService()
    except CoachNotConfiguredError:
        return JSONResponse(status_code=500, content={"error": "API key not configured"})

    try:
        analysis = await coach.analyze_activity(ActivityRecord.model_validate(activity))
    except Exception:
        logger.exception("Error analyzing activity %s", payload.activity_id)
        return JSONResponse(status_code=500, content={"error": "Failed to analyze activity"})

    updated_at = _utcnow()
    activity.ai_analysis = analysis
    activity.ai_analysis_updated_at = updated_at
    logger.info("Stored AI analysis for activity %s", activity.id)

    return {"success": True, "analysis": analysis, "updated_at": updated_at}
