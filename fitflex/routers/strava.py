"""Strava connection, sync and dashboard endpoints."""
from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.orm import Session

from fitflex.config import get_settings
from fitflex.database import get_db
from fitflex.dependencies import get_current_user_id
from fitflex.models.database_models import SavedTrainingPlan
from fitflex.models.schemas import (
    ActivityRecord,
    ActivitySummary,
    SelectPlanRequest,
    TrainingSession,
)
from fitflex.services.activity_store import RUN_TYPE, cached_runs, get_profile
from fitflex.services.aggregation import (
    aggregate_monthly,
    aggregate_weekly,
    format_activity_row,
    summarize,
)
from fitflex.services.plan_matcher import (
    DEFAULT_PLAN_TYPE,
    default_weekly_plan,
    match_plan_to_activities,
    to_weekly_sessions,
    week_dates,
    weekly_progress,
)
from fitflex.services.preferences import zones_for_user
from fitflex.services.strava_service import StravaAPIError, StravaAuthError, StravaService
from fitflex.services.sync_service import ActivitySyncService
from fitflex.services.zone2_classifier import classify_zone2


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/strava", tags=["strava"])

ACCESS_TOKEN_COOKIE = "strava_access_token"
REFRESH_TOKEN_COOKIE = "strava_refresh_token"
ATHLETE_ID_COOKIE = "strava_athlete_id"
ACTIVE_PLAN_COOKIE = "active_training_plan_id"

ACCESS_TOKEN_MAX_AGE = 60 * 60 * 6
LONG_COOKIE_MAX_AGE = 60 * 60 * 24 * 30

DASHBOARD_WINDOW = timedelta(days=365)
DASHBOARD_LIMIT = 500
RECENT_ACTIVITIES = 10
LIVE_PAGE_SIZE = 100
ZONE2_WINDOW = timedelta(days=183)
ZONE2_LIMIT = 200
ZONE2_ROWS = 20


def _set_cookie(response: Response, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key,
        value,
        max_age=max_age,
        httponly=True,
        secure=get_settings().cookie_secure,
        samesite="lax",
    )


def _clear_auth_cookies(response: Response, include_athlete: bool = False) -> None:
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)
    if include_athlete:
        response.delete_cookie(ATHLETE_ID_COOKIE)


def _copy_cookies(source: Response, target: Response) -> None:
    # Cookies set on the injected response are lost when a new response is returned.
    for header in source.headers.getlist("set-cookie"):
        target.headers.append("set-cookie", header)


def _needs_sync_response(**extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "error": "No synced data found",
            "message": "Please sync your Strava activities first",
            "has_data": False,
            "needs_sync": True,
            **extra,
        },
    )


def _empty_summary() -> dict[str, Any]:
    return ActivitySummary().model_dump()


@router.get("/auth")
async def start_oauth() -> RedirectResponse:
    """Redirect to the Strava consent page."""
    return RedirectResponse(StravaService().authorize_url(), status_code=307)


@router.get("/callback")
async def oauth_callback(code: str | None = None, error: str | None = None) -> RedirectResponse:
    """Exchange the authorization code and store the tokens in cookies."""
    base_url = get_settings().base_url.rstrip("/")
    if error or not code:
        logger.warning("Strava authorization failed: %s", error or "missing code")
        return RedirectResponse(f"{base_url}?error=strava_auth_failed", status_code=307)

    try:
        token_data = StravaService().exchange_code(code)
    except StravaAPIError:
        logger.exception("Strava OAuth token exchange failed")
        return RedirectResponse(f"{base_url}?error=strava_token_failed", status_code=307)

    response = RedirectResponse(f"{base_url}?strava=connected", status_code=307)
    _set_cookie(response, ACCESS_TOKEN_COOKIE, token_data["access_token"], ACCESS_TOKEN_MAX_AGE)
    _set_cookie(response, REFRESH_TOKEN_COOKIE, token_data["refresh_token"], LONG_COOKIE_MAX_AGE)
    athlete = token_data.get("athlete") or {}
    if athlete.get("id") is not None:
        _set_cookie(response, ATHLETE_ID_COOKIE, str(athlete["id"]), LONG_COOKIE_MAX_AGE)
    logger.info("Strava connected for athlete %s", athlete.get("id"))
    return response


@router.get("/status")
async def connection_status(request: Request) -> dict:
    """Whether a Strava access token is present."""
    return {
        "connected": bool(request.cookies.get(ACCESS_TOKEN_COOKIE)),
        "athlete_id": request.cookies.get(ATHLETE_ID_COOKIE),
    }


@router.delete("/status")
async def disconnect(response: Response) -> dict:
    """Forget the Strava tokens."""
    _clear_auth_cookies(response, include_athlete=True)
    return {"success": True, "connected": False}


@router.post("/sync")
async def sync_activities(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """
    Import every Strava activity into the local cache.

    Uses the access token cookie; when only the refresh token is left, a new
    access token is requested first. A rejected token clears the cookies.
    """
    access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)

    if not access_token and refresh_token:
        try:
            refreshed = StravaService().refresh_access_token(refresh_token)
        except StravaAPIError:
            logger.warning("Strava token refresh failed", exc_info=True)
        else:
            access_token = refreshed["access_token"]
            _set_cookie(response, ACCESS_TOKEN_COOKIE, access_token, ACCESS_TOKEN_MAX_AGE)
            _set_cookie(
                response,
                REFRESH_TOKEN_COOKIE,
                refreshed.get("refresh_token", refresh_token),
                LONG_COOKIE_MAX_AGE,
            )

    if not access_token:
        return JSONResponse(
            status_code=401,
            content={"error": "Not connected to Strava", "connected": False},
        )

    try:
        result = ActivitySyncService(db).run_full_sync(user_id, access_token)
    except StravaAuthError:
        expired = JSONResponse(
            status_code=401,
            content={
                "error": "Strava authentication expired",
                "message": "Please reconnect your Strava account",
                "connected": False,
            },
        )
        _clear_auth_cookies(expired)
        return expired
    except Exception:
        logger.exception("Strava sync failed for user %s", user_id)
        failed = JSONResponse(
            status_code=500,
            content={
                "error": "Sync failed",
                "message": "There was an error syncing your Strava activities",
                "connected": True,
            },
        )
        _copy_cookies(response, failed)
        return failed

    return {
        "success": True,
        "message": result.message,
        "activities_synced": result.activities_synced,
        "activities_updated": result.activities_updated,
        "athlete_info": {
            "name": result.athlete_name,
            "total_activities": result.total_activities,
        },
    }


@router.get("/sync")
async def sync_status(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> dict:
    """Latest sync attempt and cache size."""
    try:
        return ActivitySyncService(db).sync_status(user_id)
    except Exception as e:
        logger.exception("Failed to get sync status")
        raise HTTPException(status_code=500, detail=f"Failed to get sync status: {str(e)}")


@router.get("/activities-cached")
async def dashboard_activities(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Monthly, weekly and overall stats for the last 12 months of runs."""
    settings = get_settings()
    try:
        profile = get_profile(db, user_id)
        if profile is None:
            return _needs_sync_response()

        now = datetime.now()
        runs = cached_runs(db, user_id, since=now - DASHBOARD_WINDOW, limit=DASHBOARD_LIMIT)
        base = {
            "is_real_data": True,
            "is_cached_data": True,
            "connected": True,
            "last_sync": profile.last_sync_at,
        }
        if not runs:
            return {
                **base,
                "performance_data": [],
                "weekly_data": [],
                "recent_activities": [],
                "summary": _empty_summary(),
                "message": "No running activities found in the last 12 months",
            }

        return {
            **base,
            "performance_data": aggregate_monthly(runs, now, settings.calories_per_km),
            "weekly_data": aggregate_weekly(runs, now),
            "recent_activities": [
                format_activity_row(run, settings.calories_per_km)
                for run in runs[:RECENT_ACTIVITIES]
            ],
            "summary": summarize(
                runs,
                exclude_missing_heartrate=settings.exclude_missing_heartrate,
                kcal_per_km=settings.calories_per_km,
            ),
            "total_activities_in_cache": profile.activities_count or 0,
            "data_range": "Last 12 months",
        }
    except Exception:
        logger.exception("Error fetching cached Strava data")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to fetch cached activities",
                "message": "There was an error fetching your cached Strava data",
                "has_data": False,
                "needs_sync": True,
            },
        )


@router.get("/activities")
async def live_activities(request: Request):
    """
    Dashboard stats straight from Strava, for when nothing has been synced yet.

    Only the newest page of activities is fetched; runs are aggregated the
    same way as the cached dashboard.
    """
    access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not access_token:
        return JSONResponse(
            status_code=401,
            content={
                "error": "Not connected to Strava",
                "message": "Please connect your Strava account to view activities",
                "connected": False,
            },
        )

    settings = get_settings()
    try:
        payloads = StravaService().list_activities(access_token, per_page=LIVE_PAGE_SIZE)
    except StravaAuthError:
        expired = JSONResponse(
            status_code=401,
            content={
                "error": "Strava authentication expired",
                "message": "Please reconnect your Strava account",
                "connected": False,
            },
        )
        _clear_auth_cookies(expired)
        return expired
    except StravaAPIError:
        logger.exception("Error fetching live Strava activities")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to fetch activities",
                "message": "There was an error fetching your Strava data",
                "connected": True,
            },
        )

    base = {"is_real_data": True, "is_cached_data": False, "connected": True}
    runs = sorted(
        (
            ActivityRecord.model_validate(payload)
            for payload in payloads or []
            if RUN_TYPE in (payload.get("type"), payload.get("sport_type"))
        ),
        key=lambda run: run.local_start or datetime.min,
        reverse=True,
    )
    if not runs:
        return {
            **base,
            "performance_data": [],
            "weekly_data": [],
            "recent_activities": [],
            "summary": _empty_summary(),
            "message": "No running activities found in your Strava account",
        }

    now = datetime.now()
    return {
        **base,
        "performance_data": aggregate_monthly(runs, now, settings.calories_per_km),
        "weekly_data": aggregate_weekly(runs, now),
        "recent_activities": [
            format_activity_row(run, settings.calories_per_km)
            for run in runs[:RECENT_ACTIVITIES]
        ],
        "summary": summarize(
            runs,
            exclude_missing_heartrate=settings.exclude_missing_heartrate,
            kcal_per_km=settings.calories_per_km,
        ),
    }


@router.get("/all-activities")
async def all_activities(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Every cached run with an overall summary."""
    settings = get_settings()
    try:
        profile = get_profile(db, user_id)
        if profile is None:
            return _needs_sync_response(activities=[], summary=_empty_summary())

        runs = cached_runs(db, user_id)
        base = {
            "is_real_data": True,
            "is_cached_data": True,
            "connected": True,
            "last_sync": profile.last_sync_at,
        }
        if not runs:
            return {
                **base,
                "activities": [],
                "summary": _empty_summary(),
                "message": "No running activities found",
            }

        rows = [format_activity_row(run, settings.calories_per_km) for run in runs]
        return {
            **base,
            "activities": rows,
            "summary": summarize(
                runs,
                exclude_missing_heartrate=settings.exclude_missing_heartrate,
                kcal_per_km=settings.calories_per_km,
            ),
            "total_activities_returned": len(rows),
        }
    except Exception:
        logger.exception("Error fetching all activities")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to fetch all activities",
                "message": "There was an error fetching your activities",
                "activities": [],
                "summary": _empty_summary(),
                "has_data": False,
            },
        )


@router.get("/zone2-runs")
async def zone2_runs(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Aerobic-base runs from the last six months."""
    settings = get_settings()
    empty_summary = {
        "total_zone2_runs": 0,
        "total_zone2_distance": 0,
        "avg_zone2_pace": 0,
        "zone2_percentage": 0,
    }
    try:
        profile = get_profile(db, user_id)
        if profile is None:
            return _needs_sync_response(zone2_runs=[], summary=empty_summary)

        now = datetime.now()
        runs = cached_runs(db, user_id, since=now - ZONE2_WINDOW, limit=ZONE2_LIMIT)
        base = {
            "is_real_data": True,
            "is_cached_data": True,
            "connected": True,
            "last_sync": profile.last_sync_at,
        }
        if not runs:
            return {
                **base,
                "zone2_runs": [],
                "summary": empty_summary,
                "message": "No running activities found in the last 6 months",
            }

        zones, prefs = zones_for_user(db, user_id)
        analysis = classify_zone2(runs, zones, prefs.zone2_method)

        rows = []
        for run in analysis.classified[:ZONE2_ROWS]:
            row = format_activity_row(run.activity, settings.calories_per_km)
            row["zone2_method"] = run.zone2_method
            row["hr_zone"] = run.hr_zone
            rows.append(row)

        return {
            **base,
            "zone2_runs": rows,
            "summary": analysis.summary,
            "hr_zones": zones,
            "calculation_method": analysis.calculation_method,
            "analysis_method": analysis.analysis_method,
            "data_range": "Last 6 months",
        }
    except Exception:
        logger.exception("Error analyzing Zone 2 runs")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to analyze Zone 2 runs",
                "message": "There was an error analyzing your running activities",
                "zone2_runs": [],
                "summary": empty_summary,
                "has_data": False,
            },
        )


def _active_plan(db: Session, user_id: str, plan_id: str | None) -> SavedTrainingPlan | None:
    if not plan_id or not plan_id.isdigit():
        return None
    return (
        db.query(SavedTrainingPlan)
        .filter(SavedTrainingPlan.id == int(plan_id), SavedTrainingPlan.user_id == user_id)
        .first()
    )


@router.get("/training-plan")
async def weekly_training_plan(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """
    This week's plan with completed sessions marked.

    Uses the selected saved plan when one is active, otherwise the
    generated default week. Runs are matched from the local cache.
    """
    try:
        saved = _active_plan(db, user_id, request.cookies.get(ACTIVE_PLAN_COOKIE))
        if saved is not None:
            sessions = to_weekly_sessions(
                [TrainingSession.model_validate(session) for session in saved.sessions]
            )
            plan_type = saved.title
        else:
            sessions = default_weekly_plan()
            plan_type = DEFAULT_PLAN_TYPE

        now = datetime.now()
        days = week_dates(now)
        runs = cached_runs(
            db,
            user_id,
            since=datetime.combine(days[0], time.min),
            until=datetime.combine(days[-1], time.max),
        )
        matched = match_plan_to_activities(sessions, runs, now)

        return {
            "training_plan": matched,
            "summary": weekly_progress(matched, plan_type),
            "active_plan_id": saved.id if saved else None,
            "connected": bool(request.cookies.get(ACCESS_TOKEN_COOKIE)),
        }
    except Exception:
        logger.exception("Error generating training plan")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to generate training plan",
                "message": "There was an error generating your training plan",
            },
        )


@router.post("/training-plan")
async def select_training_plan(
    payload: SelectPlanRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> dict:
    """Make a saved plan the active weekly plan."""
    saved = _active_plan(db, user_id, str(payload.plan_id))
    if saved is None:
        raise HTTPException(status_code=404, detail="Training plan not found")

    _set_cookie(response, ACTIVE_PLAN_COOKIE, str(saved.id), LONG_COOKIE_MAX_AGE)
    logger.info("Activated training plan %s", saved.id)
    return {"success": True, "active_plan_id": saved.id, "title": saved.title}


@router.delete("/training-plan")
async def clear_training_plan(response: Response) -> dict:
    """Go back to the generated default week."""
    response.delete_cookie(ACTIVE_PLAN_COOKIE)
    return {"success": True, "active_plan_id": None}
