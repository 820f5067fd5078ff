"""Router exposing basic system endpoints."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fitflex.database import get_db
from fitflex.dependencies import get_current_user_id
from fitflex.services.activity_store import get_profile


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/health", tags=["health"])

STALENESS_THRESHOLD_HOURS = 24


@router.get("/status")
async def get_status() -> dict[str, str]:
    """Return a minimal status payload."""
    return {"status": "online"}


@router.get("/sync-status")
async def get_sync_status(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> dict:
    """
    Check the staleness of the cached Strava data.

    Returns:
        dict: {
            "last_sync": ISO timestamp or None,
            "is_stale": bool,
            "staleness_threshold_hours": int,
            "needs_sync": bool
        }
    """
    try:
        profile = get_profile(db, user_id)
        if profile is None or profile.last_sync_at is None:
            return {
                "last_sync": None,
                "is_stale": True,
                "staleness_threshold_hours": STALENESS_THRESHOLD_HOURS,
                "needs_sync": True,
            }

        # Stored timestamps are naive UTC
        last_sync = profile.last_sync_at.replace(tzinfo=timezone.utc)
        threshold = datetime.now(timezone.utc) - timedelta(hours=STALENESS_THRESHOLD_HOURS)
        is_stale = last_sync < threshold

        return {
            "last_sync": last_sync.isoformat(),
            "is_stale": is_stale,
            "staleness_threshold_hours": STALENESS_THRESHOLD_HOURS,
            "needs_sync": is_stale,
        }
    except Exception:
        logger.exception("Sync status check failed")
        raise HTTPException(status_code=500, detail="Failed to check sync status")
