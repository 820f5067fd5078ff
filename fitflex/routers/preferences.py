"""Runner preference endpoints."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from fitflex.database import get_db
from fitflex.dependencies import get_current_user_id
from fitflex.models.schemas import PreferencesUpdate, UserPreferences
from fitflex.services.activity_store import get_profile
from fitflex.services.preferences import (
    PreferenceValidationError,
    get_preferences,
    save_preferences,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get("")
async def read_preferences(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Stored preferences, or the defaults for a new runner."""
    try:
        has_profile = get_profile(db, user_id) is not None
        return {
            "success": True,
            "preferences": get_preferences(db, user_id),
            "message": "Preferences loaded successfully" if has_profile else "Default preferences loaded",
        }
    except Exception:
        logger.exception("Error fetching preferences")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to load preferences",
                "message": "There was an error loading your preferences",
                "preferences": UserPreferences().model_dump(),
            },
        )


@router.post("")
async def update_preferences(
    payload: PreferencesUpdate,
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Validate and merge preference changes."""
    try:
        preferences, created = save_preferences(db, user_id, payload)
    except PreferenceValidationError as err:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": err.error, "message": err.message},
        )
    except Exception:
        logger.exception("Error saving preferences")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to save preferences",
                "message": "There was an error saving your preferences",
            },
        )

    return {
        "success": True,
        "message": "Preferences saved successfully" if created else "Preferences updated successfully",
        "preferences": preferences,
    }
