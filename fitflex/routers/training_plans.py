"""API endpoints for saved training plans."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from fitflex.database import get_db
from fitflex.dependencies import get_current_user_id
from fitflex.models.database_models import SavedTrainingPlan
from fitflex.models.schemas import SavePlanRequest, TrainingPlan


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/training-plans", tags=["training_plans"])


def _plan_dict(plan: SavedTrainingPlan) -> dict:
    return {
        "id": plan.id,
        "title": plan.title,
        "description": plan.description,
        "duration": plan.duration,
        "sessions": plan.sessions,
        "created_at": plan.created_at,
    }


@router.get("")
async def list_plans(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> dict:
    """Saved plans, newest first."""
    try:
        plans = (
            db.query(SavedTrainingPlan)
            .filter(SavedTrainingPlan.user_id == user_id)
            .order_by(SavedTrainingPlan.created_at.desc(), SavedTrainingPlan.id.desc())
            .all()
        )
        return {"plans": [_plan_dict(plan) for plan in plans]}
    except Exception as e:
        logger.exception("Error fetching saved plans")
        raise HTTPException(status_code=500, detail=f"Failed to fetch saved plans: {str(e)}")


@router.post("")
async def save_plan(
    payload: SavePlanRequest,
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """
    Save a plan produced by the coach chat.

    Every session is validated up front so the weekly view can always
    rebuild the plan from what is stored.
    """
    if not payload.plan:
        return JSONResponse(status_code=400, content={"error": "Invalid training plan data"})
    try:
        plan = TrainingPlan.model_validate(payload.plan)
    except ValidationError as e:
        logger.warning("Rejected training plan: %s", e.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid training plan data"})
    if not plan.title.strip():
        return JSONResponse(status_code=400, content={"error": "Invalid training plan data"})

    try:
        saved = SavedTrainingPlan(
            user_id=user_id,
            title=plan.title,
            description=plan.description,
            duration=plan.duration,
            sessions=[session.model_dump() for session in plan.sessions],
        )
        db.add(saved)
        db.flush()
        db.refresh(saved)

        logger.info("Saved training plan %s for user %s", saved.id, user_id)
        return {
            "success": True,
            "plan": _plan_dict(saved),
        }
    except Exception as e:
        logger.exception("Error saving training plan")
        raise HTTPException(status_code=500, detail=f"Failed to save training plan: {str(e)}")


@router.delete("")
async def delete_plan(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
    id: int | None = None,
):
    """Delete one saved plan by id."""
    if id is None:
        return JSONResponse(status_code=400, content={"error": "Plan ID is required"})

    try:
        deleted = (
            db.query(SavedTrainingPlan)
            .filter(SavedTrainingPlan.id == id, SavedTrainingPlan.user_id == user_id)
            .delete()
        )
        logger.info("Deleted training plan %s (rows=%d)", id, deleted)
        return {"success": True}
    except Exception as e:
        logger.exception("Error deleting training plan")
        raise HTTPException(status_code=500, detail=f"Failed to delete training plan: {str(e)}")
