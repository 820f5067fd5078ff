"""Queries over the cached activities table."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from fitflex.models.database_models import Activity, UserProfile
from fitflex.models.schemas import ActivityRecord


RUN_TYPE = "Run"


def get_profile(db: Session, user_id: str) -> UserProfile | None:
    return db.get(UserProfile, user_id)


def cached_runs(
    db: Session,
    user_id: str,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int | None = None,
) -> list[ActivityRecord]:
    """Runs for a user, newest first, optionally bounded by local start time."""

    query = db.query(Activity).filter(
        Activity.user_id == user_id,
        or_(Activity.type == RUN_TYPE, Activity.sport_type == RUN_TYPE),
    )
    if since is not None:
        query = query.filter(Activity.start_date_local >= since)
    if until is not None:
        query = query.filter(Activity.start_date_local <= until)
    query = query.order_by(Activity.start_date_local.desc())
    if limit is not None:
        query = query.limit(limit)
    return [ActivityRecord.model_validate(activity) for activity in query.all()]


def get_activity(db: Session, activity_id: int) -> Activity | None:
    return db.get(Activity, activity_id)
