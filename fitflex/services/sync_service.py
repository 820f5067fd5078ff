"""Import a Strava account's activities into the local cache."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fitflex.config import Settings, get_settings
from fitflex.models.database_models import Activity, SyncLog, UserProfile
from fitflex.services.strava_service import StravaService


logger = logging.getLogger(__name__)

SYNC_TYPE_FULL = "full"


@dataclass
class SyncResult:
    activities_synced: int
    activities_updated: int
    total_activities: int
    athlete_name: str | None = None

    @property
    def message(self) -> str:
        if self.total_activities == 0:
            return "No activities found to sync"
        return f"Successfully synced {self.activities_synced} activities"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_timestamp(value: str | None, keep_wall_clock: bool = False) -> datetime | None:
    """Parse a Strava ISO timestamp into a naive datetime.

    ``start_date`` is converted to UTC; ``start_date_local`` carries a
    misleading "Z" suffix, so only its clock reading is kept.
    """
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed
    if keep_wall_clock:
        return parsed.replace(tzinfo=None)
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def transform_activity(payload: dict[str, Any], user_id: str) -> dict[str, Any]:
    """Map a Strava activity payload onto Activity columns."""

    return {
        "id": payload["id"],
        "user_id": user_id,
        "name": payload.get("name"),
        "type": payload.get("type"),
        "sport_type": payload.get("sport_type"),
        "description": payload.get("description"),
        "workout_type": payload.get("workout_type"),
        "device_name": payload.get("device_name"),
        "start_date": _parse_timestamp(payload.get("start_date")),
        "start_date_local": _parse_timestamp(payload.get("start_date_local"), keep_wall_clock=True),
        "moving_time": payload.get("moving_time") or 0,
        "elapsed_time": payload.get("elapsed_time") or 0,
        "distance": payload.get("distance") or 0.0,
        "total_elevation_gain": payload.get("total_elevation_gain") or 0.0,
        "average_speed": payload.get("average_speed") or None,
        "max_speed": payload.get("max_speed") or None,
        "average_heartrate": payload.get("average_heartrate") or None,
        "max_heartrate": payload.get("max_heartrate") or None,
        "calories": payload.get("calories") or None,
        "suffer_score": payload.get("suffer_score") or None,
        "trainer": payload.get("trainer") is True,
        "commute": payload.get("commute") is True,
        "manual": payload.get("manual") is True,
        "private": payload.get("private") is True,
        "raw_data": payload,
        "synced_at": _utcnow(),
    }


class ActivitySyncService:
    """Full Strava re-import with sync logging and batched upserts."""

    def __init__(
        self,
        db: Session,
        strava: StravaService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.strava = strava or StravaService(self.settings)

    def run_full_sync(self, user_id: str, access_token: str) -> SyncResult:
        """
        Fetch the athlete and every activity, then upsert them into the cache.

        A SyncLog row is written as "started" and finished as "completed" or
        "failed". Errors are logged on the sync log and re-raised so the
        caller can map them to a response (StravaAuthError means the token
        is no longer valid).

        Args:
            user_id: Local owner of the imported activities
            access_token: Strava OAuth access token

        Returns:
            SyncResult with inserted and updated counts
        """
        started_at = _utcnow()
        sync_log = SyncLog(
            user_id=user_id,
            sync_type=SYNC_TYPE_FULL,
            status="started",
            started_at=started_at,
        )
        self.db.add(sync_log)
        self.db.commit()
        logger.info("Starting full Strava sync for user %s", user_id)

        try:
            athlete = self.strava.get_athlete(access_token)
            payloads = self.strava.fetch_all_activities(access_token)

            rows = [transform_activity(payload, user_id) for payload in payloads if payload.get("id")]
            inserted, updated = self._upsert_activities(rows)
            self._update_profile(user_id, athlete, len(payloads))

            self._finish_log(sync_log, "completed", inserted, updated)
            self.db.commit()
        except Exception as exc:
            self.db.rollback()
            self._finish_log(sync_log, "failed", 0, 0, error_message=str(exc))
            self.db.commit()
            logger.exception("Strava sync failed for user %s", user_id)
            raise

        athlete_name = " ".join(
            part for part in (athlete.get("firstname"), athlete.get("lastname")) if part
        ) or None
        logger.info("Sync completed: %d new, %d updated activities", inserted, updated)
        return SyncResult(
            activities_synced=inserted + updated,
            activities_updated=updated,
            total_activities=len(payloads),
            athlete_name=athlete_name,
        )

    def _finish_log(
        self,
        sync_log: SyncLog,
        status: str,
        synced: int,
        updated: int,
        error_message: str | None = None,
    ) -> None:
        completed_at = _utcnow()
        sync_log.status = status
        sync_log.activities_synced = synced + updated
        sync_log.activities_updated = updated
        sync_log.error_message = error_message
        sync_log.completed_at = completed_at
        sync_log.duration_seconds = round((completed_at - sync_log.started_at).total_seconds())

    def _upsert_activities(self, rows: list[dict[str, Any]]) -> tuple[int, int]:
        """Merge rows by Strava id in batches; returns (inserted, updated)."""

        batch_size = self.settings.sync_batch_size
        inserted = updated = 0

        for start in range(0, len(rows), batch_size):
            batch = rows[start : start + batch_size]
            ids = [row["id"] for row in batch]
            existing = {
                activity_id
                for (activity_id,) in self.db.query(Activity.id).filter(Activity.id.in_(ids))
            }

            try:
                with self.db.begin_nested():
                    for row in batch:
                        self.db.merge(Activity(**row))
            except SQLAlchemyError:
                logger.exception(
                    "Failed to upsert batch %d-%d, retrying activities one by one",
                    start,
                    start + len(batch),
                )
                batch = self._upsert_individually(batch)

            self.db.commit()
            updated += sum(1 for row in batch if row["id"] in existing)
            inserted += sum(1 for row in batch if row["id"] not in existing)
            logger.info("Processed %d of %d activities", min(start + batch_size, len(rows)), len(rows))

        return inserted, updated

    def _upsert_individually(self, batch: list[dict[str, Any]]) -> list[dict[str, Any]]:
        saved = []
        for row in batch:
            try:
                with self.db.begin_nested():
                    self.db.merge(Activity(**row))
                saved.append(row)
            except SQLAlchemyError:
                logger.exception("Failed to upsert activity %s", row["id"])
        return saved

    def _update_profile(self, user_id: str, athlete: dict[str, Any], total: int) -> None:
        profile = self.db.get(UserProfile, user_id)
        if profile is None:
            profile = UserProfile(user_id=user_id)
            self.db.add(profile)

        profile.strava_athlete_id = athlete.get("id")
        profile.first_name = athlete.get("firstname")
        profile.last_name = athlete.get("lastname")
        profile.profile_medium = athlete.get("profile_medium")
        profile.profile = athlete.get("profile")
        profile.city = athlete.get("city")
        profile.state = athlete.get("state")
        profile.country = athlete.get("country")
        profile.sex = athlete.get("sex")
        profile.premium = bool(athlete.get("premium"))
        profile.summit = bool(athlete.get("summit"))
        profile.last_sync_at = _utcnow()
        profile.activities_count = total

    def sync_status(self, user_id: str) -> dict[str, Any]:
        """Latest sync log, profile and cached activity count."""

        last_log = (
            self.db.query(SyncLog)
            .filter(SyncLog.user_id == user_id)
            .order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
            .first()
        )
        profile = self.db.get(UserProfile, user_id)
        total = (
            self.db.query(func.count(Activity.id)).filter(Activity.user_id == user_id).scalar() or 0
        )

        return {
            "last_sync": _log_dict(last_log) if last_log else None,
            "profile": profile_dict(profile) if profile else None,
            "total_activities": total,
            "has_data": total > 0,
        }


def _log_dict(log: SyncLog) -> dict[str, Any]:
    return {
        "id": log.id,
        "sync_type": log.sync_type,
        "status": log.status,
        "activities_synced": log.activities_synced,
        "activities_updated": log.activities_updated,
        "error_message": log.error_message,
        "started_at": log.started_at,
        "completed_at": log.completed_at,
        "duration_seconds": log.duration_seconds,
    }


def profile_dict(profile: UserProfile) -> dict[str, Any]:
    return {
        "user_id": profile.user_id,
        "strava_athlete_id": profile.strava_athlete_id,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "profile_medium": profile.profile_medium,
        "city": profile.city,
        "country": profile.country,
        "last_sync_at": profile.last_sync_at,
        "activities_count": profile.activities_count,
    }
