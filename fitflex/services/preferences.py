"""Runner preferences stored on the user profile."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from fitflex.models.database_models import UserProfile
from fitflex.models.schemas import HeartRateZoneSet, PreferencesUpdate, UserPreferences
from fitflex.services.hr_zones import compute_zones


logger = logging.getLogger(__name__)

MAX_HR_RANGE = (120, 220)
LTHR_RANGE = (100, 200)
RESTING_HR_RANGE = (40, 100)

# Fields that may be reset to "not set" by sending null.
CLEARABLE_FIELDS = {"max_hr", "lthr", "resting_hr", "age"}


class PreferenceValidationError(ValueError):
    """Submitted preferences are outside physiological limits."""

    def __init__(self, error: str, message: str) -> None:
        super().__init__(message)
        self.error = error
        self.message = message


def _out_of_range(value: int | None, bounds: tuple[int, int]) -> bool:
    return value is not None and not (bounds[0] <= value <= bounds[1])


def validate_preferences(preferences: UserPreferences) -> None:
    """
    Check heart rate settings.

    Raises:
        PreferenceValidationError: On the first failing rule
    """
    if _out_of_range(preferences.max_hr, MAX_HR_RANGE):
        raise PreferenceValidationError("Invalid Max HR", "Max HR must be between 120 and 220 bpm")
    if _out_of_range(preferences.lthr, LTHR_RANGE):
        raise PreferenceValidationError("Invalid LTHR", "LTHR must be between 100 and 200 bpm")
    if _out_of_range(preferences.resting_hr, RESTING_HR_RANGE):
        raise PreferenceValidationError(
            "Invalid Resting HR", "Resting HR must be between 40 and 100 bpm"
        )
    if preferences.max_hr and preferences.lthr and preferences.lthr >= preferences.max_hr:
        raise PreferenceValidationError(
            "Invalid heart rate values", "LTHR must be lower than Max HR"
        )


def get_preferences(db: Session, user_id: str) -> UserPreferences:
    """Stored preferences layered over the defaults."""

    profile = db.get(UserProfile, user_id)
    stored = (profile.settings or {}) if profile else {}
    known = {key: value for key, value in stored.items() if key in UserPreferences.model_fields}
    return UserPreferences.model_validate(known)


def save_preferences(db: Session, user_id: str, update: PreferencesUpdate) -> tuple[UserPreferences, bool]:
    """
    Merge the supplied fields into the stored preferences.

    Only fields present in ``update`` change; everything else keeps its
    stored value. Validation runs on the merged result, so setting only
    LTHR is still checked against a previously saved max HR. The profile
    row is created on first save.

    Returns:
        (merged preferences, created) where ``created`` is True for a new profile
    """
    profile = db.get(UserProfile, user_id)
    created = profile is None
    current = get_preferences(db, user_id)

    changes = {
        key: value
        for key, value in update.model_dump(exclude_unset=True).items()
        if value is not None or key in CLEARABLE_FIELDS
    }
    merged = UserPreferences.model_validate({**current.model_dump(), **changes})
    validate_preferences(merged)

    if profile is None:
        profile = UserProfile(user_id=user_id)
        db.add(profile)

    settings = dict(profile.settings or {})
    settings.update(merged.model_dump())
    profile.settings = settings
    db.flush()

    logger.info("Saved preferences for user %s (created=%s)", user_id, created)
    return merged, created


def zones_for_user(db: Session, user_id: str) -> tuple[HeartRateZoneSet, UserPreferences]:
    """Heart rate zones from the runner's saved settings."""

    prefs = get_preferences(db, user_id)
    zones = compute_zones(
        prefs.zone2_method,
        max_hr=prefs.max_hr,
        lthr=prefs.lthr,
        resting_hr=prefs.resting_hr,
        age=prefs.age,
    )
    return zones, prefs
