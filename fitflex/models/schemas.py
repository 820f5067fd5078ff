"""Pydantic models describing core data and API payloads."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


SessionType = Literal["easy", "tempo", "long", "interval", "race", "rest"]
ZoneMethod = Literal["maxhr", "lthr", "hrr"]


class ActivityRecord(BaseModel):
    """One recorded workout as cached from Strava."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    type: str | None = None
    sport_type: str | None = None
    start_date: datetime | None = None
    start_date_local: datetime | None = None
    distance: float = Field(default=0.0, ge=0)  # meters
    moving_time: int = Field(default=0, ge=0)  # seconds
    elapsed_time: int = Field(default=0, ge=0)  # seconds
    average_speed: float | None = None  # m/s
    max_speed: float | None = None
    average_heartrate: float | None = None
    max_heartrate: float | None = None
    total_elevation_gain: float | None = None
    calories: float | None = None
    suffer_score: float | None = None
    ai_analysis: str | None = None

    @field_validator("distance", "moving_time", "elapsed_time", mode="before")
    @classmethod
    def _missing_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("start_date", mode="after")
    @classmethod
    def _utc_naive(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @field_validator("start_date_local", mode="after")
    @classmethod
    def _wall_clock(cls, value: datetime | None) -> datetime | None:
        # Strava suffixes local times with "Z"; the clock reading is what matters.
        if value is not None and value.tzinfo is not None:
            return value.replace(tzinfo=None)
        return value

    @property
    def local_start(self) -> datetime | None:
        return self.start_date_local or self.start_date


# Heart rate zones
class ZoneRange(BaseModel):
    """Inclusive bpm range of a single zone."""

    min: int
    max: int


class HeartRateZoneSet(BaseModel):
    """Five training zones, adjacent zones share a boundary."""

    zone1: ZoneRange
    zone2: ZoneRange
    zone3: ZoneRange
    zone4: ZoneRange
    zone5: ZoneRange

    def ordered(self) -> list[ZoneRange]:
        return [self.zone1, self.zone2, self.zone3, self.zone4, self.zone5]


# Zone 2 classification
class HeartRateZoneMatch(BaseModel):
    zone2_range: str
    actual_hr: float


class ClassifiedRun(BaseModel):
    """Activity that qualified as an aerobic-base run."""

    activity: ActivityRecord
    zone2_method: Literal["heartrate", "pace"]
    hr_zone: HeartRateZoneMatch | None = None


class Zone2Summary(BaseModel):
    total_zone2_runs: int = 0
    total_zone2_distance: float = 0.0
    avg_zone2_pace: float = 0.0
    zone2_percentage: int = 0


class Zone2AnalysisMethod(BaseModel):
    heart_rate_available: int = 0
    pace_based_analysis: int = 0
    total_activities_analyzed: int = 0


class Zone2Analysis(BaseModel):
    classified: list[ClassifiedRun]
    unclassified: list[ActivityRecord]
    summary: Zone2Summary
    analysis_method: Zone2AnalysisMethod
    calculation_method: str


# Aggregation
class MonthBucket(BaseModel):
    month: str
    year: int
    pace: float
    distance: float
    time: float  # minutes
    calories: int
    heartrate: int
    runs: int


class WeekBucket(BaseModel):
    week: str
    full_week: str
    distance: float
    runs: int
    week_start: date
    week_end: date


class ActivitySummary(BaseModel):
    total_distance: float = 0.0
    total_time: float = 0.0
    avg_pace: float = 0.0
    total_calories: int = 0
    total_runs: int = 0
    avg_heartrate: int = 0


# Training plans
class ActualActivity(BaseModel):
    name: str | None
    distance: float
    duration: str
    pace: float


class TrainingSession(BaseModel):
    """Single day of a weekly plan."""

    day: str
    type: SessionType
    duration: str
    distance: str | None = None
    description: str
    date: str | None = None
    completed: bool = False
    actual_activity: ActualActivity | None = None


class TrainingPlan(BaseModel):
    title: str
    description: str = ""
    duration: str = "Variable"
    sessions: list[TrainingSession]


class SavePlanRequest(BaseModel):
    plan: dict[str, Any] | None = None


class SelectPlanRequest(BaseModel):
    plan_id: int


# Preferences
class UserPreferences(BaseModel):
    max_hr: int | None = None
    lthr: int | None = None
    resting_hr: int | None = None
    zone2_method: ZoneMethod = "maxhr"
    age: int | None = None
    units: Literal["metric", "imperial"] = "metric"
    time_format: Literal["12hour", "24hour"] = "24hour"
    privacy: Literal["public", "followers", "private"] = "public"
    notifications: bool = True


class PreferencesUpdate(BaseModel):
    """Partial update; fields left out keep their stored values."""

    max_hr: int | None = None
    lthr: int | None = None
    resting_hr: int | None = None
    zone2_method: ZoneMethod | None = None
    age: int | None = Field(default=None, ge=1, le=120)
    units: Literal["metric", "imperial"] | None = None
    time_format: Literal["12hour", "24hour"] | None = None
    privacy: Literal["public", "followers", "private"] | None = None
    notifications: bool | None = None


# Coach chat
class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    conversation_history: list[ChatMessage] = []


class ChatReply(BaseModel):
    message: str
    training_plan: TrainingPlan | None = None


class ConversationMessage(BaseModel):
    content: str
    sender: Literal["ai", "user"]
    id: str | None = None
    timestamp: datetime | None = None


class ConversationData(BaseModel):
    messages: list[ConversationMessage] = []


class ConversationRequest(BaseModel):
    action: str
    conversation_data: ConversationData = ConversationData()


class ActivityAnalysisRequest(BaseModel):
    activity_id: int | None = None
