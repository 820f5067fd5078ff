"""SQLAlchemy ORM models for the cached Strava data and coach state."""
from datetime import datetime
from sqlalchemy import Integer, BigInteger, DateTime, Float, String, Boolean, Text, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from fitflex.database import Base


class Activity(Base):
    """Running and other activities imported from Strava."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)  # Use Strava's activity ID
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Activity details
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    sport_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    workout_type: Mapped[int | None] = mapped_column(Integer, nullable=True)
    device_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Timing (start_date is UTC, start_date_local is wall-clock time)
    start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    start_date_local: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    moving_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # seconds
    elapsed_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # seconds

    # Distance & speed
    distance: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)  # meters
    total_elevation_gain: Mapped[float | None] = mapped_column(Float, nullable=True)  # meters
    average_speed: Mapped[float | None] = mapped_column(Float, nullable=True)  # m/s
    max_speed: Mapped[float | None] = mapped_column(Float, nullable=True)  # m/s

    # Heart rate & effort
    average_heartrate: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_heartrate: Mapped[float | None] = mapped_column(Float, nullable=True)
    calories: Mapped[float | None] = mapped_column(Float, nullable=True)
    suffer_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Flags
    trainer: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    commute: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    manual: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Complete Strava payload as received
    raw_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # AI coaching insight
    ai_analysis: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_analysis_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Timestamps
    synced_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_activities_user_type_start", "user_id", "type", "start_date_local"),
    )


class UserProfile(Base):
    """Athlete profile, sync bookkeeping and preference settings."""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Strava athlete info
    strava_athlete_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    profile_medium: Mapped[str | None] = mapped_column(String(500), nullable=True)
    profile: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sex: Mapped[str | None] = mapped_column(String(10), nullable=True)
    premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    summit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Preferences document (maxHR, lthr, restingHR, zone2Method, age, display settings)
    settings: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Sync bookkeeping
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    activities_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SavedTrainingPlan(Base):
    """Training plan saved from the coach chat."""

    __tablename__ = "training_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[str | None] = mapped_column(String(100), nullable=True)  # e.g. "8-12 weeks"
    sessions: Mapped[list] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class SyncLog(Base):
    """One row per Strava sync attempt."""

    __tablename__ = "sync_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sync_type: Mapped[str] = mapped_column(String(20), nullable=False)  # full
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # started, completed, failed
    activities_synced: Mapped[int | None] = mapped_column(Integer, nullable=True)
    activities_updated: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)


class FitnessSummary(Base):
    """Most recent AI fitness summary per user (last writer wins)."""

    __tablename__ = "fitness_summaries"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    activity_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
