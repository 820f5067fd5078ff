"""Initial Fitflex Coach schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(),
        nullable=True,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    op.create_table(
        "activities",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("sport_type", sa.String(length=50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("workout_type", sa.Integer(), nullable=True),
        sa.Column("device_name", sa.String(length=100), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("start_date_local", sa.DateTime(), nullable=True),
        sa.Column("moving_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("elapsed_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("distance", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_elevation_gain", sa.Float(), nullable=True),
        sa.Column("average_speed", sa.Float(), nullable=True),
        sa.Column("max_speed", sa.Float(), nullable=True),
        sa.Column("average_heartrate", sa.Float(), nullable=True),
        sa.Column("max_heartrate", sa.Float(), nullable=True),
        sa.Column("calories", sa.Float(), nullable=True),
        sa.Column("suffer_score", sa.Float(), nullable=True),
        sa.Column("trainer", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("commute", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("manual", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("raw_data", sa.JSON(), nullable=True),
        sa.Column("ai_analysis", sa.Text(), nullable=True),
        sa.Column("ai_analysis_updated_at", sa.DateTime(), nullable=True),
        _timestamp("synced_at"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_activities_user_id", "activities", ["user_id"], unique=False)
    op.create_index("ix_activities_type", "activities", ["type"], unique=False)
    op.create_index("ix_activities_start_date_local", "activities", ["start_date_local"], unique=False)
    op.create_index(
        "ix_activities_user_type_start",
        "activities",
        ["user_id", "type", "start_date_local"],
        unique=False,
    )

    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.String(length=64), primary_key=True),
        sa.Column("strava_athlete_id", sa.BigInteger(), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("profile_medium", sa.String(length=500), nullable=True),
        sa.Column("profile", sa.String(length=500), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("sex", sa.String(length=10), nullable=True),
        sa.Column("premium", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("summit", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("settings", sa.JSON(), nullable=True),
        sa.Column("last_sync_at", sa.DateTime(), nullable=True),
        sa.Column("activities_count", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table(
        "training_plans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("duration", sa.String(length=100), nullable=True),
        sa.Column("sessions", sa.JSON(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_training_plans_user_id", "training_plans", ["user_id"], unique=False)
    op.create_index("ix_training_plans_created_at", "training_plans", ["created_at"], unique=False)

    op.create_table(
        "sync_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("sync_type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("activities_synced", sa.Integer(), nullable=True),
        sa.Column("activities_updated", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        _timestamp("started_at"),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
    )
    op.create_index("ix_sync_logs_user_id", "sync_logs", ["user_id"], unique=False)
    op.create_index("ix_sync_logs_started_at", "sync_logs", ["started_at"], unique=False)

    op.create_table(
        "fitness_summaries",
        sa.Column("user_id", sa.String(length=64), primary_key=True),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("activity_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "generated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )


def downgrade() -> None:
    op.drop_table("fitness_summaries")
    op.drop_index("ix_sync_logs_started_at", table_name="sync_logs")
    op.drop_index("ix_sync_logs_user_id", table_name="sync_logs")
    op.drop_table("sync_logs")
    op.drop_index("ix_training_plans_created_at", table_name="training_plans")
    op.drop_index("ix_training_plans_user_id", table_name="training_plans")
    op.drop_table("training_plans")
    op.drop_table("user_profiles")
    op.drop_index("ix_activities_user_type_start", table_name="activities")
    op.drop_index("ix_activities_start_date_local", table_name="activities")
    op.drop_index("ix_activities_type", table_name="activities")
    op.drop_index("ix_activities_user_id", table_name="activities")
    op.drop_table("activities")
