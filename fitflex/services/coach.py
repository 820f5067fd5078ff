"""Anthropic-backed running coach: chat, run analysis and fitness summaries."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Sequence

import yaml
from anthropic import Anthropic

from fitflex.config import get_settings
from fitflex.models.schemas import (
    ActivityRecord,
    ActivitySummary,
    ChatMessage,
    ChatReply,
    HeartRateZoneSet,
    TrainingPlan,
)
from fitflex.services.hr_zones import format_zones_for_prompt
from fitflex.services.plan_extractor import (
    detect_plan_request,
    extract_plan,
    extract_structured_plan,
    strip_plan_json,
)
from fitflex.services.units import pace_label


logger = logging.getLogger(__name__)


class CoachNotConfiguredError(RuntimeError):
    """No Anthropic API key is configured."""


class CoachService:
    """Wraps the Anthropic client with the coach prompts."""

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.anthropic_api_key:
            logger.error("ANTHROPIC_API_KEY is not set")
            raise CoachNotConfiguredError("API key not configured")

        self.client = Anthropic(api_key=settings.anthropic_api_key)
        self.model = settings.anthropic_model
        self.summary_model = settings.anthropic_summary_model
        self.prompts = self._load_prompt_config(settings.prompt_config_path)

    @staticmethod
    def _load_prompt_config(path: Path) -> dict[str, Any]:
        with Path(path).open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)

    def _complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int,
        system: str | None = None,
        model: str | None = None,
    ) -> str:
        request_payload: dict[str, Any] = {
            "model": model or self.model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            request_payload["system"] = system

        response = self.client.messages.create(**request_payload)
        return response.content[0].text

    async def chat(
        self,
        message: str,
        history: Sequence[ChatMessage] = (),
        zones: HeartRateZoneSet | None = None,
        zone_method: str = "maxhr",
    ) -> ChatReply:
        """
        Answer a chat message, extracting a training plan when one was requested.

        Plan requests get the plan system prompt and the reply is mined for a
        plan: a JSON block first, then the weekday-line heuristics. The JSON
        block is removed from the text shown to the runner.

        Args:
            message: Latest user message
            history: Earlier turns, oldest first
            zones: Runner's heart rate zones, appended to the system prompt when known
            zone_method: Method label for the zones

        Returns:
            ChatReply with the reply text and an optional training plan
        """
        chat_config = self.prompts["chat"]
        wants_plan = detect_plan_request(message)
        system_prompt = chat_config["plan_system" if wants_plan else "general_system"]
        if zones is not None:
            system_prompt = "\n".join(
                [
                    system_prompt,
                    chat_config["zones_context"].format(
                        method=zone_method,
                        zones=format_zones_for_prompt(zones),
                    ),
                ]
            )

        messages = [{"role": turn.role, "content": turn.content} for turn in history]
        messages.append({"role": "user", "content": message})

        try:
            reply_text = self._complete(
                messages,
                max_tokens=chat_config["max_tokens"],
                system=system_prompt,
            )
        except Exception:
            logger.exception("Claude chat request failed")
            raise

        plan: TrainingPlan | None = None
        if wants_plan:
            plan = extract_structured_plan(reply_text) or extract_plan(reply_text)
            reply_text = strip_plan_json(reply_text)
            logger.info("Plan request handled (plan extracted=%s)", plan is not None)

        return ChatReply(message=reply_text, training_plan=plan)

    async def analyze_activity(self, activity: ActivityRecord) -> str:
        """Short coaching insight for a single run."""

        config = self.prompts["activity_analysis"]
        prompt = config["template"].format(
            name=activity.name,
            type=activity.type,
            distance_km=f"{activity.distance / 1000:.2f}",
            duration_min=round(activity.moving_time / 60),
            pace=pace_label(activity.average_speed, seconds_rounding="round"),
            avg_hr=activity.average_heartrate or "N/A",
            max_hr=activity.max_heartrate or "N/A",
            elevation=activity.total_elevation_gain or 0,
            suffer_score=activity.suffer_score or "N/A",
        )

        try:
            return self._complete(
                [{"role": "user", "content": prompt}],
                max_tokens=config["max_tokens"],
                model=self.summary_model,
            )
        except Exception:
            logger.exception("Claude activity analysis failed for activity %s", activity.id)
            raise

    async def fitness_summary(
        self,
        recent_rows: Sequence[dict[str, Any]],
        summary: ActivitySummary,
        today: date | None = None,
    ) -> str:
        """
        Narrative fitness summary; falls back to the rule-based text on failure.

        Args:
            recent_rows: Display rows from format_activity_row, newest first
            summary: Totals for the same period
            today: Reference date for "this week" (defaults to today)
        """
        config = self.prompts["fitness_summary"]
        today = today or date.today()
        prompt = config["template"].format(**_summary_prompt_fields(recent_rows, summary, today))

        try:
            return self._complete(
                [{"role": "user", "content": prompt}],
                max_tokens=config["max_tokens"],
            )
        except Exception:
            logger.exception("Claude fitness summary failed, using rule-based summary")
            return rule_based_summary(recent_rows, summary, today)


def _runs_this_week(rows: Sequence[dict[str, Any]], today: date) -> int:
    week_ago = today - timedelta(days=7)
    count = 0
    for row in rows:
        raw = row.get("raw_date")
        if raw and date.fromisoformat(str(raw)[:10]) >= week_ago:
            count += 1
    return count


def _summary_prompt_fields(
    rows: Sequence[dict[str, Any]],
    summary: ActivitySummary,
    today: date,
) -> dict[str, Any]:
    last_seven = list(rows[:7])
    if last_seven:
        avg_pace = sum(row["pace"] for row in last_seven) / len(last_seven)
        avg_distance = sum(row["distance"] for row in last_seven) / len(last_seven)
    else:
        avg_pace = summary.avg_pace
        avg_distance = 0.0

    latest = rows[0] if rows else None
    last_run = (
        f"{latest['name']} - {latest['distance']}km in {latest['duration']} ({latest['pace']}'/km pace)"
        if latest
        else "No recent activity"
    )

    return {
        "total_runs": len(rows),
        "last_run": last_run,
        "runs_this_week": _runs_this_week(rows, today),
        "avg_pace_last7": f"{avg_pace:.1f}",
        "avg_distance_last7": f"{avg_distance:.1f}",
        "total_distance": summary.total_distance,
        "avg_pace": summary.avg_pace,
        "avg_heartrate": summary.avg_heartrate,
        "total_calories": summary.total_calories,
    }


def rule_based_summary(
    rows: Sequence[dict[str, Any]],
    summary: ActivitySummary,
    today: date | None = None,
) -> str:
    """Template summary used when the model cannot be reached."""

    today = today or date.today()
    total_runs = len(rows)
    runs_this_week = _runs_this_week(rows, today)
    latest = rows[0] if rows else None

    if runs_this_week >= 4:
        consistency = "excellent training consistency this week"
    elif runs_this_week >= 2:
        consistency = "good training consistency"
    elif runs_this_week >= 1:
        consistency = "some training activity this week"
    else:
        consistency = "limited recent activity"

    if summary.avg_pace <= 4.0:
        pace_note = "strong pace performance"
    elif summary.avg_pace <= 5.0:
        pace_note = "solid pace consistency"
    elif summary.avg_pace <= 6.0:
        pace_note = "steady endurance pace"
    else:
        pace_note = "building endurance foundation"

    avg_distance = summary.total_distance / total_runs if total_runs else 0
    if avg_distance >= 8:
        distance_note = "focusing on longer distances"
    elif avg_distance >= 5:
        distance_note = "maintaining good run distances"
    else:
        distance_note = "building distance gradually"

    if latest:
        pacing = "improved" if latest["pace"] <= summary.avg_pace else "consistent"
        recent = f"Your latest {latest['distance']}km run in {latest['duration']} shows {pacing} pacing."
    else:
        recent = "Ready for your next run!"

    frequency_tip = (
        "Aim for 3-4 runs this week to build consistency"
        if runs_this_week < 3
        else "Maintain your current training frequency"
    )
    intensity_tip = (
        "Focus on easy conversational pace for 80% of runs"
        if summary.avg_pace > 5.5
        else "Consider adding one tempo session weekly"
    )
    base_note = (
        "excellent for building aerobic base"
        if avg_distance >= 5
        else "perfect for injury prevention and gradual progression"
    )

    return "\n\n".join(
        [
            "**Current Fitness Overview**\n"
            f"You're showing {consistency} with {total_runs} total activities recorded. "
            f"Your {pace_note} at an average of {summary.avg_pace}'/km demonstrates "
            f"{'strong' if avg_distance >= 5 else 'developing'} endurance capacity.",
            f"**Recent Performance**: {recent}",
            f"**Training Focus**: You're {distance_note}, which is {base_note}.",
            "**Recommendations**:\n"
            f"- {frequency_tip}\n"
            f"- {intensity_tip}\n"
            "- Track your heart rate data to optimize training zones",
            "Keep up the momentum! Your dedication is building a strong foundation "
            "for long-term running success.",
        ]
    )
