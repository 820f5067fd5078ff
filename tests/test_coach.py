"""Unit tests for the coach service with a stubbed Anthropic client."""
from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from fitflex.models.schemas import ActivityRecord, ActivitySummary, ChatMessage
from fitflex.services.coach import CoachNotConfiguredError, CoachService, rule_based_summary
from fitflex.services.hr_zones import compute_zones

PROMPT_PATH = Path(__file__).resolve().parent.parent / "fitflex" / "prompts" / "coach.yaml"

PLAN_REPLY = """Here's your plan for the next 6 weeks:

Monday: Easy Run - 40 minutes, 6km
Wednesday: Tempo Run - 45 minutes at threshold
Saturday: Long Run - 90 minutes, 15km

```json
{"title": "10K Build", "duration": "6 weeks", "sessions": [
  {"day": "Monday", "type": "easy", "duration": "40 min", "distance": "6 km", "description": "Easy run"},
  {"day": "Wednesday", "type": "tempo", "duration": "45 min", "distance": "8 km", "description": "Tempo"},
  {"day": "Saturday", "type": "long", "duration": "90 min", "distance": "15 km", "description": "Long run"}
]}
```"""


class DummySettings:
    anthropic_api_key = "test-key"
    anthropic_model = "test-model"
    anthropic_summary_model = "test-summary-model"
    prompt_config_path = PROMPT_PATH


def _install_client(monkeypatch: pytest.MonkeyPatch, reply: str | Exception) -> list[dict]:
    calls: list[dict] = []

    class DummyMessages:
        def create(self, **kwargs):
            calls.append(kwargs)
            if isinstance(reply, Exception):
                raise reply
            return SimpleNamespace(content=[SimpleNamespace(text=reply)])

    class DummyAnthropic:
        def __init__(self, api_key: str):
            self.messages = DummyMessages()

    monkeypatch.setattr("fitflex.services.coach.get_settings", lambda: DummySettings())
    monkeypatch.setattr("fitflex.services.coach.Anthropic", DummyAnthropic)
    return calls


def test_missing_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        "fitflex.services.coach.get_settings",
        lambda: SimpleNamespace(anthropic_api_key=None),
    )

    with pytest.raises(CoachNotConfiguredError):
        CoachService()


@pytest.mark.asyncio
async def test_general_chat_has_no_plan(monkeypatch: pytest.MonkeyPatch):
    calls = _install_client(monkeypatch, "Eat a light carb-rich meal 2-3 hours before.")

    reply = await CoachService().chat(
        "What should I eat before a race?",
        history=[
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello! How can I help?"),
        ],
    )

    assert reply.training_plan is None
    assert reply.message.startswith("Eat a light")
    request = calls[0]
    assert request["model"] == "test-model"
    assert "Creating personalized training plans" in request["system"]
    assert [message["role"] for message in request["messages"]] == ["user", "assistant", "user"]


@pytest.mark.asyncio
async def test_plan_request_returns_structured_plan(monkeypatch: pytest.MonkeyPatch):
    calls = _install_client(monkeypatch, PLAN_REPLY)

    reply = await CoachService().chat("Can you make me a 10k plan?")

    assert reply.training_plan is not None
    assert reply.training_plan.title == "10K Build"
    assert [session.type for session in reply.training_plan.sessions] == ["easy", "tempo", "long"]
    assert "```" not in reply.message
    assert "Monday through Sunday schedule" in calls[0]["system"]


@pytest.mark.asyncio
async def test_plan_request_without_json_uses_text_extraction(monkeypatch: pytest.MonkeyPatch):
    text_only = PLAN_REPLY.split("```json")[0]
    _install_client(monkeypatch, text_only)

    reply = await CoachService().chat("Please create a training plan for my 10k")

    assert reply.training_plan is not None
    assert [session.day for session in reply.training_plan.sessions] == ["Monday", "Wednesday", "Saturday"]


@pytest.mark.asyncio
async def test_zones_are_added_to_system_prompt(monkeypatch: pytest.MonkeyPatch):
    calls = _install_client(monkeypatch, "Keep it easy.")

    await CoachService().chat(
        "How hard should my long run be?",
        zones=compute_zones("maxhr", max_hr=190),
        zone_method="maxhr",
    )

    system = calls[0]["system"]
    assert "heart rate zones (maxhr method)" in system
    assert "Zone 2 (Aerobic Base): 114-133 bpm" in system


@pytest.mark.asyncio
async def test_activity_analysis_prompt(monkeypatch: pytest.MonkeyPatch):
    calls = _install_client(monkeypatch, "Solid aerobic effort.")
    activity = ActivityRecord(
        id=42,
        name="Morning Run",
        type="Run",
        distance=10000,
        moving_time=3000,
        average_speed=10 / 3,
        average_heartrate=148,
        suffer_score=35,
    )

    analysis = await CoachService().analyze_activity(activity)

    assert analysis == "Solid aerobic effort."
    request = calls[0]
    assert request["model"] == "test-summary-model"
    prompt = request["messages"][0]["content"]
    assert "Distance: 10.00 km" in prompt
    assert "Average Pace: 5:00 /km" in prompt
    assert "Max Heart Rate: N/A bpm" in prompt
    assert "Suffer Score: 35.0" in prompt


@pytest.mark.asyncio
async def test_fitness_summary_falls_back_on_error(monkeypatch: pytest.MonkeyPatch):
    _install_client(monkeypatch, RuntimeError("overloaded"))
    summary = ActivitySummary(total_distance=40.0, avg_pace=5.2, total_runs=4)

    text = await CoachService().fitness_summary([], summary, today=date(2026, 10, 18))

    assert text.startswith("**Current Fitness Overview**")


class TestRuleBasedSummary:
    def _rows(self) -> list[dict]:
        return [
            {"name": "Easy", "distance": 8.0, "duration": "44:00", "pace": 5.5, "raw_date": "2026-10-17"},
            {"name": "Tempo", "distance": 10.0, "duration": "48:00", "pace": 4.8, "raw_date": "2026-10-15"},
            {"name": "Long", "distance": 18.0, "duration": "1:45:00", "pace": 5.8, "raw_date": "2026-10-01"},
        ]

    def test_consistency_and_recent_run(self):
        summary = ActivitySummary(total_distance=36.0, avg_pace=5.4, total_runs=3)

        text = rule_based_summary(self._rows(), summary, today=date(2026, 10, 18))

        assert "good training consistency" in text
        assert "Your latest 8.0km run in 44:00 shows consistent pacing." in text
        assert "focusing on longer distances" in text
        assert "Aim for 3-4 runs this week" in text

    def test_no_runs(self):
        text = rule_based_summary([], ActivitySummary(), today=date(2026, 10, 18))

        assert "limited recent activity" in text
        assert "Ready for your next run!" in text


@pytest.mark.asyncio
async def test_empty_json_plan_falls_back_to_text_extraction(monkeypatch: pytest.MonkeyPatch):
    text_part = PLAN_REPLY.split("```json")[0]
    _install_client(monkeypatch, text_part + '```json\n{"title": "Empty", "sessions": []}\n```')

    reply = await CoachService().chat("Can you make me a 10k plan?")

    assert reply.training_plan is not None
    assert [session.type for session in reply.training_plan.sessions] == ["easy", "tempo", "long"]
    assert "```" not in reply.message
