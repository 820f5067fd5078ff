"""Tests for training plan extraction from coach replies."""

import json

import pytest

from fitflex.services.plan_extractor import (
    _race_label,
    classify_session_type,
    detect_plan_request,
    extract_plan,
    extract_structured_plan,
    strip_plan_json,
    template_plan,
)

WEEKLY_REPLY = """Here's a balanced week to get you started.

Monday: Easy Run - 30-45 minutes, 5-7km easy pace
Tuesday: Interval Training - 45 minutes with speed work
Wednesday: Rest Day - Complete rest or light stretching
Thursday: Tempo Run - 45 minutes at comfortably hard pace
Friday: Rest Day - Easy cross-training optional
Saturday: Long Run - 60-90 minutes at steady pace
Sunday: Recovery Run - 30 minutes very easy pace

Repeat this for 8 weeks and listen to your body."""

MARATHON_REPLY = (
    "Here is your marathon plan for the next few months. We will build your aerobic base "
    "gradually, increase the long run a little at a time, and keep most of your running at an "
    "easy conversational effort so that you arrive at the start line fresh, healthy and confident. "
    "Fuel well and sleep enough."
)


class TestPlanRequestDetection:
    def test_plan_keywords(self):
        assert detect_plan_request("Can you make me a 10K plan?")
        assert detect_plan_request("I need a Training Plan for spring")

    def test_ordinary_questions(self):
        assert not detect_plan_request("How should I fuel before a long run?")


class TestSessionType:
    def test_keyword_priority(self):
        assert classify_session_type("Rest or easy jog") == "rest"
        assert classify_session_type("Track intervals 6x800m") == "interval"
        assert classify_session_type("Threshold run") == "tempo"
        assert classify_session_type("Long endurance run") == "long"

    def test_defaults_to_easy(self):
        assert classify_session_type("Run 5km") == "easy"


class TestExtractPlan:
    def test_weekday_lines_become_sessions(self):
        plan = extract_plan(WEEKLY_REPLY)

        assert plan is not None
        assert len(plan.sessions) == 7
        assert [session.type for session in plan.sessions] == [
            "easy", "interval", "rest", "tempo", "rest", "long", "easy",
        ]
        assert plan.sessions[0].day == "Monday"
        assert plan.sessions[0].distance == "5-7km"
        assert plan.sessions[0].description == "Easy Run - 30-45 minutes, 5-7km easy pace"
        assert plan.sessions[6].duration == "30 min"
        assert plan.duration == "8 weeks"
        assert plan.description == "AI-generated training plan"

    def test_hours_are_converted_to_minutes(self):
        plan = extract_plan(
            "Monday: Easy 30 minutes\nWednesday: Tempo 40 minutes\nSaturday: Long run 2 hours"
        )

        assert plan.sessions[2].duration == "120 min"

    def test_short_description_gets_default_text(self):
        plan = extract_plan("Mon: Rest\nWed: Tempo\nSat: Long")

        assert plan.sessions[0].description == "Rest day or light stretching"
        assert plan.sessions[1].description == "Tempo run at comfortably hard pace"

    def test_long_plan_text_without_schedule_uses_template(self):
        assert len(MARATHON_REPLY) > 200

        plan = extract_plan(MARATHON_REPLY)

        assert plan is not None
        assert plan.title == "Marathon Training Plan"
        assert len(plan.sessions) == 7
        assert plan.duration == "8-12 weeks"

    def test_title_comes_from_plan_sentence(self):
        plan = extract_plan(
            "Here is your 10K training plan for spring runners.\n"
            "Mon: Easy 30 minutes\nWed: Tempo 40 minutes\nSat: Long run 90 minutes"
        )

        assert plan.title == "spring runners"

    def test_title_and_duration_defaults(self):
        plan = extract_plan("Mon: Easy 30 minutes\nWed: Tempo 40 minutes\nSat: Long run 90 minutes")

        assert plan.title == "Training Plan"
        assert plan.duration == "Variable"

    def test_plural_day_names(self):
        plan = extract_plan(
            "Mondays: Easy 30 minutes\nWednesdays: Tempo 40 minutes\nSaturdays: Long run 90 minutes"
        )

        assert [session.day for session in plan.sessions] == ["Monday", "Wednesday", "Saturday"]
        assert plan.sessions[0].description == "Easy 30 minutes"

    def test_plain_reply_has_no_plan(self):
        assert extract_plan("Great job on your run today!") is None
        assert extract_plan("") is None


class TestTemplatePlan:
    def test_template_week(self):
        plan = template_plan("5K")

        assert plan.title == "5K Training Plan"
        assert plan.description == "Personalized 5k training program"
        assert [session.day for session in plan.sessions][0] == "Monday"
        assert plan.sessions[2].type == "rest"
        assert plan.sessions[2].distance is None

    @pytest.mark.parametrize(
        ("text", "label"),
        [
            ("Training for a 5k in June", "5K"),
            ("My first 10K race", "10K"),
            ("Aiming for a half marathon PR", "Half Marathon"),
            ("The Berlin marathon is my goal", "Marathon"),
            ("Just want to get fitter", "running"),
        ],
    )
    def test_race_label(self, text: str, label: str):
        assert _race_label(text) == label


class TestStructuredPlan:
    def _reply(self, payload: dict) -> str:
        return f"Here you go!\n\n```json\n{json.dumps(payload)}\n```\n\nGood luck."

    def test_fenced_json_plan(self):
        reply = self._reply(
            {
                "title": "10K Build",
                "duration": "6 weeks",
                "sessions": [
                    {"day": "Monday", "type": "easy", "duration": "40 min", "distance": "6 km", "description": "Easy"},
                    {"day": "Thursday", "type": "tempo", "duration": "45 min", "distance": "8 km", "description": "Tempo"},
                ],
            }
        )

        plan = extract_structured_plan(reply)

        assert plan.title == "10K Build"
        assert plan.description == "AI-generated training plan"
        assert [session.type for session in plan.sessions] == ["easy", "tempo"]

    def test_invalid_session_type_is_rejected(self):
        reply = self._reply(
            {"title": "Bad", "sessions": [{"day": "Monday", "type": "swim", "duration": "1h", "description": "x"}]}
        )

        assert extract_structured_plan(reply) is None

    def test_no_json(self):
        assert extract_structured_plan(WEEKLY_REPLY) is None

    def test_strip_plan_json(self):
        reply = self._reply({"title": "x", "sessions": []})

        assert strip_plan_json(reply) == "Here you go!\n\n\n\nGood luck."

    def test_empty_sessions_is_not_a_plan(self):
        reply = self._reply({"title": "Empty", "sessions": []})

        assert extract_structured_plan(reply) is None
