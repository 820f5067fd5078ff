"""Tests for unit conversions and rounding."""

from fitflex.models.schemas import ActivityRecord
from fitflex.services.units import (
    calorie_estimate,
    distance_km,
    duration_label,
    matcher_pace,
    pace_from_speed,
    pace_label,
    round_half_up,
)


class TestRounding:
    def test_halves_round_up(self):
        assert round_half_up(142.5) == 143
        assert round_half_up(143.5) == 144
        assert round_half_up(5.25, 1) == 5.3

    def test_below_half_rounds_down(self):
        assert round_half_up(142.49) == 142
        assert round_half_up(5.24, 1) == 5.2


class TestPace:
    def test_pace_from_speed(self):
        assert pace_from_speed(3.0) == 5.56
        assert pace_from_speed(10 / 3) == 5.0

    def test_zero_and_negative_speed_give_zero_pace(self):
        assert pace_from_speed(0) == 0.0
        assert pace_from_speed(-1) == 0.0
        assert pace_from_speed(None) == 0.0

    def test_pace_label_seconds_policies(self):
        speed = 1000 / 333.7  # 5:33.7 per km
        assert pace_label(speed, seconds_rounding="round") == "5:34"
        assert pace_label(speed, seconds_rounding="floor") == "5:33"

    def test_pace_label_rolls_sixty_seconds_into_minutes(self):
        assert pace_label(1000 / 359.8, seconds_rounding="round") == "6:00"

    def test_pace_label_without_speed(self):
        assert pace_label(0) == "0:00"
        assert pace_label(None) == "0:00"

    def test_matcher_pace_uses_one_decimal(self):
        assert matcher_pace(2.78) == 6.0
        assert matcher_pace(0) == 0.0


class TestDistanceAndDuration:
    def test_distance_km(self):
        assert distance_km(15234) == 15.23
        assert distance_km(None) == 0.0

    def test_duration_label_with_hours(self):
        assert duration_label(5400) == "1:30:00"
        assert duration_label(3725) == "1:02:05"

    def test_duration_label_under_an_hour(self):
        assert duration_label(1865) == "31:05"
        assert duration_label(None) == "0:00"


class TestCalories:
    def test_recorded_calories_win(self):
        activity = ActivityRecord(id=1, distance=10000, calories=420)
        assert calorie_estimate(activity) == 420

    def test_estimate_from_distance(self):
        activity = ActivityRecord(id=1, distance=10000)
        assert calorie_estimate(activity) == 650
        assert calorie_estimate(activity, kcal_per_km=70) == 700
