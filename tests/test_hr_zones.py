"""Tests for HR zone calculation."""

import pytest

from fitflex.services.hr_zones import (
    compute_zones,
    estimate_max_hr,
    format_zones_for_prompt,
    zone2_range_label,
)


class TestMaxHRCalculation:
    """Test maximum heart rate calculation from age."""

    def test_estimate_max_hr(self):
        assert estimate_max_hr(30) == 190
        assert estimate_max_hr(40) == 180
        assert estimate_max_hr(25) == 195


class TestHRZoneCalculation:
    """Test HR zone calculation."""

    def test_max_hr_zones(self):
        zones = compute_zones("maxhr", max_hr=190)

        assert (zones.zone1.min, zones.zone1.max) == (95, 114)
        assert (zones.zone2.min, zones.zone2.max) == (114, 133)
        assert (zones.zone3.min, zones.zone3.max) == (133, 152)
        assert (zones.zone4.min, zones.zone4.max) == (152, 171)
        assert (zones.zone5.min, zones.zone5.max) == (171, 190)

    def test_max_hr_estimated_from_age(self):
        zones = compute_zones("maxhr", age=40)

        assert (zones.zone2.min, zones.zone2.max) == (108, 126)
        assert zones.zone5.max == 180

    def test_default_age_when_nothing_is_set(self):
        assert compute_zones("maxhr") == compute_zones("maxhr", max_hr=190)

    def test_lthr_zones(self):
        zones = compute_zones("lthr", max_hr=190, lthr=170)

        assert (zones.zone2.min, zones.zone2.max) == (146, 151)
        assert (zones.zone3.min, zones.zone3.max) == (153, 160)

    def test_lthr_without_threshold_falls_back_to_max_hr(self):
        assert compute_zones("lthr", max_hr=185) == compute_zones("maxhr", max_hr=185)

    def test_heart_rate_reserve_zones(self):
        zones = compute_zones("hrr", max_hr=190, resting_hr=50)

        assert (zones.zone2.min, zones.zone2.max) == (134, 148)
        assert zones.zone5.max == 190

    def test_hrr_without_resting_hr_falls_back_to_max_hr(self):
        assert compute_zones("hrr", max_hr=180) == compute_zones("maxhr", max_hr=180)

    def test_unknown_method_uses_max_hr(self):
        assert compute_zones("vo2", max_hr=180) == compute_zones("maxhr", max_hr=180)

    @pytest.mark.parametrize(
        "method,kwargs",
        [
            ("maxhr", {"max_hr": 200}),
            ("maxhr", {"age": 55}),
            ("lthr", {"lthr": 165}),
            ("hrr", {"max_hr": 185, "resting_hr": 45}),
        ],
    )
    def test_zones_are_ordered(self, method, kwargs):
        zones = compute_zones(method, **kwargs).ordered()

        for zone in zones:
            assert zone.min <= zone.max
        for lower, upper in zip(zones, zones[1:]):
            assert lower.min <= upper.min
            assert lower.max <= upper.max


class TestZoneFormatting:
    def test_format_for_prompt(self):
        text = format_zones_for_prompt(compute_zones("maxhr", max_hr=190))
        lines = text.splitlines()

        assert len(lines) == 5
        assert lines[0] == "Zone 1 (Recovery): 95-114 bpm"
        assert lines[1] == "Zone 2 (Aerobic Base): 114-133 bpm"

    def test_zone2_label(self):
        assert zone2_range_label(compute_zones("maxhr", max_hr=190)) == "114-133 bpm"
