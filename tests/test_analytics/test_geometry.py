"""
Tests for Shot Geometry

Validates distance, angle, zone lookup, and the high-danger area.
"""

import pytest

from rink_analytics.analytics.geometry import (
    RinkZones,
    compute_shot_geometry,
    is_high_danger_location,
    shot_angle,
    shot_distance,
)


def test_distance_to_attacked_net():
    """Distance is measured to the net on the same side as the shot."""
    assert shot_distance(79, 0) == pytest.approx(10.0)
    assert shot_distance(-79, 0) == pytest.approx(10.0)
    assert shot_distance(89, 0) == pytest.approx(0.0)
    assert shot_distance(77, 5) == pytest.approx(13.0)


def test_angle_from_center():
    """Angle is 0 straight on and grows toward the boards."""
    assert shot_angle(79, 0) == pytest.approx(0.0)
    assert shot_angle(79, 10) == pytest.approx(45.0)
    assert shot_angle(79, -10) == pytest.approx(45.0)


def test_angle_on_goal_line():
    """A shot from the goal line itself has a 90 degree angle."""
    assert shot_angle(89, 5) == 90.0


def test_mirrored_shots_share_features():
    """Shots at mirrored coordinates get identical geometry."""
    left = compute_shot_geometry(-70, 12)
    right = compute_shot_geometry(70, 12)
    assert left == right


@pytest.mark.parametrize(
    "x,y,zone",
    [
        (85, 0, "inner_slot"),
        (-85, 0, "inner_slot"),
        (75, -20, "slot"),
        (60, -25, "left_circle"),
        (60, 25, "right_circle"),
        (40, 0, "high_slot"),
        (40, -30, "left_point"),
        (40, 30, "right_point"),
        (95, 0, "behind_net"),
        (10, 0, "neutral_zone"),
        (60, 40, "other"),
    ],
)
def test_identify_zone(x, y, zone):
    """Coordinates resolve to the most specific zone."""
    assert RinkZones().identify_zone(x, y) == zone


def test_custom_zone_definitions():
    """Custom zone tables replace the defaults."""
    zones = RinkZones(
        zones={"crease": {"x_min": 85, "x_max": 89, "y_min": -4, "y_max": 4, "danger_level": "extreme"}}
    )
    assert zones.identify_zone(87, 0) == "crease"
    assert zones.identify_zone(70, 0) == "other"
    assert zones.danger_level("crease") == "extreme"


def test_danger_level_lookup():
    """Known zones report their level, unknown zones are low."""
    zones = RinkZones()
    assert zones.danger_level("slot") == "high"
    assert zones.danger_level("behind_net") == "low"


class TestHighDangerLocation:
    """Tests for the home-plate high-danger area."""

    def test_close_central_shot(self):
        """Test a shot from the slot."""
        assert is_high_danger_location(70, 0)

    def test_too_far(self):
        """Test a shot beyond the distance limit."""
        assert not is_high_danger_location(60, 0)

    def test_too_wide(self):
        """Test a close shot outside the lateral limit."""
        assert not is_high_danger_location(85, 22)

    def test_distance_boundary_is_inclusive(self):
        """Test a shot exactly at the distance limit."""
        assert is_high_danger_location(64, 0)
