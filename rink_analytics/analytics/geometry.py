"""
Shot Geometry Module

Converts raw rink coordinates into shot distance, shot angle, and zone.

Coordinates are centered at (0, 0) with the nets on the goal lines at
x = +goal_line_x and x = -goal_line_x. The attacked net is chosen by the
sign of x, so the same shot yields the same features whichever end a team
attacks in a given period.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

GOAL_LINE_X = 89.0
BLUE_LINE_X = 25.0
HIGH_DANGER_DISTANCE = 25.0
HIGH_DANGER_LATERAL = 20.0


@dataclass(frozen=True)
class ShotGeometry:
    """Features extracted from a shot location."""

    distance: float
    angle: float
    zone: str


@dataclass(frozen=True)
class ZoneDefinition:
    """A rectangular area of the offensive zone (x normalized to positive)."""

    name: str
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    danger_level: str

    def contains_point(self, x: float, y: float) -> bool:
        """Check if a point is within this zone."""
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max


DEFAULT_ZONES: dict[str, dict[str, Any]] = {
    "inner_slot": {"x_min": 79, "x_max": 89, "y_min": -9, "y_max": 9, "danger_level": "extreme"},
    "slot": {"x_min": 69, "x_max": 89, "y_min": -22, "y_max": 22, "danger_level": "high"},
    "left_circle": {"x_min": 54, "x_max": 74, "y_min": -32, "y_max": -12, "danger_level": "medium"},
    "right_circle": {"x_min": 54, "x_max": 74, "y_min": 12, "y_max": 32, "danger_level": "medium"},
    "high_slot": {"x_min": 25, "x_max": 69, "y_min": -15, "y_max": 15, "danger_level": "medium-low"},
    "left_point": {"x_min": 25, "x_max": 54, "y_min": -42.5, "y_max": -15, "danger_level": "low"},
    "right_point": {"x_min": 25, "x_max": 54, "y_min": 15, "y_max": 42.5, "danger_level": "low"},
}

# Checked in order of specificity (inner_slot before slot)
ZONE_PRIORITY = [
    "inner_slot",
    "slot",
    "left_circle",
    "right_circle",
    "high_slot",
    "left_point",
    "right_point",
]


def _attacked_net_x(x: float, goal_line_x: float) -> float:
    return goal_line_x if x >= 0 else -goal_line_x


def shot_distance(x: float, y: float, goal_line_x: float = GOAL_LINE_X) -> float:
    """Euclidean distance in feet from (x, y) to the attacked net."""
    net_x = _attacked_net_x(x, goal_line_x)
    return float(np.hypot(net_x - x, y))


def shot_angle(x: float, y: float, goal_line_x: float = GOAL_LINE_X) -> float:
    """
    Angle in degrees between the shot location and the attacked net.

    0 is straight on; a shot from the goal line itself is 90.
    """
    net_x = _attacked_net_x(x, goal_line_x)
    dx = abs(net_x - x)
    if dx == 0:
        return 90.0
    return float(np.degrees(np.arctan(abs(y) / dx)))


def is_high_danger_location(
    x: float,
    y: float,
    goal_line_x: float = GOAL_LINE_X,
    max_distance: float = HIGH_DANGER_DISTANCE,
    max_lateral: float = HIGH_DANGER_LATERAL,
) -> bool:
    """Check if a shot came from the home-plate area in front of the net."""
    return shot_distance(x, y, goal_line_x) <= max_distance and abs(y) <= max_lateral


class RinkZones:
    """
    Classifies coordinates into named rink areas.

    Zones are defined in offensive-zone coordinates; input x is mirrored to
    the positive side before lookup.
    """

    def __init__(
        self,
        zones: dict[str, dict[str, Any]] | None = None,
        goal_line_x: float = GOAL_LINE_X,
    ) -> None:
        self.goal_line_x = goal_line_x
        self.zones = {
            name: ZoneDefinition(
                name=name,
                x_min=config.get("x_min", 0),
                x_max=config.get("x_max", 100),
                y_min=config.get("y_min", -42.5),
                y_max=config.get("y_max", 42.5),
                danger_level=config.get("danger_level", "low"),
            )
            for name, config in (zones or DEFAULT_ZONES).items()
        }

    def identify_zone(self, x: float, y: float) -> str:
        """
        Identify which zone a coordinate falls into.

        Args:
            x: X coordinate
            y: Y coordinate

        Returns:
            Zone name, "behind_net", "neutral_zone", or "other"
        """
        x = abs(x)

        if x > self.goal_line_x:
            return "behind_net"
        if x < BLUE_LINE_X:
            return "neutral_zone"

        for zone_name in ZONE_PRIORITY:
            zone = self.zones.get(zone_name)
            if zone is not None and zone.contains_point(x, y):
                return zone_name

        for zone_name, zone in self.zones.items():
            if zone_name not in ZONE_PRIORITY and zone.contains_point(x, y):
                return zone_name

        return "other"

    def danger_level(self, zone_name: str) -> str:
        """Return the danger level of a named zone ("low" if unknown)."""
        zone = self.zones.get(zone_name)
        return zone.danger_level if zone is not None else "low"


_DEFAULT_RINK_ZONES = RinkZones()


def compute_shot_geometry(
    x: float,
    y: float,
    goal_line_x: float = GOAL_LINE_X,
    zones: RinkZones | None = None,
) -> ShotGeometry:
    """
    Extract distance, angle, and zone from a shot location.

    Callers must reject missing coordinates before calling this.
    """
    zones = zones or _DEFAULT_RINK_ZONES
    return ShotGeometry(
        distance=shot_distance(x, y, goal_line_x),
        angle=shot_angle(x, y, goal_line_x),
        zone=zones.identify_zone(x, y),
    )
