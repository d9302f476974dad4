"""
Data Models Module

This module contains Pydantic models for play-by-play data.

Models:
    - Event: A single play-by-play event
    - Shot: Shot attempt with shooter, situation, and on-ice skaters
    - Shift: One player's shift within a period
    - Game: A game's events and shift charts
"""

from rink_analytics.models.events import (
    Event,
    EventKind,
    Game,
    Shift,
    Shot,
    ShotResult,
    ShotType,
    Strength,
)

__all__ = [
    "Event",
    "EventKind",
    "Game",
    "Shift",
    "Shot",
    "ShotResult",
    "ShotType",
    "Strength",
]
