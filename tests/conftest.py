"""
Pytest Configuration and Fixtures

Shared fixtures and configuration for the Rink Analytics test suite.
"""

from itertools import count
from typing import Any, Callable, Iterable

import pytest

from rink_analytics.analytics.expected_goals import ExpectedGoalsModel
from rink_analytics.models.events import EventKind, Game, Shift, Shot, Strength

HOME_TEAM = 10
AWAY_TEAM = 20
HOME_GOALIE = 1
AWAY_GOALIE = 2


@pytest.fixture
def xg_model() -> ExpectedGoalsModel:
    """Default expected goals model."""
    return ExpectedGoalsModel()


@pytest.fixture
def make_shot() -> Callable[..., Shot]:
    """Factory for Shot records with sensible defaults."""
    event_ids = count(1)

    def _make(
        team_id: int | None = HOME_TEAM,
        period: int = 1,
        clock: str = "05:00",
        x: float | None = 80.0,
        y: float | None = 0.0,
        kind: EventKind = EventKind.SHOT,
        strength: Strength = Strength.EVEN,
        shooting_on_ice: Iterable[int] = (),
        defending_on_ice: Iterable[int] = (),
        **kwargs: Any,
    ) -> Shot:
        if "goalie_id" not in kwargs and team_id is not None:
            kwargs["goalie_id"] = AWAY_GOALIE if team_id == HOME_TEAM else HOME_GOALIE
        return Shot(
            event_id=kwargs.pop("event_id", next(event_ids)),
            kind=kind,
            period=period,
            clock=clock,
            team_id=team_id,
            x_coord=x,
            y_coord=y,
            strength=strength,
            shooting_on_ice=frozenset(shooting_on_ice),
            defending_on_ice=frozenset(defending_on_ice),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_shift() -> Callable[..., Shift]:
    """Factory for Shift records."""

    def _make(
        player_id: int,
        start: int,
        end: int,
        period: int = 1,
        team_id: int = HOME_TEAM,
    ) -> Shift:
        return Shift(
            player_id=player_id,
            team_id=team_id,
            period=period,
            start_seconds=start,
            end_seconds=end,
        )

    return _make


@pytest.fixture
def make_game() -> Callable[..., Game]:
    """Factory for Game records between the home and away test teams."""

    def _make(game_id: int = 2023020001, events=(), shifts=()) -> Game:
        return Game(
            game_id=game_id,
            home_team_id=HOME_TEAM,
            away_team_id=AWAY_TEAM,
            events=tuple(events),
            shifts=tuple(shifts),
        )

    return _make


@pytest.fixture
def sample_plays() -> list[dict[str, Any]]:
    """Gamecenter-style play records for one game."""
    return [
        {
            "eventId": 101,
            "typeDescKey": "faceoff",
            "periodDescriptor": {"number": 1},
            "timeInPeriod": "00:00",
            "situationCode": "1551",
            "details": {"eventOwnerTeamId": HOME_TEAM, "winningPlayerId": 8478402},
        },
        {
            "eventId": 102,
            "typeDescKey": "shot-on-goal",
            "periodDescriptor": {"number": 1},
            "timeInPeriod": "05:00",
            "situationCode": "1451",
            "details": {
                "eventOwnerTeamId": HOME_TEAM,
                "xCoord": 79,
                "yCoord": 0,
                "shotType": "wrist",
                "shootingPlayerId": 8478402,
                "goalieInNetId": AWAY_GOALIE,
            },
            "homePlayersOnIce": [HOME_GOALIE, 11, 12, 13, 14, 15],
            "awayPlayersOnIce": [AWAY_GOALIE, 21, 22, 23, 24],
        },
        {
            "eventId": 103,
            "typeDescKey": "goal",
            "periodDescriptor": {"number": 1},
            "timeInPeriod": "05:02",
            "situationCode": "1451",
            "details": {
                "eventOwnerTeamId": HOME_TEAM,
                "xCoord": 85,
                "yCoord": 3,
                "shotType": "tip-in",
                "scoringPlayerId": 8477934,
                "goalieInNetId": AWAY_GOALIE,
            },
            "homePlayersOnIce": [HOME_GOALIE, 11, 12, 13, 14, 15],
            "awayPlayersOnIce": [AWAY_GOALIE, 21, 22, 23, 24],
        },
        {
            "eventId": 104,
            "typeDescKey": "hit",
            "periodDescriptor": {"number": 2},
            "timeInPeriod": "01:15",
            "situationCode": "1551",
            "details": {
                "eventOwnerTeamId": AWAY_TEAM,
                "hittingPlayerId": 21,
                "hitteePlayerId": 11,
            },
        },
        {
            "eventId": 105,
            "typeDescKey": "period-start",
            "periodDescriptor": {"number": 1},
            "timeInPeriod": "00:00",
            "details": {},
        },
    ]
