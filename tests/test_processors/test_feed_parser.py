"""
Tests for the Play-by-Play Feed Parser

Validates play and shift parsing, strength derivation, on-ice filling,
and rebound flags.
"""

import pytest

from rink_analytics.models.events import EventKind, Shot, ShotType, Strength
from rink_analytics.processors.feed_parser import (
    PlayByPlayParser,
    parse_situation_code,
    strength_from_situation,
)
from rink_analytics.timing import ParseError

GAME_ID = 2023020001
HOME = 10
AWAY = 20


@pytest.fixture
def parser():
    """Feed parser instance."""
    return PlayByPlayParser()


def shot_play(event_id, clock, team_id, kind="shot-on-goal", period=1, **extra):
    play = {
        "eventId": event_id,
        "typeDescKey": kind,
        "periodDescriptor": {"number": period},
        "timeInPeriod": clock,
        "situationCode": "1551",
        "details": {"eventOwnerTeamId": team_id, "xCoord": 70, "yCoord": 5},
    }
    play.update(extra)
    return play


def shift_row(player_id, team_id, start, end, period=1):
    return {
        "playerId": player_id,
        "teamId": team_id,
        "period": period,
        "startTime": start,
        "endTime": end,
    }


class TestSituationCodes:
    """Tests for situation code handling."""

    def test_parse_situation_code(self):
        """Test the skater digits of a code."""
        assert parse_situation_code("1451") == (5, 4)
        assert parse_situation_code("1541") == (4, 5)

    @pytest.mark.parametrize("code", [None, "", "151", "15a1", "12345"])
    def test_malformed_codes(self, code):
        """Test that malformed codes are unknown."""
        assert parse_situation_code(code) is None

    def test_strength_is_shooter_relative(self):
        """Test that the same situation flips for each bench."""
        assert strength_from_situation("1451", shooter_is_home=True) == Strength.POWER_PLAY
        assert strength_from_situation("1451", shooter_is_home=False) == Strength.SHORTHANDED
        assert strength_from_situation("1441", shooter_is_home=True) == Strength.FOUR_ON_FOUR

    def test_unknown_situations_are_even(self):
        """Test that empty-net and missing situations default to 5v5."""
        assert strength_from_situation("0651", shooter_is_home=False) == Strength.EVEN
        assert strength_from_situation(None, shooter_is_home=True) == Strength.EVEN


class TestParsePlay:
    """Tests for single play parsing."""

    def test_sample_plays(self, parser, sample_plays):
        """Test kinds, shots, and situations across a sample game."""
        events = [parser.parse_play(p, GAME_ID, HOME) for p in sample_plays]
        faceoff, shot, goal, hit, period_start = events

        assert faceoff.kind == EventKind.FACEOFF
        assert not isinstance(faceoff, Shot)
        assert faceoff.player_ids == (8478402,)

        assert isinstance(shot, Shot)
        assert shot.kind == EventKind.SHOT
        assert shot.strength == Strength.POWER_PLAY
        assert shot.shooter_id == 8478402
        assert shot.goalie_id == 2
        assert shot.shooting_on_ice == frozenset({1, 11, 12, 13, 14, 15})
        assert shot.defending_on_ice == frozenset({2, 21, 22, 23, 24})
        assert shot.game_id == GAME_ID

        assert goal.is_goal
        assert goal.shot_type == ShotType.TIP
        assert goal.shooter_id == 8477934

        assert hit.team_id == AWAY
        assert hit.period == 2
        assert hit.player_ids == (21, 11)

        assert period_start.kind == EventKind.IGNORED

    def test_home_strength_on_every_event(self, parser, sample_plays):
        """Test that each event records the situation from the home bench."""
        events = [parser.parse_play(p, GAME_ID, HOME) for p in sample_plays]
        faceoff, shot, goal, hit, period_start = events

        assert faceoff.home_strength == Strength.EVEN
        assert shot.home_strength == Strength.POWER_PLAY
        assert hit.home_strength == Strength.EVEN
        assert period_start.home_strength is None

    def test_home_strength_independent_of_shooter(self, parser):
        """Test that an away shot on the home power play keeps the home view."""
        play = shot_play(1, "03:00", AWAY, situationCode="1451")
        shot = parser.parse_play(play, GAME_ID, HOME)

        assert shot.strength == Strength.SHORTHANDED
        assert shot.home_strength == Strength.POWER_PLAY
        assert shot.strength_for_team(AWAY, HOME) == Strength.SHORTHANDED

    def test_away_shot_on_ice_orientation(self, parser):
        """Test that an away shooter's skaters are the shooting side."""
        play = shot_play(
            1, "03:00", AWAY, homePlayersOnIce=[11, 12], awayPlayersOnIce=[21, 22]
        )
        shot = parser.parse_play(play, GAME_ID, HOME)

        assert shot.shooting_on_ice == frozenset({21, 22})
        assert shot.defending_on_ice == frozenset({11, 12})

    def test_missing_event_id_skipped(self, parser):
        """Test that a structurally broken play is skipped."""
        play = shot_play(1, "03:00", HOME)
        del play["eventId"]
        assert parser.parse_play(play, GAME_ID, HOME) is None

    def test_malformed_clock_raises(self, parser):
        """Test that a bad clock is an error, not a skip."""
        with pytest.raises(ParseError):
            parser.parse_play(shot_play(1, "3 min", HOME), GAME_ID, HOME)

    def test_missing_period_raises(self, parser):
        """Test that a play without a period cannot be placed in time."""
        play = shot_play(1, "03:00", HOME)
        del play["periodDescriptor"]
        with pytest.raises(ParseError):
            parser.parse_play(play, GAME_ID, HOME)


class TestParseShift:
    """Tests for shift row parsing."""

    def test_valid_row(self, parser):
        """Test a normal shift row."""
        shift = parser.parse_shift(shift_row(11, HOME, "01:00", "01:40"))

        assert shift.player_id == 11
        assert shift.start_seconds == 60
        assert shift.end_seconds == 100

    def test_missing_field_skipped(self, parser):
        """Test that incomplete rows are skipped."""
        row = shift_row(11, HOME, "01:00", "01:40")
        del row["teamId"]
        assert parser.parse_shift(row) is None

    def test_inverted_shift_skipped(self, parser):
        """Test that a shift ending before it starts is skipped."""
        assert parser.parse_shift(shift_row(11, HOME, "02:00", "01:40")) is None

    def test_malformed_clock_raises(self, parser):
        """Test that bad shift clocks are errors."""
        with pytest.raises(ParseError):
            parser.parse_shift(shift_row(11, HOME, "1:0", "01:40"))


class TestParseGame:
    """Tests for whole-game assembly."""

    def test_events_sorted_and_filtered(self, parser, sample_plays):
        """Test that events are ordered by elapsed time."""
        game = parser.parse_game(GAME_ID, HOME, AWAY, reversed(sample_plays))

        assert [e.event_id for e in game.events] == [101, 105, 102, 103, 104]
        assert game.home_team_id == HOME
        assert not game.has_shifts

    def test_rebound_flagging(self, parser, sample_plays):
        """Test that a quick follow-up shot is a rebound."""
        game = parser.parse_game(GAME_ID, HOME, AWAY, sample_plays)
        shots = {shot.event_id: shot for shot in game.shots}

        assert not shots[102].is_rebound
        assert shots[103].is_rebound

    def test_rebound_window(self, parser):
        """Test the rebound window edges and team matching."""
        plays = [
            shot_play(1, "05:00", HOME),
            shot_play(2, "05:03", HOME),
            shot_play(3, "06:00", HOME, kind="missed-shot"),
            shot_play(4, "06:01", HOME),
            shot_play(5, "06:02", AWAY),
        ]
        game = parser.parse_game(GAME_ID, HOME, AWAY, plays)
        flags = {shot.event_id: shot.is_rebound for shot in game.shots}

        assert flags == {1: False, 2: False, 3: False, 4: False, 5: False}

    def test_rebound_requires_same_period(self, parser):
        """Test that a shot after a period break is never a rebound."""
        plays = [
            shot_play(1, "20:00", HOME, period=1),
            shot_play(2, "00:01", HOME, period=2),
        ]
        game = parser.parse_game(GAME_ID, HOME, AWAY, plays)
        assert not any(shot.is_rebound for shot in game.shots)

    def test_on_ice_filled_from_shifts(self, parser):
        """Test that shifts supply missing on-ice sets."""
        plays = [shot_play(1, "01:20", HOME)]
        shifts = [
            shift_row(11, HOME, "01:00", "01:40"),
            shift_row(12, HOME, "01:10", "01:50"),
            shift_row(13, HOME, "01:30", "02:00"),
            shift_row(21, AWAY, "00:50", "01:30"),
            shift_row(22, AWAY, "01:20", "01:40", period=2),
        ]
        game = parser.parse_game(GAME_ID, HOME, AWAY, plays, shifts)
        shot = game.shots[0]

        assert shot.shooting_on_ice == frozenset({11, 12})
        assert shot.defending_on_ice == frozenset({21})
        assert len(game.shifts) == 5

    def test_embedded_on_ice_kept(self, parser):
        """Test that reported on-ice arrays win over shift lookups."""
        plays = [
            shot_play(1, "01:20", HOME, homePlayersOnIce=[15, 16], awayPlayersOnIce=[25, 26])
        ]
        shifts = [shift_row(11, HOME, "01:00", "01:40")]
        shot = parser.parse_game(GAME_ID, HOME, AWAY, plays, shifts).shots[0]

        assert shot.shooting_on_ice == frozenset({15, 16})
        assert shot.defending_on_ice == frozenset({25, 26})
