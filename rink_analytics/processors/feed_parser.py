"""
Play-by-Play Feed Parser

Normalizes already-fetched gamecenter-style play and shift dictionaries into
Event, Shot, Shift, and Game models. No I/O happens here.
"""

from typing import Any, Iterable

from loguru import logger

from rink_analytics.models.events import (
    SHOT_KINDS,
    Event,
    EventKind,
    Game,
    Shift,
    Shot,
    ShotType,
    Strength,
)
from rink_analytics.timing import ParseError, parse_clock, to_elapsed_seconds

# Skater details keys that identify acting players
PLAYER_ID_KEYS = (
    "shootingPlayerId",
    "scoringPlayerId",
    "hittingPlayerId",
    "hitteePlayerId",
    "playerId",
    "winningPlayerId",
    "losingPlayerId",
    "committedByPlayerId",
    "drawnByPlayerId",
    "blockingPlayerId",
)

# Home-skaters-v-away-skaters states reported as special teams or even play
KNOWN_SITUATIONS = {"5v5", "5v4", "4v5", "5v3", "3v5", "4v4", "4v3", "3v4", "3v3"}

REBOUND_WINDOW_SECONDS = 3


def parse_situation_code(situation_code: str | None) -> tuple[int, int] | None:
    """
    Parse a situation code into (home skaters, away skaters).

    The code is four digits: away goalie, away skaters, home skaters,
    home goalie. Returns None for missing or malformed codes.
    """
    if not situation_code or len(situation_code) != 4 or not situation_code.isdigit():
        return None
    return int(situation_code[2]), int(situation_code[1])


def strength_from_situation(situation_code: str | None, shooter_is_home: bool) -> Strength:
    """Shooter-relative strength for a situation code (unknown states are 5v5)."""
    skaters = parse_situation_code(situation_code)
    if skaters is None:
        return Strength.EVEN

    home, away = skaters
    if f"{home}v{away}" not in KNOWN_SITUATIONS:
        return Strength.EVEN

    if shooter_is_home:
        return Strength.from_skaters(home, away)
    return Strength.from_skaters(away, home)


class PlayByPlayParser:
    """
    Parser for play-by-play feed records.

    A structurally broken play or shift row is logged and skipped; a
    malformed clock string raises ParseError.
    """

    def parse_play(
        self,
        play: dict[str, Any],
        game_id: int,
        home_team_id: int,
    ) -> Event | None:
        """
        Parse a single play dict into an Event or Shot.

        Args:
            play: Play record from the feed
            game_id: Game ID
            home_team_id: Home team ID

        Returns:
            Event/Shot, or None if the record is unusable
        """
        try:
            kind = EventKind.from_feed(play.get("typeDescKey"))
            details = play.get("details") or {}
            period = (play.get("periodDescriptor") or {}).get("number")
            clock = play.get("timeInPeriod")

            # Validates the clock; ParseError propagates
            to_elapsed_seconds(period, clock)

            team_id = details.get("eventOwnerTeamId")
            player_ids = tuple(details[key] for key in PLAYER_ID_KEYS if details.get(key))
            situation_code = play.get("situationCode")
            home_strength = None
            if parse_situation_code(situation_code) is not None:
                home_strength = strength_from_situation(situation_code, shooter_is_home=True)

            base = dict(
                event_id=play["eventId"],
                kind=kind,
                period=period,
                clock=clock,
                game_id=game_id,
                team_id=team_id,
                x_coord=details.get("xCoord"),
                y_coord=details.get("yCoord"),
                player_ids=player_ids,
                home_strength=home_strength,
            )

            if kind not in SHOT_KINDS:
                return Event(**base)

            shooter_is_home = team_id == home_team_id
            home_on_ice = frozenset(play.get("homePlayersOnIce") or ())
            away_on_ice = frozenset(play.get("awayPlayersOnIce") or ())

            return Shot(
                **base,
                shooter_id=details.get("shootingPlayerId") or details.get("scoringPlayerId"),
                goalie_id=details.get("goalieInNetId"),
                shot_type=ShotType.from_feed(details.get("shotType")),
                strength=strength_from_situation(situation_code, shooter_is_home),
                shooting_on_ice=home_on_ice if shooter_is_home else away_on_ice,
                defending_on_ice=away_on_ice if shooter_is_home else home_on_ice,
            )

        except ParseError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to parse play in game {game_id}: {e}")
            return None

    def parse_shift(self, row: dict[str, Any]) -> Shift | None:
        """
        Parse a shift chart row.

        Rows missing required fields or ending before they start are
        skipped with a warning.
        """
        try:
            return Shift(
                player_id=row["playerId"],
                team_id=row["teamId"],
                period=row["period"],
                start_seconds=parse_clock(row["startTime"]),
                end_seconds=parse_clock(row["endTime"]),
            )
        except ParseError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping unparseable shift row: {e}")
            return None

    def parse_game(
        self,
        game_id: int,
        home_team_id: int,
        away_team_id: int,
        plays: Iterable[dict[str, Any]],
        shifts: Iterable[dict[str, Any]] = (),
    ) -> Game:
        """
        Build a Game from play and shift records.

        Events are ordered by elapsed time. Shots without on-ice arrays get
        them from the shift charts, and rebounds are flagged.
        """
        parsed_shifts = [s for s in (self.parse_shift(row) for row in shifts) if s is not None]

        events = [
            e
            for e in (self.parse_play(p, game_id, home_team_id) for p in plays)
            if e is not None
        ]
        events.sort(key=lambda e: (e.elapsed_seconds, e.event_id))

        events = self._fill_on_ice(events, parsed_shifts)
        events = self._flag_rebounds(events)

        logger.debug(
            f"Parsed game {game_id}: {len(events)} events, {len(parsed_shifts)} shifts"
        )

        return Game(
            game_id=game_id,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            events=tuple(events),
            shifts=tuple(parsed_shifts),
        )

    def _fill_on_ice(self, events: list[Event], shifts: list[Shift]) -> list[Event]:
        """Populate missing on-ice sets for shots from shift intervals."""
        if not shifts:
            return events

        filled = []
        for event in events:
            if (
                isinstance(event, Shot)
                and event.team_id is not None
                and not (event.shooting_on_ice and event.defending_on_ice)
            ):
                seconds = parse_clock(event.clock)
                on_ice: dict[int, set[int]] = {}
                for shift in shifts:
                    if shift.contains(event.period, seconds):
                        on_ice.setdefault(shift.team_id, set()).add(shift.player_id)

                shooting = on_ice.pop(event.team_id, set())
                defending = set().union(*on_ice.values()) if on_ice else set()
                event = event.model_copy(
                    update={
                        "shooting_on_ice": event.shooting_on_ice or frozenset(shooting),
                        "defending_on_ice": event.defending_on_ice or frozenset(defending),
                    }
                )
            filled.append(event)
        return filled

    def _flag_rebounds(self, events: list[Event]) -> list[Event]:
        """
        Flag shots that follow the same team's on-goal shot within the rebound window.

        Events must already be sorted by elapsed time.
        """
        last_on_goal: dict[int, tuple[int, int]] = {}  # team -> (period, elapsed)
        flagged = []

        for event in events:
            if isinstance(event, Shot) and event.team_id is not None:
                elapsed = event.elapsed_seconds
                previous = last_on_goal.get(event.team_id)
                if (
                    previous is not None
                    and previous[0] == event.period
                    and elapsed - previous[1] < REBOUND_WINDOW_SECONDS
                ):
                    event = event.model_copy(update={"is_rebound": True})
                if event.is_on_goal:
                    last_on_goal[event.team_id] = (event.period, elapsed)
            flagged.append(event)

        return flagged
