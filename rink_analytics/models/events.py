"""
Event Data Models

Pydantic models for play-by-play events, shots, player shifts, and games.
All records are immutable once built from feed data.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rink_analytics.timing import parse_clock, to_elapsed_seconds


class EventKind(str, Enum):
    """Closed set of event kinds the engine understands."""

    GOAL = "goal"
    SHOT = "shot"  # Shot on goal
    MISSED_SHOT = "missed_shot"
    BLOCKED_SHOT = "blocked_shot"
    HIT = "hit"
    TAKEAWAY = "takeaway"
    GIVEAWAY = "giveaway"
    FACEOFF = "faceoff"
    PENALTY = "penalty"
    STOPPAGE = "stoppage"
    ZONE_ENTRY = "zone_entry"
    ZONE_EXIT = "zone_exit"
    IGNORED = "ignored"

    @classmethod
    def from_feed(cls, key: str | None) -> "EventKind":
        """
        Map a feed event key to an EventKind.

        Unknown keys map to IGNORED rather than raising.
        """
        if not key:
            return cls.IGNORED
        normalized = key.strip().lower()
        if normalized in FEED_EVENT_KINDS:
            return FEED_EVENT_KINDS[normalized]
        try:
            return cls(normalized.replace("-", "_"))
        except ValueError:
            return cls.IGNORED


FEED_EVENT_KINDS = {
    "shot-on-goal": EventKind.SHOT,
    "missed-shot": EventKind.MISSED_SHOT,
    "blocked-shot": EventKind.BLOCKED_SHOT,
    "zone-entry": EventKind.ZONE_ENTRY,
    "zone-exit": EventKind.ZONE_EXIT,
}

SHOT_KINDS = frozenset(
    {EventKind.GOAL, EventKind.SHOT, EventKind.MISSED_SHOT, EventKind.BLOCKED_SHOT}
)


class ShotType(str, Enum):
    """Shot type enumeration."""

    WRIST = "wrist"
    SLAP = "slap"
    SNAP = "snap"
    BACKHAND = "backhand"
    TIP = "tip"
    WRAP = "wrap"

    @classmethod
    def from_feed(cls, raw: str | None) -> "ShotType":
        """Map a feed shot type to a ShotType, defaulting to wrist."""
        if not raw:
            return cls.WRIST
        return SHOT_TYPE_MAP.get(raw.strip().lower(), cls.WRIST)


# Map API shot types to standardized names
SHOT_TYPE_MAP = {
    "wrist": ShotType.WRIST,
    "slap": ShotType.SLAP,
    "snap": ShotType.SNAP,
    "backhand": ShotType.BACKHAND,
    "tip": ShotType.TIP,
    "tip-in": ShotType.TIP,
    "deflected": ShotType.TIP,
    "deflection": ShotType.TIP,
    "wrap": ShotType.WRAP,
    "wrap-around": ShotType.WRAP,
}


class ShotResult(str, Enum):
    """Outcome of a shot attempt."""

    GOAL = "goal"
    ON_GOAL = "on_goal"
    MISSED = "missed"
    BLOCKED = "blocked"


SHOT_RESULTS = {
    EventKind.GOAL: ShotResult.GOAL,
    EventKind.SHOT: ShotResult.ON_GOAL,
    EventKind.MISSED_SHOT: ShotResult.MISSED,
    EventKind.BLOCKED_SHOT: ShotResult.BLOCKED,
}


class Strength(str, Enum):
    """Strength situation from the shooting team's perspective."""

    EVEN = "5v5"
    POWER_PLAY = "PP"
    SHORTHANDED = "SH"
    FOUR_ON_FOUR = "4v4"
    THREE_ON_THREE = "3v3"

    @classmethod
    def from_skaters(cls, own_skaters: int, opponent_skaters: int) -> "Strength":
        """Derive the strength state from on-ice skater counts."""
        if own_skaters > opponent_skaters:
            return cls.POWER_PLAY
        if own_skaters < opponent_skaters:
            return cls.SHORTHANDED
        if own_skaters == 4:
            return cls.FOUR_ON_FOUR
        if own_skaters == 3:
            return cls.THREE_ON_THREE
        return cls.EVEN

    def mirrored(self) -> "Strength":
        """Return the same situation seen from the other team's bench."""
        if self is Strength.POWER_PLAY:
            return Strength.SHORTHANDED
        if self is Strength.SHORTHANDED:
            return Strength.POWER_PLAY
        return self


class Event(BaseModel):
    """Represents a single play-by-play event."""

    model_config = ConfigDict(frozen=True)

    event_id: int
    kind: EventKind
    period: int = Field(ge=1)
    clock: str  # Time elapsed in period, MM:SS
    game_id: int | None = None

    # Absent team means the event is skipped by team aggregates
    team_id: int | None = None

    # Location
    x_coord: float | None = None
    y_coord: float | None = None

    # Acting players
    player_ids: tuple[int, ...] = ()

    # Strength from the home bench; None when the feed gave no situation code
    home_strength: Strength | None = None

    @property
    def elapsed_seconds(self) -> int:
        """Absolute seconds elapsed in the game. Raises ParseError on a bad clock."""
        return to_elapsed_seconds(self.period, self.clock)

    def strength_for_team(self, team_id: int, home_team_id: int) -> Strength | None:
        """Strength state from a team's bench, or None if unknown."""
        if self.home_strength is None:
            return None
        return self.home_strength if team_id == home_team_id else self.home_strength.mirrored()

    @property
    def has_location(self) -> bool:
        """Check if the event carries usable coordinates."""
        return self.x_coord is not None and self.y_coord is not None

    @property
    def is_shot_attempt(self) -> bool:
        """Check if the event is any kind of shot attempt (including goals)."""
        return self.kind in SHOT_KINDS


class Shot(Event):
    """A shot attempt with shooter, type, situation, and on-ice skaters."""

    kind: EventKind = EventKind.SHOT
    shooter_id: int | None = None
    goalie_id: int | None = None
    shot_type: ShotType = ShotType.WRIST
    strength: Strength = Strength.EVEN
    is_rebound: bool = False
    is_rush: bool = False

    # Players on ice for the shooting and defending teams
    shooting_on_ice: frozenset[int] = frozenset()
    defending_on_ice: frozenset[int] = frozenset()

    @field_validator("kind")
    @classmethod
    def _check_shot_kind(cls, value: EventKind) -> EventKind:
        if value not in SHOT_KINDS:
            raise ValueError(f"Shot kind must be a shot attempt, got {value.value}")
        return value

    @property
    def result(self) -> ShotResult:
        """Outcome of the attempt."""
        return SHOT_RESULTS[self.kind]

    @property
    def is_goal(self) -> bool:
        """Check if the shot was a goal."""
        return self.kind == EventKind.GOAL

    @property
    def is_on_goal(self) -> bool:
        """Check if the shot reached the goaltender (goals included)."""
        return self.kind in (EventKind.GOAL, EventKind.SHOT)

    def on_ice_for(self, team_id: int) -> frozenset[int]:
        """Players on ice for the given team at the moment of the shot."""
        if self.team_id is None:
            return frozenset()
        return self.shooting_on_ice if team_id == self.team_id else self.defending_on_ice

    def strength_for(self, team_id: int) -> Strength:
        """Strength state from the given team's perspective."""
        if self.team_id is None or team_id == self.team_id:
            return self.strength
        return self.strength.mirrored()


class Shift(BaseModel):
    """A single player shift, in seconds elapsed within one period."""

    model_config = ConfigDict(frozen=True)

    player_id: int
    team_id: int
    period: int = Field(ge=1)
    start_seconds: int = Field(ge=0)
    end_seconds: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_interval(self) -> "Shift":
        if self.end_seconds < self.start_seconds:
            raise ValueError(
                f"Shift ends before it starts ({self.start_seconds} > {self.end_seconds})"
            )
        return self

    @classmethod
    def from_clock(
        cls,
        player_id: int,
        team_id: int,
        period: int,
        start_time: str,
        end_time: str,
    ) -> "Shift":
        """Build a shift from MM:SS start and end clock strings."""
        return cls(
            player_id=player_id,
            team_id=team_id,
            period=period,
            start_seconds=parse_clock(start_time),
            end_seconds=parse_clock(end_time),
        )

    @property
    def duration(self) -> int:
        """Shift length in seconds."""
        return self.end_seconds - self.start_seconds

    def contains(self, period: int, seconds: int) -> bool:
        """Check if a moment in a period falls inside this shift (inclusive)."""
        return period == self.period and self.start_seconds <= seconds <= self.end_seconds

    def overlap(self, other: "Shift") -> int:
        """Seconds both shifts were on the ice together."""
        if self.period != other.period:
            return 0
        start = max(self.start_seconds, other.start_seconds)
        end = min(self.end_seconds, other.end_seconds)
        return max(0, end - start)


class Game(BaseModel):
    """A game's event stream and shift charts."""

    model_config = ConfigDict(frozen=True)

    game_id: int
    home_team_id: int
    away_team_id: int
    events: tuple[Event, ...] = ()
    shifts: tuple[Shift, ...] = ()

    @property
    def shots(self) -> list[Shot]:
        """All shot attempts in the game."""
        return [event for event in self.events if isinstance(event, Shot)]

    @property
    def has_shifts(self) -> bool:
        """Check if shift charts are available."""
        return len(self.shifts) > 0

    def is_home(self, team_id: int) -> bool:
        """Check if a team is the home team."""
        return team_id == self.home_team_id

    def opponent_of(self, team_id: int) -> int:
        """Return the opposing team ID."""
        return self.away_team_id if team_id == self.home_team_id else self.home_team_id

    def goalie_ids(self) -> set[int]:
        """Goaltenders observed in net for any shot in the game."""
        return {shot.goalie_id for shot in self.shots if shot.goalie_id is not None}
