"""
Unit Identification Module

Infers player units (power-play and penalty-kill units, forward trios,
defense pairs) from the skaters reported on ice for each shot.

Shots are first grouped by their exact on-ice skater set. Groups that
differ by a single player are then merged largest-first so that routine
substitutions do not fragment a unit's identity.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Iterable, Mapping

from loguru import logger

from rink_analytics.analytics.expected_goals import ExpectedGoalsModel
from rink_analytics.analytics.geometry import is_high_danger_location
from rink_analytics.config import RinkSettings
from rink_analytics.models.events import Shot

UnitKey = tuple[int, ...]


def unit_key(player_ids: Iterable[int]) -> UnitKey:
    """Canonical unit identity: the ascending tuple of distinct player IDs."""
    return tuple(sorted(set(player_ids)))


class UnitType(str, Enum):
    """Kinds of inferred units."""

    POWER_PLAY = "pp"
    PENALTY_KILL = "pk"
    FORWARD_LINE = "forward"
    DEFENSE_PAIR = "defense"


@dataclass
class RawUnit:
    """Mutable accumulator for one unit during a single aggregation pass."""

    player_ids: UnitKey
    shots_for: list[Shot] = field(default_factory=list)
    shots_against: list[Shot] = field(default_factory=list)
    game_ids: set[int] = field(default_factory=set)

    @property
    def volume(self) -> int:
        """Total shots observed with this unit on ice."""
        return len(self.shots_for) + len(self.shots_against)

    def record(self, shot: Shot, game_id: int, is_for: bool) -> None:
        """Add one observed shot."""
        self.game_ids.add(game_id)
        if is_for:
            self.shots_for.append(shot)
        else:
            self.shots_against.append(shot)

    def absorb(self, other: "RawUnit") -> None:
        """Fold another unit's shots and games into this one."""
        self.shots_for.extend(other.shots_for)
        self.shots_against.extend(other.shots_against)
        self.game_ids |= other.game_ids

    def copy(self) -> "RawUnit":
        return RawUnit(
            player_ids=self.player_ids,
            shots_for=list(self.shots_for),
            shots_against=list(self.shots_against),
            game_ids=set(self.game_ids),
        )


class UnitGrouper:
    """
    Groups shots by the exact set of skaters on ice.

    Goalies are removed using the known-goalie set. Shots with fewer than
    min_skaters remaining skaters are a data gap and are not grouped.
    """

    def __init__(self, goalie_ids: Iterable[int] = (), min_skaters: int = 2) -> None:
        self.goalie_ids = frozenset(goalie_ids)
        self.min_skaters = min_skaters
        self._groups: dict[UnitKey, RawUnit] = {}
        self.skipped = 0

    def skaters(self, shot: Shot, team_id: int) -> UnitKey:
        """Sorted skaters on ice for a team at the moment of a shot, goalies excluded."""
        return unit_key(p for p in shot.on_ice_for(team_id) if p not in self.goalie_ids)

    def add(
        self,
        shot: Shot,
        game_id: int,
        skaters: Iterable[int],
        is_for: bool,
    ) -> UnitKey | None:
        """
        Record a shot against the exact group for a set of skaters.

        Returns:
            The group key, or None if the shot was excluded
        """
        key = unit_key(p for p in skaters if p not in self.goalie_ids)
        if len(key) < self.min_skaters:
            self.skipped += 1
            return None

        group = self._groups.get(key)
        if group is None:
            group = RawUnit(player_ids=key)
            self._groups[key] = group
        group.record(shot, game_id, is_for)
        return key

    @property
    def groups(self) -> dict[UnitKey, RawUnit]:
        """Snapshot of the exact groups (copies, safe to mutate)."""
        return {key: group.copy() for key, group in self._groups.items()}


def shares_all_but_one(a: UnitKey, b: UnitKey) -> bool:
    """Check if two units differ by at most one player (smaller side at least 2 players)."""
    min_size = min(len(a), len(b))
    if min_size < 2:
        return False
    shared = len(set(a) & set(b))
    return shared >= min_size - 1


def merge_overlapping_units(units: Mapping[UnitKey, RawUnit]) -> dict[UnitKey, RawUnit]:
    """
    Fuzzy-merge units that share all but one player.

    Units are processed by total volume descending (key ascending on ties).
    Each surviving unit absorbs every later, not-yet-absorbed unit it
    overlaps with. Surviving units keep their own key. Inputs are not
    mutated, and re-merging the output leaves it unchanged.

    Args:
        units: Exact groups keyed by canonical unit key

    Returns:
        Surviving units in processing order
    """
    ordered = sorted(
        (unit.copy() for unit in units.values()),
        key=lambda unit: (-unit.volume, unit.player_ids),
    )
    absorbed = [False] * len(ordered)
    merged: dict[UnitKey, RawUnit] = {}

    for i, unit in enumerate(ordered):
        if absorbed[i]:
            continue
        for j in range(i + 1, len(ordered)):
            if absorbed[j]:
                continue
            other = ordered[j]
            if shares_all_but_one(unit.player_ids, other.player_ids):
                unit.absorb(other)
                absorbed[j] = True
        merged[unit.player_ids] = unit

    logger.debug(f"Merged {len(ordered)} exact groups into {len(merged)} units")
    return merged


@dataclass(frozen=True)
class UnitStats:
    """Immutable per-unit aggregate."""

    unit_type: UnitType
    player_ids: UnitKey
    games_appeared: int
    shots_for: int = 0
    goals_for: int = 0
    high_danger_for: int = 0
    xg_for: float = 0.0
    shots_against: int = 0
    goals_against: int = 0
    high_danger_against: int = 0
    xg_against: float = 0.0

    @property
    def unit_id(self) -> str:
        return "-".join(str(p) for p in self.player_ids)

    @property
    def shot_share(self) -> float:
        """Shots-for share, 0.5 when no shots were observed."""
        total = self.shots_for + self.shots_against
        return self.shots_for / total if total > 0 else 0.5

    @property
    def xg_share(self) -> float:
        """Expected-goals-for share, 0.5 when there is no xG either way."""
        total = self.xg_for + self.xg_against
        return self.xg_for / total if total > 0 else 0.5

    @property
    def shot_differential(self) -> int:
        return self.shots_for - self.shots_against

    @property
    def goal_differential(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def shooting_percentage(self) -> float:
        return self.goals_for / self.shots_for * 100 if self.shots_for > 0 else 0.0

    @property
    def save_percentage(self) -> float:
        if self.shots_against == 0:
            return 0.0
        return (self.shots_against - self.goals_against) / self.shots_against * 100


class UnitStatsBuilder:
    """Turns raw unit accumulators into immutable UnitStats."""

    def __init__(
        self,
        xg_model: ExpectedGoalsModel | None = None,
        rink: RinkSettings | None = None,
    ) -> None:
        self.rink = rink or RinkSettings()
        self.xg_model = xg_model or ExpectedGoalsModel(goal_line_x=self.rink.goal_line_x)

    def _is_high_danger(self, shot: Shot) -> bool:
        if not shot.has_location:
            return False
        return is_high_danger_location(
            shot.x_coord,
            shot.y_coord,
            self.rink.goal_line_x,
            max_distance=self.rink.high_danger_distance,
            max_lateral=self.rink.high_danger_lateral,
        )

    def _side(self, shots: list[Shot]) -> tuple[int, int, int, float]:
        goals = sum(1 for shot in shots if shot.is_goal)
        high_danger = sum(1 for shot in shots if self._is_high_danger(shot))
        xg = sum(self.xg_model.shot_xg(shot) for shot in shots)
        return len(shots), goals, high_danger, xg

    def build(self, raw: RawUnit, unit_type: UnitType) -> UnitStats:
        """Aggregate one raw unit."""
        shots_for, goals_for, hd_for, xg_for = self._side(raw.shots_for)
        shots_against, goals_against, hd_against, xg_against = self._side(raw.shots_against)
        return UnitStats(
            unit_type=unit_type,
            player_ids=raw.player_ids,
            games_appeared=len(raw.game_ids),
            shots_for=shots_for,
            goals_for=goals_for,
            high_danger_for=hd_for,
            xg_for=xg_for,
            shots_against=shots_against,
            goals_against=goals_against,
            high_danger_against=hd_against,
            xg_against=xg_against,
        )

    def build_reported(
        self,
        units: Mapping[UnitKey, RawUnit],
        unit_type: UnitType,
        min_shots: int,
        min_games: int,
        shot_count: Callable[[RawUnit], int] = lambda raw: raw.volume,
    ) -> tuple[list[UnitStats], list[RawUnit]]:
        """
        Split merged units into reported stats and sub-threshold residuals.

        Args:
            units: Merged units
            unit_type: Type to stamp on the stats
            min_shots: Minimum shot count (as measured by shot_count)
            min_games: Minimum distinct games appeared in
            shot_count: Which shots count toward the threshold

        Returns:
            (reported stats, residual raw units) in input order
        """
        reported = []
        residuals = []
        for raw in units.values():
            if shot_count(raw) >= min_shots and len(raw.game_ids) >= min_games:
                reported.append(self.build(raw, unit_type))
            else:
                residuals.append(raw)
        return reported, residuals

    def redistribute_residuals(
        self,
        reported: list[UnitStats],
        residuals: Iterable[RawUnit],
    ) -> list[UnitStats]:
        """
        Fold residual shots-against into the best-matching reported unit.

        Each residual with any shots goes to the reported unit sharing the
        most players with it (at least one); the earliest reported unit wins
        ties. Only the against side is carried over.
        """
        result = list(reported)
        folded = 0

        for raw in residuals:
            if raw.volume == 0:
                continue

            best_index = None
            best_overlap = 0
            members = set(raw.player_ids)
            for index, unit in enumerate(result):
                overlap = len(members & set(unit.player_ids))
                if overlap > best_overlap:
                    best_overlap = overlap
                    best_index = index

            if best_index is None:
                continue

            shots_against, goals_against, hd_against, xg_against = self._side(raw.shots_against)
            target = result[best_index]
            result[best_index] = replace(
                target,
                shots_against=target.shots_against + shots_against,
                goals_against=target.goals_against + goals_against,
                high_danger_against=target.high_danger_against + hd_against,
                xg_against=target.xg_against + xg_against,
            )
            folded += 1

        if folded:
            logger.debug(f"Folded {folded} residual units into reported units")
        return result
