"""
Special Teams Processor

Identifies power-play and penalty-kill units from on-ice skaters and
aggregates raw shot, goal, and xG results per unit. All numbers are
observed counts; no ice time is estimated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from loguru import logger

from rink_analytics.analytics.expected_goals import ExpectedGoalsModel
from rink_analytics.analytics.units import (
    RawUnit,
    UnitGrouper,
    UnitKey,
    UnitStats,
    UnitStatsBuilder,
    UnitType,
    merge_overlapping_units,
)
from rink_analytics.config import RinkSettings, UnitSettings
from rink_analytics.models.events import Game, Strength
from rink_analytics.timing import parse_clock

# Shift sampling step inside a special teams window
DEPLOYMENT_SAMPLE_SECONDS = 15

# Length given to a window that does not close within its own period
OPEN_WINDOW_SECONDS = 120

WINDOW_TYPES = {
    Strength.POWER_PLAY: UnitType.POWER_PLAY,
    Strength.SHORTHANDED: UnitType.PENALTY_KILL,
}


@dataclass(frozen=True)
class SpecialTeamsSummary:
    """Team-level special teams totals."""

    shots: int = 0
    goals: int = 0

    @property
    def shooting_percentage(self) -> float:
        return self.goals / self.shots * 100 if self.shots > 0 else 0.0

    @property
    def save_percentage(self) -> float:
        return (self.shots - self.goals) / self.shots * 100 if self.shots > 0 else 0.0


@dataclass(frozen=True)
class SpecialTeamsAnalysis:
    """Power-play and penalty-kill units for one team."""

    team_id: int
    games_analyzed: int
    pp_units: tuple[UnitStats, ...]
    pk_units: tuple[UnitStats, ...]
    pp_summary: SpecialTeamsSummary  # Our shots on the power play
    pk_summary: SpecialTeamsSummary  # Opponent shots while shorthanded


def known_goalie_ids(games: Iterable[Game]) -> set[int]:
    """Every goaltender seen in net for any shot in the batch."""
    goalies: set[int] = set()
    for game in games:
        goalies |= game.goalie_ids()
    return goalies


@dataclass(frozen=True)
class SpecialTeamsWindow:
    """A stretch of one period a team spent on the power play or penalty kill."""

    unit_type: UnitType
    period: int
    start_seconds: int
    end_seconds: int


def special_teams_windows(game: Game, team_id: int) -> list[SpecialTeamsWindow]:
    """
    Detect power-play and penalty-kill windows from strength transitions.

    A window opens at the first event in a PP or PK state and closes at the
    next event whose state differs. Events without a known strength are
    ignored. A window still open at the end of the stream, or closed by an
    event in a later period, runs for OPEN_WINDOW_SECONDS.

    Args:
        game: Game whose event stream carries home-bench strength states
        team_id: Team whose perspective defines PP versus PK

    Returns:
        Windows in game order
    """
    windows = []
    current: tuple[UnitType, int, int] | None = None  # (type, period, start)

    for event in game.events:
        strength = event.strength_for_team(team_id, game.home_team_id)
        if strength is None:
            continue

        state = WINDOW_TYPES.get(strength)
        if state == (current[0] if current is not None else None):
            continue

        seconds = parse_clock(event.clock)
        if current is not None:
            unit_type, period, start = current
            if event.period == period and seconds > start:
                end = seconds
            else:
                end = start + OPEN_WINDOW_SECONDS
            windows.append(SpecialTeamsWindow(unit_type, period, start, end))

        current = (state, event.period, seconds) if state is not None else None

    if current is not None:
        unit_type, period, start = current
        windows.append(SpecialTeamsWindow(unit_type, period, start, start + OPEN_WINDOW_SECONDS))

    return windows


class SpecialTeamsProcessor:
    """
    Processor for power-play and penalty-kill unit analysis.

    Inputs:
        - Games whose shots carry on-ice skater sets and strength states
    Outputs:
        - SpecialTeamsAnalysis with ranked PP and PK units
    """

    def __init__(
        self,
        settings: UnitSettings | None = None,
        xg_model: ExpectedGoalsModel | None = None,
        rink: RinkSettings | None = None,
    ) -> None:
        self.settings = settings or UnitSettings()
        self.rink = rink or RinkSettings()
        self.builder = UnitStatsBuilder(xg_model=xg_model, rink=self.rink)

    def analyze(self, games: Sequence[Game], team_id: int) -> SpecialTeamsAnalysis:
        """
        Analyze special teams units for a team over a batch of games.

        Args:
            games: Games to analyze
            team_id: Team ID

        Returns:
            SpecialTeamsAnalysis
        """
        goalies = known_goalie_ids(games)
        pp_grouper = UnitGrouper(goalie_ids=goalies)
        pk_grouper = UnitGrouper(goalie_ids=goalies)

        pp_shots = pp_goals = 0
        pk_shots = pk_goals = 0

        for game in games:
            for shot in game.shots:
                if shot.team_id is None:
                    continue

                strength = shot.strength_for(team_id)
                is_for = shot.team_id == team_id

                if strength == Strength.POWER_PLAY:
                    if is_for:
                        pp_shots += 1
                        pp_goals += int(shot.is_goal)
                    pp_grouper.add(shot, game.game_id, shot.on_ice_for(team_id), is_for)
                elif strength == Strength.SHORTHANDED:
                    if not is_for:
                        pk_shots += 1
                        pk_goals += int(shot.is_goal)
                    pk_grouper.add(shot, game.game_id, shot.on_ice_for(team_id), is_for)

        merged_pp = merge_overlapping_units(pp_grouper.groups)
        merged_pk = merge_overlapping_units(pk_grouper.groups)
        credited = self.credit_deployments(
            games,
            team_id,
            goalies,
            {UnitType.POWER_PLAY: merged_pp, UnitType.PENALTY_KILL: merged_pk},
        )
        if credited:
            logger.debug(
                f"Credited {credited} shot-less special teams deployments for team {team_id}"
            )

        pp_units = self._power_play_units(merged_pp)
        pk_units = self._penalty_kill_units(merged_pk)

        logger.info(
            f"Special teams for team {team_id}: {len(pp_units)} PP units, "
            f"{len(pk_units)} PK units from {len(games)} games"
        )

        return SpecialTeamsAnalysis(
            team_id=team_id,
            games_analyzed=len(games),
            pp_units=tuple(pp_units),
            pk_units=tuple(pk_units),
            pp_summary=SpecialTeamsSummary(shots=pp_shots, goals=pp_goals),
            pk_summary=SpecialTeamsSummary(shots=pk_shots, goals=pk_goals),
        )

    def credit_deployments(
        self,
        games: Iterable[Game],
        team_id: int,
        goalie_ids: Iterable[int],
        units_by_type: dict[UnitType, dict[UnitKey, RawUnit]],
    ) -> int:
        """
        Credit units with games they played on special teams without a shot.

        Shift charts are sampled every DEPLOYMENT_SAMPLE_SECONDS inside each
        power-play and penalty-kill window. A unit is credited with the game
        when at least all but one of its players (and at least two) are on
        ice at a sample. Units are updated in place.

        Returns:
            Number of (unit, game) credits added
        """
        goalies = frozenset(goalie_ids)
        credited = 0

        for game in games:
            if not game.has_shifts:
                continue
            if all(
                game.game_id in raw.game_ids
                for units in units_by_type.values()
                for raw in units.values()
            ):
                continue

            team_shifts = [shift for shift in game.shifts if shift.team_id == team_id]

            for window in special_teams_windows(game, team_id):
                pending = [
                    raw
                    for raw in units_by_type.get(window.unit_type, {}).values()
                    if game.game_id not in raw.game_ids
                ]
                if not pending:
                    continue

                shifts = [
                    shift
                    for shift in team_shifts
                    if shift.period == window.period
                    and shift.start_seconds < window.end_seconds
                    and shift.end_seconds > window.start_seconds
                ]

                for seconds in range(
                    window.start_seconds, window.end_seconds + 1, DEPLOYMENT_SAMPLE_SECONDS
                ):
                    if not pending:
                        break
                    skaters = {
                        shift.player_id
                        for shift in shifts
                        if shift.contains(window.period, seconds)
                    } - goalies
                    if len(skaters) < 2:
                        continue

                    for raw in list(pending):
                        overlap = len(skaters.intersection(raw.player_ids))
                        if overlap >= 2 and overlap >= len(raw.player_ids) - 1:
                            raw.game_ids.add(game.game_id)
                            pending.remove(raw)
                            credited += 1

        return credited

    def _power_play_units(self, merged: dict[UnitKey, RawUnit]) -> list[UnitStats]:
        reported, _ = self.builder.build_reported(
            merged,
            UnitType.POWER_PLAY,
            min_shots=self.settings.special_teams_min_shots,
            min_games=self.settings.special_teams_min_games,
            shot_count=lambda raw: len(raw.shots_for),
        )
        logger.debug(f"Grouped power-play shots into {len(merged)} units, {len(reported)} reported")

        reported.sort(key=lambda u: (-u.xg_for, -u.goals_for, u.player_ids))
        return reported[: self.settings.max_special_teams_units]

    def _penalty_kill_units(self, merged: dict[UnitKey, RawUnit]) -> list[UnitStats]:
        reported, residuals = self.builder.build_reported(
            merged,
            UnitType.PENALTY_KILL,
            min_shots=self.settings.special_teams_min_shots,
            min_games=self.settings.special_teams_min_games,
            shot_count=lambda raw: len(raw.shots_against),
        )
        logger.debug(f"Grouped penalty-kill shots into {len(merged)} units, {len(reported)} reported")

        reported = self.builder.redistribute_residuals(reported, residuals)
        reported.sort(key=lambda u: (u.goals_against, -u.save_percentage, u.player_ids))
        return reported[: self.settings.max_special_teams_units]
