"""
Line Combination Processor

Identifies forward trios and defense pairs deployed together at 5-on-5 and
aggregates shot and xG results for each combination.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from loguru import logger

from rink_analytics.analytics.expected_goals import ExpectedGoalsModel
from rink_analytics.analytics.units import (
    UnitGrouper,
    UnitStats,
    UnitStatsBuilder,
    UnitType,
    merge_overlapping_units,
)
from rink_analytics.config import RinkSettings, UnitSettings
from rink_analytics.models.events import Game, Strength

FORWARDS_PER_LINE = 3
DEFENSEMEN_PER_PAIR = 2


@dataclass(frozen=True)
class LineCombinationAnalysis:
    """Forward lines and defense pairs for one team."""

    team_id: int
    games_analyzed: int
    forward_lines: tuple[UnitStats, ...]
    defense_pairs: tuple[UnitStats, ...]


class LineCombinationProcessor:
    """
    Processor for 5-on-5 line combination analysis.

    A shot contributes to a forward trio only when exactly three of the
    team's forwards are on ice, and to a defense pair only when exactly two
    defensemen are.
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

    def analyze(
        self,
        games: Sequence[Game],
        team_id: int,
        forward_ids: Iterable[int],
        defense_ids: Iterable[int],
    ) -> LineCombinationAnalysis:
        """
        Analyze line combinations for a team.

        Args:
            games: Games to analyze
            team_id: Team ID
            forward_ids: Roster forwards
            defense_ids: Roster defensemen

        Returns:
            LineCombinationAnalysis sorted by shot differential
        """
        forwards = frozenset(forward_ids)
        defense = frozenset(defense_ids)
        trio_grouper = UnitGrouper(min_skaters=FORWARDS_PER_LINE)
        pair_grouper = UnitGrouper(min_skaters=DEFENSEMEN_PER_PAIR)

        for game in games:
            for shot in game.shots:
                if shot.team_id is None:
                    continue
                if shot.strength_for(team_id) != Strength.EVEN:
                    continue

                on_ice = shot.on_ice_for(team_id)
                if not on_ice:
                    continue

                is_for = shot.team_id == team_id
                forwards_on_ice = on_ice & forwards
                defense_on_ice = on_ice & defense

                if len(forwards_on_ice) == FORWARDS_PER_LINE:
                    trio_grouper.add(shot, game.game_id, forwards_on_ice, is_for)
                if len(defense_on_ice) == DEFENSEMEN_PER_PAIR:
                    pair_grouper.add(shot, game.game_id, defense_on_ice, is_for)

        forward_lines = self._build(trio_grouper, UnitType.FORWARD_LINE)
        defense_pairs = self._build(pair_grouper, UnitType.DEFENSE_PAIR)

        logger.info(
            f"Line combinations for team {team_id}: {len(forward_lines)} forward lines, "
            f"{len(defense_pairs)} defense pairs from {len(games)} games"
        )

        return LineCombinationAnalysis(
            team_id=team_id,
            games_analyzed=len(games),
            forward_lines=tuple(forward_lines),
            defense_pairs=tuple(defense_pairs),
        )

    def _build(self, grouper: UnitGrouper, unit_type: UnitType) -> list[UnitStats]:
        merged = merge_overlapping_units(grouper.groups)
        reported, _ = self.builder.build_reported(
            merged,
            unit_type,
            min_shots=self.settings.lines_min_shots,
            min_games=self.settings.lines_min_games,
        )
        reported.sort(key=lambda u: (-u.shot_differential, -u.xg_share, u.player_ids))
        return reported[: self.settings.max_line_units]
