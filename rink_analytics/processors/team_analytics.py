"""
Team Analytics Processor

Runs every engine for one team over a batch of games and bundles the
results into a single report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from loguru import logger

from rink_analytics.analytics.chemistry import ChemistryAnalyzer, ChemistryMatrix
from rink_analytics.analytics.expected_goals import ExpectedGoalsModel
from rink_analytics.analytics.momentum import MomentumAnalytics, MomentumEngine
from rink_analytics.config import AnalyticsSettings
from rink_analytics.models.events import Game
from rink_analytics.processors.line_combinations import (
    LineCombinationAnalysis,
    LineCombinationProcessor,
)
from rink_analytics.processors.special_teams import SpecialTeamsAnalysis, SpecialTeamsProcessor


@dataclass(frozen=True)
class TeamExpectedGoals:
    """Expected goals summary for a team."""

    team_id: int
    xg_for: float = 0.0
    xg_against: float = 0.0
    goals_for: int = 0
    goals_against: int = 0
    shots_for: int = 0
    shots_against: int = 0

    @property
    def xg_percentage(self) -> float:
        """Expected goals share, 50 when neither side has any xG."""
        total = self.xg_for + self.xg_against
        return self.xg_for / total * 100 if total > 0 else 50.0

    @property
    def goals_above_expected(self) -> float:
        """Goals scored above expected (positive = finishing well)."""
        return self.goals_for - self.xg_for

    @property
    def goals_saved_above_expected(self) -> float:
        """Goals prevented relative to expectation (positive = strong goaltending)."""
        return self.xg_against - self.goals_against


@dataclass(frozen=True)
class TeamAnalyticsReport:
    """All engine outputs for one team."""

    team_id: int
    games_analyzed: int
    expected_goals: TeamExpectedGoals
    special_teams: SpecialTeamsAnalysis
    momentum: dict[int, MomentumAnalytics] = field(default_factory=dict)
    lines: LineCombinationAnalysis | None = None
    chemistry: ChemistryMatrix | None = None


class TeamAnalyticsProcessor:
    """
    Pipeline bundling the analytics engines for one team.

    Workflow:
    1. Sum expected goals for and against
    2. Run per-game momentum
    3. Identify special teams units
    4. With a roster, identify line combinations and build chemistry
    """

    def __init__(
        self,
        settings: AnalyticsSettings | None = None,
        xg_model: ExpectedGoalsModel | None = None,
    ) -> None:
        self.settings = settings or AnalyticsSettings()
        self.xg_model = xg_model or ExpectedGoalsModel(goal_line_x=self.settings.rink.goal_line_x)

        self.momentum_engine = MomentumEngine(
            self.settings.momentum, xg_model=self.xg_model, rink=self.settings.rink
        )
        self.special_teams = SpecialTeamsProcessor(
            self.settings.units, xg_model=self.xg_model, rink=self.settings.rink
        )
        self.line_combinations = LineCombinationProcessor(
            self.settings.units, xg_model=self.xg_model, rink=self.settings.rink
        )
        self.chemistry = ChemistryAnalyzer(self.settings.chemistry, rink=self.settings.rink)

    def expected_goals(self, games: Iterable[Game], team_id: int) -> TeamExpectedGoals:
        """Sum xG and goals for and against across games."""
        xg_for = xg_against = 0.0
        goals_for = goals_against = 0
        shots_for = shots_against = 0

        for game in games:
            for shot in game.shots:
                if shot.team_id is None:
                    continue
                xg = self.xg_model.shot_xg(shot)
                if shot.team_id == team_id:
                    xg_for += xg
                    goals_for += int(shot.is_goal)
                    shots_for += 1
                else:
                    xg_against += xg
                    goals_against += int(shot.is_goal)
                    shots_against += 1

        return TeamExpectedGoals(
            team_id=team_id,
            xg_for=xg_for,
            xg_against=xg_against,
            goals_for=goals_for,
            goals_against=goals_against,
            shots_for=shots_for,
            shots_against=shots_against,
        )

    def analyze(
        self,
        games: Sequence[Game],
        team_id: int,
        forward_ids: Iterable[int] = (),
        defense_ids: Iterable[int] = (),
        on_yield: Callable[[], None] | None = None,
    ) -> TeamAnalyticsReport:
        """
        Run the full analysis for a team.

        Args:
            games: Games the team played
            team_id: Team ID
            forward_ids: Roster forwards (lines and chemistry are skipped without a roster)
            defense_ids: Roster defensemen
            on_yield: Optional callback invoked between games during long loops

        Returns:
            TeamAnalyticsReport
        """
        forwards = sorted(set(forward_ids))
        defense = sorted(set(defense_ids))
        yield_every = self.settings.chemistry.yield_every_games

        momentum = {}
        for index, game in enumerate(games):
            if on_yield is not None and index > 0 and index % yield_every == 0:
                on_yield()
            momentum[game.game_id] = self.momentum_engine.analyze(
                game.events, game.home_team_id, game.away_team_id
            )

        lines = None
        chemistry = None
        if forwards or defense:
            lines = self.line_combinations.analyze(games, team_id, forwards, defense)
            chemistry = self.chemistry.build_matrix(
                games, team_id, forwards + defense, on_yield=on_yield
            )

        report = TeamAnalyticsReport(
            team_id=team_id,
            games_analyzed=len(games),
            expected_goals=self.expected_goals(games, team_id),
            special_teams=self.special_teams.analyze(games, team_id),
            momentum=momentum,
            lines=lines,
            chemistry=chemistry,
        )

        logger.info(f"Completed team analytics for team {team_id} over {len(games)} games")
        return report
