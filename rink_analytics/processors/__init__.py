"""
Data Processors Module

This module contains processors that turn games into team-level analytics.

Processors:
    - PlayByPlayParser: Feed play and shift records to models
    - SpecialTeamsProcessor: Power-play and penalty-kill unit analysis
    - LineCombinationProcessor: 5-on-5 forward trios and defense pairs
    - TeamAnalyticsProcessor: All engines for one team in one report
"""

from rink_analytics.processors.feed_parser import PlayByPlayParser
from rink_analytics.processors.special_teams import (
    SpecialTeamsAnalysis,
    SpecialTeamsProcessor,
    SpecialTeamsSummary,
)
from rink_analytics.processors.line_combinations import (
    LineCombinationAnalysis,
    LineCombinationProcessor,
)
from rink_analytics.processors.team_analytics import (
    TeamAnalyticsProcessor,
    TeamAnalyticsReport,
    TeamExpectedGoals,
)

__all__ = [
    "PlayByPlayParser",
    "SpecialTeamsAnalysis",
    "SpecialTeamsProcessor",
    "SpecialTeamsSummary",
    "LineCombinationAnalysis",
    "LineCombinationProcessor",
    "TeamAnalyticsProcessor",
    "TeamAnalyticsReport",
    "TeamExpectedGoals",
]
