"""
Analytics Module

This module contains the event-stream analytics engines.

Components:
    - Geometry: Shot distance, angle, and rink zone extraction
    - ExpectedGoalsModel: Per-shot scoring probability and danger tier
    - MomentumEngine: Rolling shot-pressure samples, swings, and sustained runs
    - Units: Exact on-ice grouping and fuzzy merge of player units
    - ChemistryAnalyzer: Pairwise chemistry, line evaluation, and suggestions
"""

from rink_analytics.analytics.geometry import (
    RinkZones,
    ShotGeometry,
    compute_shot_geometry,
    is_high_danger_location,
    shot_angle,
    shot_distance,
)
from rink_analytics.analytics.expected_goals import (
    DangerTier,
    ExpectedGoalsModel,
    XGDifferential,
    XGFeatures,
    XGPrediction,
    is_high_danger_features,
    shot_quality_label,
)
from rink_analytics.analytics.momentum import (
    MomentumAnalytics,
    MomentumEngine,
    MomentumEvent,
    MomentumEventKind,
    MomentumInterval,
    MomentumSample,
    MomentumSwing,
    PeriodMomentum,
)
from rink_analytics.analytics.units import (
    RawUnit,
    UnitGrouper,
    UnitStats,
    UnitStatsBuilder,
    UnitType,
    merge_overlapping_units,
    unit_key,
)
from rink_analytics.analytics.chemistry import (
    ChemistryAnalyzer,
    ChemistryExtremes,
    ChemistryMatrix,
    ChemistryRating,
    LineChemistry,
    LineSuggestions,
    PairChemistry,
)

__all__ = [
    # Geometry
    "RinkZones",
    "ShotGeometry",
    "compute_shot_geometry",
    "is_high_danger_location",
    "shot_angle",
    "shot_distance",
    # Expected goals
    "DangerTier",
    "ExpectedGoalsModel",
    "XGDifferential",
    "XGFeatures",
    "XGPrediction",
    "is_high_danger_features",
    "shot_quality_label",
    # Momentum
    "MomentumAnalytics",
    "MomentumEngine",
    "MomentumEvent",
    "MomentumEventKind",
    "MomentumInterval",
    "MomentumSample",
    "MomentumSwing",
    "PeriodMomentum",
    # Units
    "RawUnit",
    "UnitGrouper",
    "UnitStats",
    "UnitStatsBuilder",
    "UnitType",
    "merge_overlapping_units",
    "unit_key",
    # Chemistry
    "ChemistryAnalyzer",
    "ChemistryExtremes",
    "ChemistryMatrix",
    "ChemistryRating",
    "LineChemistry",
    "LineSuggestions",
    "PairChemistry",
]
