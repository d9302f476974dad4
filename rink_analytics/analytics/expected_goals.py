"""
Expected Goals Model

Logistic-regression scoring model converting shot features into a bounded
scoring probability and a coarse danger tier.

Situational adjustments (shot type, strength state) are multipliers applied
as additive log-odds. Rebounds get a fixed log-odds bonus worth roughly
double the scoring odds. Rush shots carry no bonus: once distance and angle
are controlled for, rush attempts are not converted any more efficiently.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from rink_analytics.analytics.geometry import GOAL_LINE_X, compute_shot_geometry
from rink_analytics.models.events import Shot, ShotType, Strength

XG_FLOOR = 0.005
XG_CEILING = 0.60
MAX_DISTANCE = 200.0
MAX_ANGLE = 90.0

HIGH_TIER_THRESHOLD = 0.15
MEDIUM_TIER_THRESHOLD = 0.08


class DangerTier(str, Enum):
    """Coarse scoring-chance tier."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class XGFeatures:
    """Inputs to the expected goals model."""

    distance: float
    angle: float
    shot_type: ShotType = ShotType.WRIST
    strength: Strength = Strength.EVEN
    is_rebound: bool = False
    is_rush: bool = False


@dataclass(frozen=True)
class XGPrediction:
    """Scored shot: probability, tier, and the features that produced them."""

    probability: float
    tier: DangerTier
    features: XGFeatures


@dataclass(frozen=True)
class XGDifferential:
    """Expected goals for vs. against."""

    xgf: float
    xga: float
    xg_diff: float
    xg_percent: float


def danger_tier(probability: float) -> DangerTier:
    """Classify a probability into a danger tier."""
    if probability >= HIGH_TIER_THRESHOLD:
        return DangerTier.HIGH
    if probability >= MEDIUM_TIER_THRESHOLD:
        return DangerTier.MEDIUM
    return DangerTier.LOW


def shot_quality_label(xg: float) -> str:
    """Human-readable quality label for an xG value."""
    if xg >= HIGH_TIER_THRESHOLD:
        return "High Danger"
    if xg >= MEDIUM_TIER_THRESHOLD:
        return "Medium Danger"
    return "Low Danger"


def is_high_danger_features(features: XGFeatures) -> bool:
    """Check if a shot's geometry puts it in the high-danger area."""
    return features.distance < 25 and features.angle < 45


class ExpectedGoalsModel:
    """
    Expected goals scorer.

    Pure and stateless after construction: identical features always give
    an identical prediction.
    """

    DEFAULT_COEFFICIENTS = {
        "intercept": -0.5,
        "distance": -0.045,
        "angle": -0.025,
        "rebound_bonus": 0.6,
        "rush_bonus": 0.0,
    }

    SHOT_TYPE_MULTIPLIERS = {
        ShotType.WRIST: 1.0,
        ShotType.SLAP: 0.85,
        ShotType.SNAP: 1.05,
        ShotType.BACKHAND: 0.80,
        ShotType.TIP: 1.35,
        ShotType.WRAP: 0.70,
    }

    STRENGTH_MULTIPLIERS = {
        Strength.EVEN: 1.0,
        Strength.POWER_PLAY: 1.10,
        Strength.SHORTHANDED: 0.90,
        Strength.FOUR_ON_FOUR: 1.05,
        Strength.THREE_ON_THREE: 1.08,
    }

    def __init__(
        self,
        coefficients: dict[str, float] | None = None,
        goal_line_x: float = GOAL_LINE_X,
    ) -> None:
        self.coefficients = {**self.DEFAULT_COEFFICIENTS, **(coefficients or {})}
        self.goal_line_x = goal_line_x

    def predict(self, features: XGFeatures) -> XGPrediction:
        """
        Score a single shot.

        Args:
            features: Shot distance, angle, type, strength, rebound and rush flags

        Returns:
            XGPrediction with probability clamped to [0.005, 0.60]
        """
        coef = self.coefficients
        distance = min(max(features.distance, 0.0), MAX_DISTANCE)
        angle = min(max(features.angle, 0.0), MAX_ANGLE)

        logit = coef["intercept"] + distance * coef["distance"] + angle * coef["angle"]

        # Unknown shot types and situations are a no-op
        logit += math.log(self.SHOT_TYPE_MULTIPLIERS.get(features.shot_type, 1.0))
        logit += math.log(self.STRENGTH_MULTIPLIERS.get(features.strength, 1.0))

        if features.is_rebound:
            logit += coef["rebound_bonus"]
        if features.is_rush:
            logit += coef["rush_bonus"]

        probability = 1.0 / (1.0 + math.exp(-logit))
        probability = min(max(probability, XG_FLOOR), XG_CEILING)

        return XGPrediction(
            probability=probability,
            tier=danger_tier(probability),
            features=features,
        )

    def predict_batch(self, shots: Iterable[XGFeatures]) -> list[XGPrediction]:
        """Score a batch of shots in order."""
        return [self.predict(features) for features in shots]

    def total_xg(self, shots: Iterable[XGFeatures]) -> float:
        """Unclamped sum of per-shot xG (0.0 for no shots)."""
        return sum(prediction.probability for prediction in self.predict_batch(shots))

    def xg_differential(
        self,
        shots_for: Sequence[XGFeatures],
        shots_against: Sequence[XGFeatures],
    ) -> XGDifferential:
        """
        Compare expected goals for and against.

        xG% is 50 when neither side has any expected goals.
        """
        xgf = self.total_xg(shots_for)
        xga = self.total_xg(shots_against)
        total = xgf + xga
        xg_percent = xgf / total * 100 if total > 0 else 50.0

        return XGDifferential(
            xgf=round(xgf, 2),
            xga=round(xga, 2),
            xg_diff=round(xgf - xga, 2),
            xg_percent=round(xg_percent, 1),
        )

    def goals_above_expected(self, goals: int, shots: Iterable[XGFeatures]) -> float:
        """Actual goals minus summed expectation (positive means finishing above expectation)."""
        return round(goals - self.total_xg(shots), 2)

    def features_for_shot(self, shot: Shot) -> XGFeatures | None:
        """Extract model features from a shot, or None without coordinates."""
        if not shot.has_location:
            return None

        geometry = compute_shot_geometry(shot.x_coord, shot.y_coord, self.goal_line_x)
        return XGFeatures(
            distance=geometry.distance,
            angle=geometry.angle,
            shot_type=shot.shot_type,
            strength=shot.strength,
            is_rebound=shot.is_rebound,
            is_rush=shot.is_rush,
        )

    def score_shot(self, shot: Shot) -> XGPrediction | None:
        """Score a Shot record directly, or None if it has no coordinates."""
        features = self.features_for_shot(shot)
        if features is None:
            return None
        return self.predict(features)

    def shot_xg(self, shot: Shot) -> float:
        """xG value for a shot; 0.0 when the shot cannot be located."""
        prediction = self.score_shot(shot)
        return prediction.probability if prediction is not None else 0.0
