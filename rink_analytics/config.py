"""
Analytics Configuration

Settings models for every engine, with documented defaults. Engines take
these objects explicitly; nothing here reads environment variables.
"""

from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("config/analytics.yaml")


class RinkSettings(BaseModel):
    """Playing surface and game clock constants."""

    goal_line_x: float = 89.0
    period_length_seconds: int = Field(default=1200, gt=0)
    regulation_periods: int = Field(default=3, ge=1)
    high_danger_distance: float = 25.0
    high_danger_lateral: float = 20.0


class MomentumSettings(BaseModel):
    """Rolling momentum window and detection thresholds."""

    window_seconds: int = Field(default=120, gt=0)
    sample_interval_seconds: int = Field(default=30, gt=0)
    swing_threshold: float = 0.4
    sustained_threshold: float = 0.3
    sustained_max_gap_seconds: int = 120
    high_danger_xg: float = 0.15
    denominator_floor: int = Field(default=5, ge=1)


class UnitSettings(BaseModel):
    """Minimum-volume cutoffs for inferred units."""

    special_teams_min_shots: int = 3
    special_teams_min_games: int = 1
    lines_min_shots: int = 10
    lines_min_games: int = 3
    max_special_teams_units: int = 8
    max_line_units: int = 12


class ChemistrySettings(BaseModel):
    """Pairwise chemistry thresholds and index weights."""

    min_overlap_seconds: int = 5
    min_shifts_together: int = 5
    offensive_weight: float = 0.4
    support_weight: float = 0.3
    defensive_weight: float = 0.3
    offensive_scale: float = 10.0
    defensive_penalty: float = 15.0
    extremes_min_shifts: int = 10
    yield_every_games: int = Field(default=5, ge=1)


class AnalyticsSettings(BaseModel):
    """All engine settings grouped together."""

    rink: RinkSettings = Field(default_factory=RinkSettings)
    momentum: MomentumSettings = Field(default_factory=MomentumSettings)
    units: UnitSettings = Field(default_factory=UnitSettings)
    chemistry: ChemistrySettings = Field(default_factory=ChemistrySettings)


def _load_config(config_path: str | Path | None) -> dict[str, Any]:
    """Load raw settings from a YAML file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Analytics config not found at {config_path}, using defaults")
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def load_settings(path: str | Path | None = None) -> AnalyticsSettings:
    """
    Load analytics settings from YAML.

    Sections and keys absent from the file keep their defaults.

    Args:
        path: Path to the YAML file (defaults to config/analytics.yaml)

    Returns:
        Validated AnalyticsSettings
    """
    raw = _load_config(path)
    settings = AnalyticsSettings.model_validate(raw)
    logger.debug(f"Loaded analytics settings: {sorted(raw)} overridden")
    return settings
