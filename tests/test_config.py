"""
Tests for Analytics Configuration

Validates defaults, YAML loading, and partial overrides.
"""

from pathlib import Path

import pytest

from rink_analytics.config import AnalyticsSettings, load_settings

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config" / "analytics.yaml"


class TestLoadSettings:
    """Tests for load_settings."""

    def test_missing_file_returns_defaults(self, tmp_path):
        """Test fallback to defaults when the file does not exist."""
        settings = load_settings(tmp_path / "missing.yaml")

        assert settings == AnalyticsSettings()
        assert settings.momentum.window_seconds == 120
        assert settings.rink.goal_line_x == 89.0

    def test_empty_file_returns_defaults(self, tmp_path):
        """Test that an empty YAML file is treated as no overrides."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_settings(path) == AnalyticsSettings()

    def test_partial_override(self, tmp_path):
        """Test that only named keys change."""
        path = tmp_path / "analytics.yaml"
        path.write_text("momentum:\n  window_seconds: 90\nunits:\n  lines_min_games: 2\n")

        settings = load_settings(path)

        assert settings.momentum.window_seconds == 90
        assert settings.momentum.swing_threshold == 0.4
        assert settings.units.lines_min_games == 2
        assert settings.units.lines_min_shots == 10
        assert settings.chemistry == AnalyticsSettings().chemistry

    def test_shipped_config_matches_defaults(self):
        """Test that the repository config documents the defaults."""
        assert load_settings(REPO_CONFIG) == AnalyticsSettings()


class TestDefaults:
    """Tests for documented default values."""

    def test_chemistry_weights(self):
        """Test the chemistry index weights sum to one."""
        chemistry = AnalyticsSettings().chemistry
        total = chemistry.offensive_weight + chemistry.support_weight + chemistry.defensive_weight
        assert total == pytest.approx(1.0)

    def test_unit_thresholds(self):
        """Test the reporting thresholds."""
        units = AnalyticsSettings().units
        assert units.special_teams_min_shots == 3
        assert units.lines_min_shots == 10
        assert units.lines_min_games == 3
