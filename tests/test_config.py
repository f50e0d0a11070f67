"""
Unit tests for labeling configuration.

Tests cover:
- Defaults and validation of LabelingConfig and its sub-configs
- Environment variable loading
- Custom secondary numbering starts
- Reserved serial normalization
- User grid serial overrides
"""

import pytest
import os
from unittest.mock import patch

from beammark.core.config import (
    LabelingConfig,
    SecondaryNumberingConfig,
    SymmetryConfig,
    UserGridConfig,
    normalize_reserved_serials,
    parse_serial_input,
)
from beammark.core.data_models import GridAxis, GridLine


class TestLabelingConfigDefaults:
    """Tests for default values and validation."""

    def test_defaults(self):
        """Test the default configuration."""
        config = LabelingConfig()

        assert config.tolerance == 0.1
        assert config.position_tolerance == 0.01
        assert config.angle_tolerance == 2.0
        assert config.mirror_mode is False
        assert config.symmetry_axis is None
        assert config.symmetry.pass_score == 0.7
        assert config.secondary.prefix == "b"
        assert config.reserved_serials == frozenset()

    @pytest.mark.parametrize("name", ["tolerance", "position_tolerance", "geometric_tolerance", "angle_tolerance"])
    def test_non_positive_tolerance_rejected(self, name):
        with pytest.raises(ValueError, match=name):
            LabelingConfig(**{name: 0})

    def test_symmetry_validation(self):
        with pytest.raises(ValueError):
            SymmetryConfig(matching_tolerance=-1)
        with pytest.raises(ValueError):
            SymmetryConfig(pass_score=0)
        with pytest.raises(ValueError):
            SymmetryConfig(pass_score=1.5)
        assert SymmetryConfig(pass_score=1.0).pass_score == 1.0

    def test_secondary_validation(self):
        with pytest.raises(ValueError):
            SecondaryNumberingConfig(prefix="")
        with pytest.raises(ValueError):
            SecondaryNumberingConfig(horizontal_start=0)
        with pytest.raises(ValueError):
            SecondaryNumberingConfig(vertical_start=0)


class TestSecondaryStarts:
    """Tests for custom numbering starts."""

    def test_starts_ignored_without_flag(self):
        config = SecondaryNumberingConfig(horizontal_start=5, vertical_start=40)
        assert config.effective_horizontal_start == 1
        assert config.effective_vertical_start is None

    def test_starts_applied_with_flag(self):
        config = SecondaryNumberingConfig(use_custom_start=True, horizontal_start=5, vertical_start=40)
        assert config.effective_horizontal_start == 5
        assert config.effective_vertical_start == 40


class TestReservedSerials:
    """Tests for reserved serial tokens."""

    def test_prefix_lower_cased(self):
        assert normalize_reserved_serials(["B:1", "G: 2"]) == frozenset({"b:1", "g:2"})

    def test_config_normalizes(self):
        config = LabelingConfig(reserved_serials=frozenset({"B:3"}))
        assert config.reserved_serials == frozenset({"b:3"})

    def test_with_reserved_serials_copies(self):
        config = LabelingConfig(mirror_mode=True)
        updated = config.with_reserved_serials({"G:1"})

        assert updated is not config
        assert updated.reserved_serials == frozenset({"g:1"})
        assert updated.mirror_mode is True
        assert config.reserved_serials == frozenset()


class TestLabelingConfigFromEnv:
    """Tests for loading configuration from environment variables."""

    def test_from_env_overrides(self):
        env = {
            "BEAMMARK_TOLERANCE": "0.2",
            "BEAMMARK_SYMMETRY_PASS_SCORE": "0.9",
            "BEAMMARK_SECONDARY_PREFIX": "sb",
            "BEAMMARK_MIRROR_MODE": "true",
        }
        with patch.dict(os.environ, env):
            config = LabelingConfig.from_env()

        assert config.tolerance == 0.2
        assert config.symmetry.pass_score == 0.9
        assert config.secondary.prefix == "sb"
        assert config.mirror_mode is True

    def test_from_env_blank_uses_default(self):
        with patch.dict(os.environ, {"BEAMMARK_TOLERANCE": "", "BEAMMARK_MIRROR_MODE": "no"}):
            config = LabelingConfig.from_env()

        assert config.tolerance == 0.1
        assert config.mirror_mode is False

    def test_from_env_invalid_number(self):
        with patch.dict(os.environ, {"BEAMMARK_MATCHING_TOLERANCE": "wide"}):
            with pytest.raises(ValueError, match="BEAMMARK_MATCHING_TOLERANCE"):
                LabelingConfig.from_env()


class TestUserGridConfig:
    """Tests for per-grid serial overrides."""

    def test_parse_serial_input(self):
        assert parse_serial_input(None) is None
        assert parse_serial_input("  ") is None
        assert parse_serial_input("-") is None
        assert parse_serial_input("SKIP") is None
        assert parse_serial_input("12") == 12
        assert parse_serial_input("-3") == -3
        assert parse_serial_input("A") == "A"

    def test_set_and_get(self):
        overrides = UserGridConfig()
        overrides.set(GridAxis.X, "B", 7)
        overrides.set(GridAxis.Y, "2", None)

        assert overrides.get(GridAxis.X, "B") == 7
        assert overrides.has_override(GridAxis.Y, "2")
        assert overrides.get(GridAxis.Y, "2") is None
        assert not overrides.has_override(GridAxis.X, "C")

    def test_auto_increment(self):
        grids = [GridLine(name, GridAxis.X, float(i)) for i, name in enumerate("ABCD")]
        overrides = UserGridConfig()
        overrides.auto_increment(GridAxis.X, grids, "B", 10)
        assert overrides.x == {"B": 10, "C": 11, "D": 12}

    def test_auto_increment_unknown_grid(self):
        grids = [GridLine("A", GridAxis.X, 0.0)]
        with pytest.raises(ValueError, match="Unknown grid line"):
            UserGridConfig().auto_increment(GridAxis.X, grids, "Z", 1)
