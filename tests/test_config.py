"""
Tests for configuration constants and their consistency.
"""

import math

import pytest

from stellarcast import config


class TestUnitConversions:
    """Test the unit conversion constants."""

    def test_au_pc_roundtrip(self):
        """PC_TO_AU is the exact reciprocal of AU_TO_PC."""
        assert config.AU_TO_PC * config.PC_TO_AU == pytest.approx(1.0)
        assert config.PC_TO_AU == pytest.approx(206264.8, rel=1e-6)

    def test_velocity_roundtrip(self):
        assert config.KM_S_TO_AU_YR * config.AU_YR_TO_KM_S == pytest.approx(1.0)

    def test_mas_to_rad(self):
        """One degree expressed in mas converts back to pi/180 radians."""
        assert 3600.0 * 1000.0 * config.MAS_TO_RAD == pytest.approx(math.pi / 180.0)

    def test_gravitational_parameter(self):
        """G is 4 pi^2 in AU, years and solar masses."""
        assert config.GRAVITATIONAL_CONSTANT == pytest.approx(4.0 * math.pi ** 2)
        assert config.SOLAR_MU == config.GRAVITATIONAL_CONSTANT


class TestNumericalParameters:
    """Test solver and propagation settings."""

    def test_kepler_settings_are_sane(self):
        assert 0 < config.DEFAULT_KEPLER_TOLERANCE < 1e-6
        assert config.DEFAULT_KEPLER_MAX_ITERATIONS >= 10
        assert config.KEPLER_INITIAL_GUESS_FLOOR > 0

    def test_safeguards_positive(self):
        assert config.MIN_SEPARATION_FLOOR_AU > 0
        assert config.MIN_DISTANCE_AU > 0
        assert config.MIN_POSITION_NORM_AU > 0

    def test_eccentricity_range(self):
        assert config.MIN_ECCENTRICITY == 0.0
        assert config.MAX_ECCENTRICITY == 1.0


class TestMonteCarloConfiguration:
    """Test Monte Carlo defaults and the fallback error model."""

    def test_percentiles_ordered(self):
        low, mid, high = config.MC_PERCENTILES
        assert low < mid < high
        assert mid == 50.0

    def test_fallback_error_model_fields(self):
        assert set(config.FALLBACK_ERROR_MODEL) == {'parallax', 'pmra', 'pmdec', 'radial_velocity'}
        for model in config.FALLBACK_ERROR_MODEL.values():
            assert 0 < model['fraction'] < 1
            assert model['floor'] > 0

    def test_defaults(self):
        assert config.DEFAULT_MC_SAMPLES > 0
        assert config.DEFAULT_MC_WORKERS >= 1
        assert config.DEFAULT_TIME_STEPS >= config.MIN_TIME_STEPS
        assert config.DEFAULT_TIME_PERIOD_YEARS > 0
