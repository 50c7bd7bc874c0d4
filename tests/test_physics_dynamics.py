"""
Tests for the high-fidelity (state-vector) motion model.
"""

from dataclasses import replace
from unittest.mock import patch

import numpy as np
import pytest

from stellarcast.config import KM_S_TO_AU_YR, MAS_TO_RAD
from stellarcast.data.source import StarRecord
from stellarcast.physics import dynamics
from stellarcast.physics.coordinates import angular_separation, unit_vector
from stellarcast.physics.dynamics import initial_state, propagate_dynamical
from stellarcast.physics.kinematics import propagate_kinematic


@pytest.fixture
def times():
    return np.linspace(0.0, 100.0, 51)


@pytest.fixture
def resting_star():
    """A star with no measured motion: bound to the central mass by construction."""
    return StarRecord(name="Resting", ra=45.0, dec=30.0, parallax=379.21, pmra=0.0, pmdec=0.0,
                      radial_velocity=0.0)


class TestInitialState:
    """Test construction of the barycentric state vector."""

    def test_position_along_line_of_sight(self, sirius):
        state = initial_state(sirius)
        assert state.radius == pytest.approx(sirius.distance_au)
        assert np.allclose(state.position / state.radius, unit_vector(sirius.ra, sirius.dec))

    def test_velocity_components(self, sirius):
        state = initial_state(sirius)
        los = state.position / state.radius
        radial = np.dot(state.velocity, los)
        tangential = np.linalg.norm(state.velocity - radial * los)
        assert radial == pytest.approx(-7.6 * KM_S_TO_AU_YR)
        assert tangential == pytest.approx(sirius.total_proper_motion * MAS_TO_RAD * sirius.distance_au)


class TestSingleStar:
    """Test propagation of stars without orbital elements."""

    def test_reference_epoch_matches_catalog(self, sirius, times):
        trajectory, _ = propagate_dynamical(sirius, times)
        mismatch_deg = angular_separation(sirius.ra, sirius.dec, trajectory.ra[0], trajectory.dec[0])
        assert mismatch_deg * 3600.0 < 0.01
        assert trajectory.distance_au[0] == pytest.approx(sirius.distance_au)

    def test_unbound_star_drifts(self, sirius, times):
        """Sirius' velocity far exceeds escape speed, so the Kepler solver is never used."""
        with patch('stellarcast.physics.dynamics.propagate_kepler_universal_detailed') as mock_kepler:
            _, stats = propagate_dynamical(sirius, times)
        mock_kepler.assert_not_called()
        assert stats.drift_steps == 50
        assert stats.kepler_steps == 0

    def test_bound_star_uses_kepler(self, resting_star, times):
        with patch('stellarcast.physics.dynamics.propagate_kepler_universal_detailed',
                   wraps=dynamics.propagate_kepler_universal_detailed) as mock_kepler:
            trajectory, stats = propagate_dynamical(resting_star, times)
        assert mock_kepler.call_count == 50
        assert stats.kepler_steps == 50
        assert stats.kepler_fallbacks == 0
        assert trajectory.is_finite()
        assert np.allclose(trajectory.ra, 45.0, atol=1e-9)
        assert np.allclose(trajectory.dec, 30.0, atol=1e-9)

    def test_bound_star_elements(self, resting_star, times):
        """A star at rest falls radially: a = r / 2 and e at its cap."""
        _, stats = propagate_dynamical(resting_star, times)
        assert stats.semi_major_axis_au == pytest.approx(resting_star.distance_au / 2.0)
        assert stats.eccentricity == pytest.approx(0.999999)

    def test_unbound_star_has_no_elements(self, sirius, times):
        _, stats = propagate_dynamical(sirius, times)
        assert stats.semi_major_axis_au is None
        assert stats.eccentricity is None

    def test_close_to_linear_model(self, sirius, times):
        """Over a century the two models agree on Dec and distance to a small fraction."""
        dynamical, _ = propagate_dynamical(sirius, times)
        kinematic = propagate_kinematic(sirius, times)
        assert np.allclose(dynamical.dec, kinematic.dec, atol=1e-3)
        assert np.allclose(dynamical.distance_au, kinematic.distance_au, rtol=1e-5)

    def test_distance_decreases(self, sirius, times):
        trajectory, _ = propagate_dynamical(sirius, times)
        assert np.all(np.diff(trajectory.distance_au) < 0)

    def test_ra_wrapped(self, times):
        star = StarRecord(name="Edge", ra=359.99, dec=0.0, parallax=100.0, pmra=1000.0, pmdec=0.0)
        trajectory, _ = propagate_dynamical(star, times)
        assert np.all((trajectory.ra >= 0.0) & (trajectory.ra < 360.0))
        assert trajectory.ra[-1] < 1.0

    def test_overflowing_step_keeps_last_state(self, caplog):
        """A star at ~1e298 AU moving ~1e307 AU/yr overflows after one step."""
        star = StarRecord(name="Runaway", ra=0.0, dec=0.0, parallax=1e-290, pmra=1e18, pmdec=0.0)
        with np.errstate(over='ignore', invalid='ignore'):
            trajectory, stats = propagate_dynamical(star, np.array([0.0, 50.0, 100.0]))
        assert stats.held_steps == 2
        assert trajectory.is_finite()
        assert np.allclose(trajectory.ra, 0.0)
        assert np.allclose(trajectory.distance_au, star.distance_au)
        assert "last finite state kept" in caplog.text

    def test_velocities(self, sirius, times):
        trajectory, _ = propagate_dynamical(sirius, times)
        assert trajectory.tangential_velocity_kms[0] == pytest.approx(16.74, abs=0.02)
        assert trajectory.radial_velocity_kms[0] == pytest.approx(-7.6)
        assert np.allclose(trajectory.total_velocity_kms,
                           np.hypot(trajectory.tangential_velocity_kms, trajectory.radial_velocity_kms))


class TestBinary:
    """Test the barycentre-plus-offset path for binaries."""

    def test_returns_after_one_period(self, static_binary, times):
        trajectory, stats = propagate_dynamical(static_binary, times)
        assert stats.binary_steps == 51
        assert stats.kepler_steps == 0
        assert trajectory.ra[0] == pytest.approx(trajectory.ra[25], abs=1e-9)
        assert trajectory.dec[0] == pytest.approx(trajectory.dec[25], abs=1e-9)

    def test_reference_epoch_includes_offset(self, static_binary, times):
        """At t=0 the orbital offset moves the star away from its catalog position."""
        trajectory, _ = propagate_dynamical(static_binary, times)
        mismatch = angular_separation(static_binary.ra, static_binary.dec,
                                      trajectory.ra[0], trajectory.dec[0])
        assert mismatch > 0.0

    def test_velocities_are_barycentric(self, static_binary, times):
        moving = replace(static_binary, radial_velocity=-10.0)
        trajectory, _ = propagate_dynamical(moving, times)
        assert np.allclose(trajectory.radial_velocity_kms, -10.0)
        assert np.allclose(trajectory.tangential_velocity_kms, 0.0, atol=1e-9)
