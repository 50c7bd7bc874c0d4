# tests/test_physics_kepler.py
import pytest
import math
import numpy as np
from unittest.mock import patch

from stellarcast.physics import kepler
from stellarcast.physics.kepler import (
    StateVector, stumpff_c, stumpff_s, specific_orbital_energy, derive_orbital_elements,
    propagate_kepler_universal, propagate_kepler_universal_detailed,
    mean_anomaly, approximate_eccentric_anomaly, true_anomaly,
    orbital_radius, semi_major_axis_au
)
from stellarcast.exceptions import NumericalInstabilityError

MU = 4.0 * math.pi ** 2


def _circular_state():
    """Earth-like circular orbit: r = 1 AU, v = 2*pi AU/yr, period 1 yr."""
    return StateVector(np.array([1.0, 0.0, 0.0]), np.array([0.0, 2.0 * math.pi, 0.0]))


def _angular_momentum(state):
    return np.cross(state.position, state.velocity)


# Stumpff functions

def test_stumpff_at_zero():
    """C(0) = 1/2 and S(0) = 1/6."""
    assert stumpff_c(0.0) == pytest.approx(0.5)
    assert stumpff_s(0.0) == pytest.approx(1.0 / 6.0)

def test_stumpff_known_values():
    """At z = pi^2: C = 2/pi^2 and S = 1/pi^2."""
    z = math.pi ** 2
    assert np.isclose(stumpff_c(z), 2.0 / math.pi ** 2, atol=1e-12)
    assert np.isclose(stumpff_s(z), 1.0 / math.pi ** 2, atol=1e-12)

@pytest.mark.parametrize("z", [2e-8, -2e-8, 1e-6, -1e-6])
def test_stumpff_series_continuity(z):
    """The closed forms just outside the series threshold agree with the series."""
    series_c = 0.5 - z / 24.0
    series_s = 1.0 / 6.0 - z / 120.0
    assert np.isclose(stumpff_c(z), series_c, atol=1e-7)
    assert np.isclose(stumpff_s(z), series_s, atol=1e-7)

def test_stumpff_hyperbolic_branch():
    """For z < 0 the hyperbolic forms are used: C(-pi^2) = (cosh(pi) - 1)/pi^2."""
    z = -math.pi ** 2
    assert np.isclose(stumpff_c(z), (math.cosh(math.pi) - 1.0) / math.pi ** 2)
    assert np.isclose(stumpff_s(z), (math.sinh(math.pi) - math.pi) / math.pi ** 3)


# State vectors and energy

def test_state_vector_coerces_arrays():
    state = StateVector([1, 2, 3], [4, 5, 6])
    assert state.position.dtype == float
    assert state.position.shape == (3,)
    assert state.radius == pytest.approx(math.sqrt(14.0))

def test_state_vector_drift():
    drifted = StateVector([1.0, 0.0, 0.0], [0.0, 1.0, 0.0]).drifted(2.0)
    assert np.allclose(drifted.position, [1.0, 2.0, 0.0])
    assert np.allclose(drifted.velocity, [0.0, 1.0, 0.0])

def test_specific_energy_sign():
    assert specific_orbital_energy(_circular_state(), MU) < 0
    escaping = StateVector([1.0, 0.0, 0.0], [0.0, 3.0 * math.pi, 0.0])
    assert specific_orbital_energy(escaping, MU) > 0


# Orbital elements from state vectors

def test_circular_orbit_elements():
    a, e = derive_orbital_elements(_circular_state(), MU)
    assert np.isclose(a, 1.0)
    assert np.isclose(e, 0.0, atol=1e-12)

def test_elliptic_elements_at_periastron():
    """1.2 times circular speed at r = 1 AU gives e = 1.2^2 - 1 and a = 1 / (1 - e)."""
    a, e = derive_orbital_elements(StateVector([1.0, 0.0, 0.0], [0.0, 1.2 * 2.0 * math.pi, 0.0]), MU)
    assert np.isclose(e, 0.44)
    assert np.isclose(a, 1.0 / 0.56)

def test_elements_constant_along_orbit():
    initial = StateVector([1.0, 0.0, 0.0], [0.0, 1.2 * 2.0 * math.pi, 0.0])
    final = propagate_kepler_universal(initial, MU, 0.37)
    assert np.allclose(derive_orbital_elements(final, MU), derive_orbital_elements(initial, MU), rtol=1e-8)

def test_hyperbolic_elements_capped():
    a, e = derive_orbital_elements(StateVector([1.0, 0.0, 0.0], [0.0, 1.6 * 2.0 * math.pi, 0.0]), MU)
    assert a < 0
    assert e == 0.999999

def test_elements_at_origin_raise():
    with pytest.raises(NumericalInstabilityError, match="Cannot derive orbital elements"):
        derive_orbital_elements(StateVector(np.zeros(3), [1.0, 0.0, 0.0]), MU)


# Universal-variable propagation

def test_circular_orbit_quarter_period():
    """A quarter period moves the body from +x to +y."""
    state = propagate_kepler_universal(_circular_state(), MU, 0.25)
    assert np.allclose(state.position, [0.0, 1.0, 0.0], atol=1e-9)
    assert np.allclose(state.velocity, [-2.0 * math.pi, 0.0, 0.0], atol=1e-8)

def test_circular_orbit_returns_after_one_period():
    """100 steps of 0.01 yr bring the circular orbit back to its start."""
    state = _circular_state()
    for _ in range(100):
        state = propagate_kepler_universal(state, MU, 0.01)
    assert np.allclose(state.position, [1.0, 0.0, 0.0], rtol=0.0, atol=1e-6)
    assert np.allclose(state.velocity, [0.0, 2.0 * math.pi, 0.0], rtol=0.0, atol=1e-6)

def test_elliptic_orbit_conserves_energy_and_momentum():
    initial = StateVector([1.0, 0.0, 0.0], [0.0, 1.2 * 2.0 * math.pi, 0.0])
    final, converged = propagate_kepler_universal_detailed(initial, MU, 0.37)
    assert converged
    assert np.isclose(specific_orbital_energy(final, MU), specific_orbital_energy(initial, MU), rtol=1e-9)
    assert np.allclose(_angular_momentum(final), _angular_momentum(initial), rtol=1e-9)

def test_hyperbolic_orbit():
    """Unbound states use the same code path and conserve energy."""
    initial = StateVector([1.0, 0.0, 0.0], [0.0, 1.6 * 2.0 * math.pi, 0.0])
    final, converged = propagate_kepler_universal_detailed(initial, MU, 0.5)
    assert converged
    assert specific_orbital_energy(initial, MU) > 0
    assert np.isclose(specific_orbital_energy(final, MU), specific_orbital_energy(initial, MU), rtol=1e-8)
    assert final.radius > initial.radius

def test_zero_dt_returns_copy():
    initial = _circular_state()
    final, converged = propagate_kepler_universal_detailed(initial, MU, 0.0)
    assert converged
    assert np.array_equal(final.position, initial.position)
    assert final.position is not initial.position

def test_non_convergence_falls_back_to_drift():
    """With no iterations allowed the solver cannot converge and drift is used."""
    initial = _circular_state()
    final, converged = propagate_kepler_universal_detailed(initial, MU, 0.1, max_iter=0)
    assert not converged
    assert np.allclose(final.position, initial.drifted(0.1).position)

def test_numerical_instability_falls_back_to_drift():
    initial = _circular_state()
    with patch.object(kepler, '_solve_universal_anomaly',
                      side_effect=NumericalInstabilityError("boom")):
        final, converged = propagate_kepler_universal_detailed(initial, MU, 0.1)
    assert not converged
    assert np.allclose(final.position, [1.0, 0.2 * math.pi, 0.0])

def test_degenerate_position_does_not_raise():
    origin = StateVector(np.zeros(3), np.array([1.0, 0.0, 0.0]))
    final, converged = propagate_kepler_universal_detailed(origin, MU, 2.0)
    assert not converged
    assert np.allclose(final.position, [2.0, 0.0, 0.0])

def test_non_finite_state_does_not_raise():
    broken = StateVector(np.array([np.nan, 0.0, 0.0]), np.zeros(3))
    final = propagate_kepler_universal(broken, MU, 1.0)
    assert final.position.shape == (3,)


# Binary anomaly helpers

def test_mean_anomaly_is_periodic():
    assert mean_anomaly(0.0, 50.0) == 0.0
    assert mean_anomaly(50.0, 50.0) == 0.0
    assert np.isclose(mean_anomaly(12.5, 50.0), math.pi / 2.0)

def test_mean_anomaly_vectorized():
    values = mean_anomaly(np.array([0.0, 25.0, 75.0]), 50.0)
    assert np.allclose(values, [0.0, math.pi, math.pi])

def test_approximate_eccentric_anomaly_single_pass():
    """E = M + e*sin(M), one step only."""
    assert np.isclose(approximate_eccentric_anomaly(math.pi / 2.0, 0.5), math.pi / 2.0 + 0.5)
    assert approximate_eccentric_anomaly(0.0, 0.9) == 0.0

def test_true_anomaly():
    assert np.isclose(true_anomaly(0.0, 0.5), 0.0)
    assert np.isclose(true_anomaly(1.2, 0.0), 1.2)
    assert np.isclose(abs(true_anomaly(math.pi, 0.5)), math.pi)

def test_orbital_radius():
    assert np.isclose(orbital_radius(10.0, 0.0, 0.5), 5.0)
    assert np.isclose(orbital_radius(10.0, math.pi, 0.5), 15.0)

@pytest.mark.parametrize("period, mass, expected", [
    (1.0, 1.0, 1.0),
    (50.0, 1.0, 2500.0 ** (1.0 / 3.0)),
    (50.0, 2.0, 5000.0 ** (1.0 / 3.0)),
])
def test_semi_major_axis(period, mass, expected):
    assert np.isclose(semi_major_axis_au(period, mass), expected)
