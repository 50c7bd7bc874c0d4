"""
Keplerian two-body propagation using the universal-variable formulation.

This module advances Cartesian state vectors around a central mass and
provides the anomaly helpers used by the approximate binary-orbit model.

Functions:
    stumpff_c, stumpff_s: Stumpff functions C(z) and S(z)
    propagate_kepler_universal: Propagates a state vector, falling back to drift
    propagate_kepler_universal_detailed: Same, also reporting convergence
    specific_orbital_energy: v^2/2 - mu/r for a state vector
    derive_orbital_elements: Semi-major axis and eccentricity of a state vector
    mean_anomaly, approximate_eccentric_anomaly, true_anomaly, orbital_radius:
        Anomaly construction for binary orbits
    semi_major_axis_au: Kepler's third law in AU, years and solar masses

Dependencies:
    numpy: Vector algebra
    logging: Convergence information and warnings
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Tuple, Union

import numpy as np

from ..config import (
    SOLAR_MU,
    DEFAULT_KEPLER_TOLERANCE,
    DEFAULT_KEPLER_MAX_ITERATIONS,
    KEPLER_INITIAL_GUESS_FLOOR,
    STUMPFF_SERIES_THRESHOLD,
    KEPLER_LOGGING_PRECISION,
    MIN_POSITION_NORM_AU,
    MAX_DERIVED_ECCENTRICITY,
)
from ..exceptions import ConvergenceError, NumericalInstabilityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class StateVector:
    """Cartesian position (AU) and velocity (AU/yr) in a barycentric frame."""
    position: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        object.__setattr__(self, 'position', np.asarray(self.position, dtype=float).reshape(3))
        object.__setattr__(self, 'velocity', np.asarray(self.velocity, dtype=float).reshape(3))

    @property
    def radius(self) -> float:
        return math.hypot(*self.position)

    @property
    def speed(self) -> float:
        return math.hypot(*self.velocity)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.position)) and np.all(np.isfinite(self.velocity)))

    def drifted(self, dt: float) -> 'StateVector':
        """Straight-line motion for ``dt`` years with unchanged velocity."""
        return StateVector(self.position + self.velocity * dt, self.velocity.copy())


def stumpff_c(z: float) -> float:
    """Stumpff function C(z) = (1 - cos sqrt(z)) / z, continued for z <= 0."""
    if abs(z) < STUMPFF_SERIES_THRESHOLD:
        return 0.5 - z / 24.0 + z * z / 720.0
    if z > 0:
        return (1.0 - math.cos(math.sqrt(z))) / z
    return (math.cosh(math.sqrt(-z)) - 1.0) / (-z)


def stumpff_s(z: float) -> float:
    """Stumpff function S(z) = (sqrt(z) - sin sqrt(z)) / z^1.5, continued for z <= 0."""
    if abs(z) < STUMPFF_SERIES_THRESHOLD:
        return 1.0 / 6.0 - z / 120.0 + z * z / 5040.0
    if z > 0:
        sqrt_z = math.sqrt(z)
        return (sqrt_z - math.sin(sqrt_z)) / (sqrt_z ** 3)
    sqrt_mz = math.sqrt(-z)
    return (math.sinh(sqrt_mz) - sqrt_mz) / (sqrt_mz ** 3)


def specific_orbital_energy(state: StateVector, mu: float = SOLAR_MU) -> float:
    """Specific orbital energy v^2/2 - mu/r. Negative means bound."""
    r = state.radius
    if r == 0.0:
        return -math.inf
    return 0.5 * float(np.dot(state.velocity, state.velocity)) - mu / r


def derive_orbital_elements(state: StateVector, mu: float = SOLAR_MU) -> Tuple[float, float]:
    """
    Semi-major axis and eccentricity of the two-body orbit through a state.

    The semi-major axis comes from the vis-viva energy, a = -mu / (2 energy),
    and is negative for hyperbolic states and inf for parabolic ones. The
    eccentricity is the length of ((v^2 - mu/r) r - (r.v) v) / mu, capped at
    MAX_DERIVED_ECCENTRICITY.

    Args:
        state: Position (AU) and velocity (AU/yr) relative to the central mass
        mu: Gravitational parameter (AU^3/yr^2)

    Returns:
        (semi_major_axis_au, eccentricity)

    Raises:
        NumericalInstabilityError: If the state sits on the central mass or is non-finite
    """
    r = state.radius
    if r < MIN_POSITION_NORM_AU or not state.is_finite():
        raise NumericalInstabilityError(f"Cannot derive orbital elements at r={r:.3e} AU")

    v_squared = float(np.dot(state.velocity, state.velocity))
    energy = 0.5 * v_squared - mu / r
    a = -mu / (2.0 * energy) if energy != 0.0 else math.inf

    rv = float(np.dot(state.position, state.velocity))
    e_vec = ((v_squared - mu / r) * state.position - rv * state.velocity) / mu
    e = min(max(float(np.linalg.norm(e_vec)), 0.0), MAX_DERIVED_ECCENTRICITY)
    return a, e


def _solve_universal_anomaly(r0: float, rv0: float, alpha: float, mu: float, dt: float,
                             tol: float, max_iter: int) -> float:
    """
    Newton-Raphson solve of the universal Kepler equation for chi.

    Args:
        r0: Initial radius |r0|
        rv0: r0 . v0
        alpha: Reciprocal semi-major axis 2/r0 - v0^2/mu
        mu: Gravitational parameter
        dt: Time step in years

    Returns:
        Converged universal anomaly chi

    Raises:
        ConvergenceError: If |delta chi| stays above ``tol`` after ``max_iter`` iterations
        NumericalInstabilityError: If an iterate becomes non-finite
    """
    sqrt_mu = math.sqrt(mu)
    chi = sqrt_mu * abs(alpha) * dt
    if chi == 0.0:
        chi = KEPLER_INITIAL_GUESS_FLOOR

    radial_term = rv0 / sqrt_mu
    for _ in range(max_iter):
        z = alpha * chi * chi
        try:
            c = stumpff_c(z)
            s = stumpff_s(z)
        except (OverflowError, ValueError) as e:
            raise NumericalInstabilityError(f"Stumpff evaluation failed at z={z:.3e}") from e

        f_chi = (radial_term * chi * chi * c
                 + (1.0 - alpha * r0) * chi ** 3 * s
                 + r0 * chi
                 - sqrt_mu * dt)
        f_prime = (radial_term * chi * (1.0 - z * s)
                   + (1.0 - alpha * r0) * chi * chi * c
                   + r0)

        if f_prime == 0.0 or not math.isfinite(f_prime):
            raise NumericalInstabilityError(f"Degenerate Kepler derivative at chi={chi:.3e}")

        delta = f_chi / f_prime
        chi -= delta
        if not math.isfinite(chi):
            raise NumericalInstabilityError("Universal anomaly became non-finite")
        if abs(delta) < tol:
            return chi

    raise ConvergenceError(f"Universal Kepler equation did not converge in {max_iter} iterations")


def propagate_kepler_universal_detailed(state: StateVector,
                                        mu: float = SOLAR_MU,
                                        dt: float = 0.0,
                                        tol: float = None,
                                        max_iter: int = None) -> Tuple[StateVector, bool]:
    """
    Propagates a two-body state vector by ``dt`` years.

    Uses the universal-variable formulation with Lagrange f and g
    coefficients, so elliptic, parabolic and hyperbolic states are handled by
    the same code path. Never raises: on non-convergence or a degenerate state
    the result is straight-line drift.

    Args:
        state: Initial state (AU, AU/yr)
        mu: Gravitational parameter in AU^3/yr^2 (4*pi^2 for one solar mass)
        dt: Time step in years
        tol: Convergence tolerance on chi. Uses DEFAULT_KEPLER_TOLERANCE if None.
        max_iter: Iteration cap. Uses DEFAULT_KEPLER_MAX_ITERATIONS if None.

    Returns:
        (new_state, converged) where converged is False when drift was used
    """
    tol = tol if tol is not None else DEFAULT_KEPLER_TOLERANCE
    max_iter = max_iter if max_iter is not None else DEFAULT_KEPLER_MAX_ITERATIONS

    if dt == 0.0:
        return StateVector(state.position.copy(), state.velocity.copy()), True

    r0_vec = state.position
    v0_vec = state.velocity
    r0 = state.radius

    if r0 < MIN_POSITION_NORM_AU or mu <= 0 or not state.is_finite():
        logger.warning(f"Degenerate state (r={r0:.3e} AU), using linear drift")
        return state.drifted(dt), False

    rv0 = float(np.dot(r0_vec, v0_vec))
    alpha = 2.0 / r0 - float(np.dot(v0_vec, v0_vec)) / mu
    sqrt_mu = math.sqrt(mu)

    try:
        chi = _solve_universal_anomaly(r0, rv0, alpha, mu, dt, tol, max_iter)
        z = alpha * chi * chi
        c = stumpff_c(z)
        s = stumpff_s(z)

        f = 1.0 - chi * chi * c / r0
        g = dt - chi ** 3 * s / sqrt_mu
        r_vec = f * r0_vec + g * v0_vec
        r = float(np.linalg.norm(r_vec))
        if r < MIN_POSITION_NORM_AU or not math.isfinite(r):
            raise NumericalInstabilityError(f"Propagated radius degenerate: {r:.3e}")

        f_dot = sqrt_mu / (r * r0) * (z * s - 1.0) * chi
        g_dot = 1.0 - chi * chi * c / r
        v_vec = f_dot * r0_vec + g_dot * v0_vec
    except (ConvergenceError, NumericalInstabilityError, OverflowError) as e:
        logger.warning(f"Kepler propagation failed for dt={dt:.{KEPLER_LOGGING_PRECISION}f} yr ({e}), "
                       f"using linear drift")
        return state.drifted(dt), False

    new_state = StateVector(r_vec, v_vec)
    if not new_state.is_finite():
        logger.warning("Kepler propagation produced non-finite state, using linear drift")
        return state.drifted(dt), False
    return new_state, True


def propagate_kepler_universal(state: StateVector, mu: float = SOLAR_MU, dt: float = 0.0) -> StateVector:
    """Propagates ``state`` by ``dt`` years. See ``propagate_kepler_universal_detailed``."""
    new_state, _ = propagate_kepler_universal_detailed(state, mu, dt)
    return new_state


# Binary orbit anomalies

Number = Union[float, np.ndarray]


def mean_anomaly(t: Number, period: float) -> Number:
    """Mean anomaly M = 2*pi*(t mod P)/P in radians."""
    return 2.0 * np.pi * np.mod(t, period) / period


def approximate_eccentric_anomaly(M: Number, e: float) -> Number:
    """
    Single-pass eccentric anomaly E = M + e*sin(M).

    This is the first Newton step from E0 = M, not a converged solution of
    Kepler's equation. Existing binary fixtures depend on these values.
    """
    return M + e * np.sin(M)


def true_anomaly(E: Number, e: float) -> Number:
    """True anomaly from eccentric anomaly, using the quadrant-safe atan2 form."""
    return 2.0 * np.arctan2(np.sqrt(1.0 + e) * np.sin(E / 2.0),
                            np.sqrt(1.0 - e) * np.cos(E / 2.0))


def orbital_radius(a: float, E: Number, e: float) -> Number:
    """Separation r = a(1 - e cos E) in the units of ``a``."""
    return a * (1.0 - e * np.cos(E))


def semi_major_axis_au(period_years: float, total_mass_solar: float) -> float:
    """Kepler's third law: a^3 = M P^2 with a in AU, P in years, M in solar masses."""
    return float((total_mass_solar * period_years ** 2) ** (1.0 / 3.0))
