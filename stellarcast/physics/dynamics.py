"""
High-fidelity stellar motion model on Cartesian state vectors.

The star's catalog astrometry is turned into a barycentric state vector and
advanced step by step: bound states (negative specific energy) follow the
universal-variable Kepler solver around one solar mass, unbound states drift
in a straight line. Sky coordinates are re-derived from the Cartesian state
at every step rather than by incrementing angles.

Stars with binary orbital elements bypass the energy branch: the barycentre
drifts linearly and the orbital offset is added in 3D before projection.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .coordinates import (
    unit_vector, tangent_plane_basis, from_cartesian, direction_and_norm, mas_to_rad,
    kms_to_au_per_year, au_per_year_to_kms
)
from .kepler import (
    StateVector, specific_orbital_energy, derive_orbital_elements, propagate_kepler_universal_detailed
)
from .kinematics import Trajectory, binary_orbit_offset_vector, clamp_distance
from ..config import SOLAR_MU
from ..data.source import StarRecord
from ..exceptions import NumericalInstabilityError

logger = logging.getLogger(__name__)


@dataclass
class DynamicalStats:
    """Counts of the propagation branches taken over a trajectory."""
    kepler_steps: int = 0
    drift_steps: int = 0
    kepler_fallbacks: int = 0
    binary_steps: int = 0
    held_steps: int = 0
    # Two-body elements at the reference epoch, set only for bound stars
    semi_major_axis_au: Optional[float] = None
    eccentricity: Optional[float] = None


def initial_state(record: StarRecord) -> StateVector:
    """
    Build the barycentric state vector of a star at the reference epoch.

    Position is the catalog distance along the line of sight. Velocity is the
    proper motion resolved on the local (east, north) basis and scaled by
    distance, plus radial velocity along the line of sight.
    """
    distance_au = record.distance_au
    los = unit_vector(record.ra, record.dec)
    east, north = tangent_plane_basis(record.ra, record.dec)

    tangential = (mas_to_rad(record.pmra) * east + mas_to_rad(record.pmdec) * north) * distance_au
    radial = kms_to_au_per_year(record.radial_velocity_or_zero) * los
    return StateVector(distance_au * los, tangential + radial)


def _velocity_components(state: StateVector) -> Tuple[float, float, float]:
    """(tangential, radial, total) speed of a state in km/s."""
    los, r = direction_and_norm(state.position)
    if r == 0.0:
        total = au_per_year_to_kms(state.speed)
        return total, 0.0, total
    radial_au = float(np.dot(state.velocity, los))
    tangential_au = math.hypot(*(state.velocity - radial_au * los))
    tangential = au_per_year_to_kms(tangential_au)
    radial = au_per_year_to_kms(radial_au)
    return tangential, radial, float(np.hypot(tangential, radial))


def _record_bound_elements(state: StateVector, mu: float, stats: DynamicalStats) -> None:
    if specific_orbital_energy(state, mu) >= 0:
        return
    try:
        stats.semi_major_axis_au, stats.eccentricity = derive_orbital_elements(state, mu)
    except NumericalInstabilityError as e:
        logger.debug(f"No orbital elements for degenerate state: {e}")


def _empty_series(n: int) -> Tuple[np.ndarray, ...]:
    return tuple(np.empty(n) for _ in range(6))


def propagate_dynamical(record: StarRecord, times: np.ndarray,
                        mu: float = SOLAR_MU) -> Tuple[Trajectory, DynamicalStats]:
    """
    Propagate a star with the Cartesian state-vector model.

    Args:
        record: Validated star record
        times: Increasing time grid in years, starting at the reference epoch
        mu: Gravitational parameter of the central mass (AU^3/yr^2)

    Returns:
        (trajectory, stats) with one trajectory entry per element of ``times``
    """
    times = np.asarray(times, dtype=float)
    if record.has_binary_elements:
        return _propagate_binary(record, times)

    n = len(times)
    ra, dec, distance, v_tan, v_rad, v_tot = _empty_series(n)
    stats = DynamicalStats()

    state = initial_state(record)
    _record_bound_elements(state, mu, stats)
    previous_time = times[0] if n else 0.0
    if n and previous_time != 0.0:
        state = state.drifted(previous_time)

    for i, t in enumerate(times):
        dt = t - previous_time
        if i > 0 and dt != 0.0:
            if specific_orbital_energy(state, mu) < 0:
                stepped, converged = propagate_kepler_universal_detailed(state, mu, dt)
                stats.kepler_steps += 1
                if not converged:
                    stats.kepler_fallbacks += 1
            else:
                stepped = state.drifted(dt)
                stats.drift_steps += 1
            # An overflowing step keeps the last finite state
            if stepped.is_finite():
                state = stepped
            else:
                stats.held_steps += 1
        previous_time = t

        ra[i], dec[i], distance[i] = from_cartesian(state.position)
        v_tan[i], v_rad[i], v_tot[i] = _velocity_components(state)

    if stats.kepler_fallbacks:
        logger.warning(f"{record.name}: {stats.kepler_fallbacks} Kepler steps fell back to linear drift")
    if stats.held_steps:
        logger.warning(f"{record.name}: state overflowed at {stats.held_steps} steps; last finite state kept")

    trajectory = Trajectory(times=times, ra=ra, dec=dec,
                            distance_au=clamp_distance(distance, record.name),
                            tangential_velocity_kms=v_tan, radial_velocity_kms=v_rad,
                            total_velocity_kms=v_tot)
    return trajectory, stats


def _propagate_binary(record: StarRecord, times: np.ndarray) -> Tuple[Trajectory, DynamicalStats]:
    """Barycentre drift plus the 3D binary offset, projected back to the sky."""
    n = len(times)
    ra, dec, distance, v_tan, v_rad, v_tot = _empty_series(n)
    stats = DynamicalStats()

    barycentre = initial_state(record)
    los = unit_vector(record.ra, record.dec)
    east, north = tangent_plane_basis(record.ra, record.dec)
    basis = np.column_stack([east, north, los])

    # Orbital velocity is not modelled; reported velocities are the barycentre's
    tangential, radial, total = _velocity_components(barycentre)

    last_position = barycentre.position
    for i, t in enumerate(times):
        offset = basis @ binary_orbit_offset_vector(record, t)
        position = barycentre.position + barycentre.velocity * t + offset
        if np.all(np.isfinite(position)):
            last_position = position
        else:
            stats.held_steps += 1
        ra[i], dec[i], distance[i] = from_cartesian(last_position)
        v_tan[i], v_rad[i], v_tot[i] = tangential, radial, total
        stats.binary_steps += 1

    if stats.held_steps:
        logger.warning(f"{record.name}: position overflowed at {stats.held_steps} steps; last finite position kept")

    trajectory = Trajectory(times=times, ra=ra, dec=dec,
                            distance_au=clamp_distance(distance, record.name),
                            tangential_velocity_kms=v_tan, radial_velocity_kms=v_rad,
                            total_velocity_kms=v_tot)
    return trajectory, stats
