"""
Standard (linear) stellar motion model.

Sky position advances linearly with proper motion, distance linearly with
radial velocity. Stars with orbital elements get an additional approximate
binary-orbit offset built from a single-pass eccentric anomaly. The model is
vectorized over the time grid and is the one used for Monte Carlo sampling.

Functions:
    propagate_kinematic: Trajectory of a single star over a time grid
    binary_orbit_offset: (dRA, dDec, dDistance) of the orbital motion at time t
    binary_orbit_offset_vector: The same offset as a 3D sky-frame vector

Dependencies:
    numpy: Vectorized trajectory arithmetic
"""

import logging
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from .coordinates import mas_to_rad, kms_to_au_per_year, au_per_year_to_kms
from .kepler import (
    mean_anomaly, approximate_eccentric_anomaly, true_anomaly,
    orbital_radius, semi_major_axis_au
)
from ..config import MIN_DISTANCE_AU, MIN_COS_DEC
from ..data.source import StarRecord

logger = logging.getLogger(__name__)

Number = Union[float, np.ndarray]


@dataclass
class Trajectory:
    """Time series of a propagated star, one array entry per time step."""
    times: np.ndarray
    ra: np.ndarray                        # degrees
    dec: np.ndarray                       # degrees
    distance_au: np.ndarray
    tangential_velocity_kms: np.ndarray
    radial_velocity_kms: np.ndarray
    total_velocity_kms: np.ndarray

    def __len__(self) -> int:
        return len(self.times)

    def is_finite(self) -> bool:
        return all(np.all(np.isfinite(values)) for values in (
            self.ra, self.dec, self.distance_au, self.tangential_velocity_kms,
            self.radial_velocity_kms, self.total_velocity_kms))


def clamp_distance(distance_au: np.ndarray, name: str = "star") -> np.ndarray:
    """Replace non-positive or non-finite distances with MIN_DISTANCE_AU."""
    bad = ~np.isfinite(distance_au) | (distance_au < MIN_DISTANCE_AU)
    if np.any(bad):
        logger.warning(f"Distance of {name} left the physical range at {int(np.sum(bad))} "
                       f"time steps; clamped to {MIN_DISTANCE_AU} AU")
        distance_au = np.where(bad, MIN_DISTANCE_AU, distance_au)
    return distance_au


def _orbital_plane_offset(record: StarRecord, t: Number) -> Tuple[Number, Number]:
    """In-plane (x, y) offset in AU, rotated by the argument of periastron."""
    period = record.orbital_period
    e = record.eccentricity
    a_au = semi_major_axis_au(period, record.binary_system_mass)

    M = mean_anomaly(t, period)
    E = approximate_eccentric_anomaly(M, e)
    nu = true_anomaly(E, e)
    r = orbital_radius(a_au, E, e)

    angle = nu + np.radians(record.argument_of_periastron)
    return r * np.cos(angle), r * np.sin(angle)


def binary_orbit_offset(record: StarRecord, t: Number,
                        distance_au: Number = None) -> Tuple[Number, Number, Number]:
    """
    Approximate sky offset produced by binary orbital motion.

    The in-plane x axis maps onto RA (small-angle, scaled by 1/cos(dec)), the
    in-plane y axis is foreshortened by cos(i) onto Dec and its sin(i) share
    goes along the line of sight. cos(dec) is floored at MIN_COS_DEC, so a
    binary on a celestial pole gets a large but finite RA offset; the
    high-fidelity model has no such singularity.

    Args:
        record: Star with orbital elements
        t: Time(s) in years since the reference epoch
        distance_au: Distance used for the small-angle projection. Uses the
            catalog distance if None.

    Returns:
        (delta_ra_deg, delta_dec_deg, delta_distance_au)
    """
    if distance_au is None:
        distance_au = record.distance_au
    x, y = _orbital_plane_offset(record, t)
    inclination = np.radians(record.inclination)
    # dec = +-90 is valid input; keep the RA offset finite there
    cos_dec = max(np.cos(np.radians(record.dec)), MIN_COS_DEC)

    delta_ra = np.degrees(x / (distance_au * cos_dec))
    delta_dec = np.degrees(y * np.cos(inclination) / distance_au)
    delta_distance = y * np.sin(inclination)
    return delta_ra, delta_dec, delta_distance


def binary_orbit_offset_vector(record: StarRecord, t: float) -> np.ndarray:
    """
    Orbital offset in AU along (east, north, line of sight) at time ``t``.

    Same construction as ``binary_orbit_offset`` without the small-angle step.
    """
    x, y = _orbital_plane_offset(record, t)
    inclination = np.radians(record.inclination)
    return np.array([x, y * np.cos(inclination), y * np.sin(inclination)], dtype=float)


def propagate_kinematic(record: StarRecord, times: np.ndarray) -> Trajectory:
    """
    Propagate a star with the linear proper-motion model.

    RA and Dec advance as ra0 + pmra*t and dec0 + pmdec*t (RA is left
    continuous, not wrapped). Tangential velocity is recomputed from the
    current distance at every step.

    Args:
        record: Validated star record
        times: Time grid in years since the reference epoch

    Returns:
        Trajectory evaluated on ``times``
    """
    times = np.asarray(times, dtype=float)

    pmra_rad = mas_to_rad(record.pmra)
    pmdec_rad = mas_to_rad(record.pmdec)
    rv_kms = record.radial_velocity_or_zero
    rv_au_yr = kms_to_au_per_year(rv_kms)

    ra_rad = np.radians(record.ra) + pmra_rad * times
    dec_rad = np.radians(record.dec) + pmdec_rad * times
    ra = np.degrees(ra_rad)
    dec = np.degrees(dec_rad)
    distance_au = record.distance_au + rv_au_yr * times

    if record.has_binary_elements:
        delta_ra, delta_dec, delta_distance = binary_orbit_offset(record, times)
        ra = ra + delta_ra
        dec = dec + delta_dec
        distance_au = distance_au + delta_distance

    distance_au = clamp_distance(distance_au, record.name)

    tangential = au_per_year_to_kms(np.sqrt((pmra_rad * distance_au) ** 2
                                            + (pmdec_rad * distance_au) ** 2))
    radial = np.full_like(times, rv_kms)
    total = np.sqrt(tangential ** 2 + radial ** 2)

    return Trajectory(times=times, ra=ra, dec=dec, distance_au=distance_au,
                      tangential_velocity_kms=tangential, radial_velocity_kms=radial,
                      total_velocity_kms=total)
