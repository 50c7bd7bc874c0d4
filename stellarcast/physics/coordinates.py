"""
Coordinate transforms and unit conversions for stellar position forecasting.

All functions are pure. Angles are in degrees at the interface and distances
in AU unless stated otherwise. Angular separation and galactic conversion
accept numpy arrays as well as scalars.

Functions:
    to_cartesian: Equatorial (RA, Dec, distance) to Cartesian position
    unit_vector: Line-of-sight unit vector
    tangent_plane_basis: RA-increasing and Dec-increasing unit vectors
    direction_and_norm: Overflow-safe unit direction and length of a vector
    from_cartesian: Cartesian position back to (RA, Dec, distance)
    angular_separation: Great-circle separation via the spherical law of cosines
    equatorial_to_galactic: Approximate galactic longitude and latitude

Dependencies:
    numpy: Vector algebra and vectorized trigonometry
"""

import math
from typing import Tuple, Union

import numpy as np

from ..config import (
    MAS_TO_RAD, PC_TO_AU, AU_TO_PC, PC_TO_LY, KM_S_TO_AU_YR, AU_YR_TO_KM_S,
    GALACTIC_POLE_RA_DEG, GALACTIC_POLE_DEC_DEG, GALACTIC_NODE_LONGITUDE_DEG
)

ArrayLike = Union[float, np.ndarray]


# Unit helpers

def mas_to_rad(value_mas: ArrayLike) -> ArrayLike:
    return value_mas * MAS_TO_RAD


def parallax_to_distance_pc(parallax_mas: ArrayLike) -> ArrayLike:
    """Distance in parsecs for a parallax in milliarcseconds."""
    return 1000.0 / parallax_mas


def pc_to_au(distance_pc: ArrayLike) -> ArrayLike:
    return distance_pc * PC_TO_AU


def au_to_pc(distance_au: ArrayLike) -> ArrayLike:
    return distance_au / PC_TO_AU


def au_to_ly(distance_au: ArrayLike) -> ArrayLike:
    return distance_au * AU_TO_PC * PC_TO_LY


def pc_to_ly(distance_pc: ArrayLike) -> ArrayLike:
    return distance_pc * PC_TO_LY


def kms_to_au_per_year(velocity_kms: ArrayLike) -> ArrayLike:
    return velocity_kms * KM_S_TO_AU_YR


def au_per_year_to_kms(velocity_au_yr: ArrayLike) -> ArrayLike:
    return velocity_au_yr * AU_YR_TO_KM_S


# Vector transforms

def unit_vector(ra_deg: float, dec_deg: float) -> np.ndarray:
    """Unit vector pointing at (RA, Dec)."""
    ra = np.radians(ra_deg)
    dec = np.radians(dec_deg)
    return np.array([np.cos(dec) * np.cos(ra),
                     np.cos(dec) * np.sin(ra),
                     np.sin(dec)])


def to_cartesian(ra_deg: float, dec_deg: float, distance_au: float) -> np.ndarray:
    """Cartesian position in AU of a star at (RA, Dec, distance)."""
    return distance_au * unit_vector(ra_deg, dec_deg)


def tangent_plane_basis(ra_deg: float, dec_deg: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Local sky basis at a position.

    Returns:
        (east, north): unit vectors along increasing RA and increasing Dec.
        Both are orthogonal to the line of sight and to each other.
    """
    ra = np.radians(ra_deg)
    dec = np.radians(dec_deg)
    east = np.array([-np.sin(ra), np.cos(ra), 0.0])
    north = np.array([-np.sin(dec) * np.cos(ra),
                      -np.sin(dec) * np.sin(ra),
                      np.cos(dec)])
    return east, north


def direction_and_norm(vector: np.ndarray) -> Tuple[np.ndarray, float]:
    """
    Unit direction and Euclidean length of a 3-vector.

    Components are rescaled by the largest magnitude first, so the direction
    stays finite even when the length overflows to inf. A zero vector gives a
    zero direction.

    Raises:
        ValueError: If any component is NaN or infinite
    """
    vector = np.asarray(vector, dtype=float)
    if not np.all(np.isfinite(vector)):
        raise ValueError(f"Cannot normalise non-finite vector {vector}")
    scale = float(np.max(np.abs(vector)))
    if scale == 0.0:
        return np.zeros(3), 0.0
    scaled = vector / scale
    scaled_norm = math.hypot(*scaled)
    return scaled / scaled_norm, scale * scaled_norm


def from_cartesian(position: np.ndarray) -> Tuple[float, float, float]:
    """
    Convert a Cartesian position back to sky coordinates.

    Args:
        position: Position vector in AU

    Returns:
        (ra_deg in [0, 360), dec_deg in [-90, 90], distance_au). A zero vector
        maps to (0, 0, 0). The distance is inf when the length overflows.

    Raises:
        ValueError: If the position has a non-finite component
    """
    direction, r = direction_and_norm(position)
    if r == 0.0:
        return 0.0, 0.0, 0.0

    x, y, z = (float(c) for c in direction)
    ra_deg = float(np.degrees(np.arctan2(y, x))) % 360.0
    # -0.0 % 360 and tiny negatives can land exactly on 360.0
    if ra_deg >= 360.0:
        ra_deg = 0.0
    dec_deg = float(np.degrees(np.arcsin(np.clip(z, -1.0, 1.0))))
    return ra_deg, dec_deg, r


def angular_separation(ra1_deg: ArrayLike, dec1_deg: ArrayLike,
                       ra2_deg: ArrayLike, dec2_deg: ArrayLike) -> ArrayLike:
    """
    Great-circle separation in degrees using the spherical law of cosines.

    The cosine is clamped to [-1, 1] before ``arccos``. Identical positions
    give exactly zero and the result is symmetric in its arguments.
    """
    ra1 = np.radians(ra1_deg)
    dec1 = np.radians(dec1_deg)
    ra2 = np.radians(ra2_deg)
    dec2 = np.radians(dec2_deg)

    cos_sep = (np.sin(dec1) * np.sin(dec2)
               + np.cos(dec1) * np.cos(dec2) * np.cos(ra1 - ra2))
    separation = np.degrees(np.arccos(np.clip(cos_sep, -1.0, 1.0)))

    identical = np.logical_and(np.equal(ra1_deg, ra2_deg), np.equal(dec1_deg, dec2_deg))
    separation = np.where(identical, 0.0, separation)

    if np.ndim(separation) == 0:
        return float(separation)
    return separation


def equatorial_to_galactic(ra_deg: ArrayLike, dec_deg: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
    """
    Approximate J2000 equatorial to galactic conversion.

    Uses a single rotation defined by the north galactic pole and the galactic
    longitude of the north celestial pole. Accurate to a few hundredths of a
    degree, intended for display only.

    Returns:
        (l_deg in [0, 360), b_deg in [-90, 90])
    """
    ra = np.radians(ra_deg)
    dec = np.radians(dec_deg)
    ra_pole = np.radians(GALACTIC_POLE_RA_DEG)
    dec_pole = np.radians(GALACTIC_POLE_DEC_DEG)
    l_ncp = np.radians(GALACTIC_NODE_LONGITUDE_DEG)

    sin_b = (np.sin(dec) * np.sin(dec_pole)
             + np.cos(dec) * np.cos(dec_pole) * np.cos(ra - ra_pole))
    b = np.arcsin(np.clip(sin_b, -1.0, 1.0))

    y = np.cos(dec) * np.sin(ra - ra_pole)
    x = np.sin(dec) * np.cos(dec_pole) - np.cos(dec) * np.sin(dec_pole) * np.cos(ra - ra_pole)
    l = (l_ncp - np.arctan2(y, x)) % (2 * np.pi)

    l_deg = np.degrees(l)
    b_deg = np.degrees(b)
    if np.ndim(l_deg) == 0:
        return float(l_deg), float(b_deg)
    return l_deg, b_deg
