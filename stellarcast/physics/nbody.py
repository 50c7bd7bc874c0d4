"""
Fixed-step symplectic integration of mutually gravitating point masses.

Kick-drift-kick leapfrog in AU, years and solar masses (G = 4*pi^2). The
integrator is independent of the per-star prediction pipeline and can be used
for any small system of bodies.
"""

import logging
from typing import List, Sequence

import numpy as np

from .kepler import StateVector
from ..config import GRAVITATIONAL_CONSTANT, MIN_SEPARATION_FLOOR_AU

logger = logging.getLogger(__name__)


def pairwise_accelerations(positions: np.ndarray, masses: np.ndarray,
                           G: float = GRAVITATIONAL_CONSTANT) -> np.ndarray:
    """
    Gravitational acceleration on every body from every other body.

    Args:
        positions: (N, 3) positions in AU
        masses: (N,) masses in solar masses
        G: Gravitational constant in AU^3 / (M_sun yr^2)

    Returns:
        (N, 3) accelerations in AU/yr^2. Pairs closer than
        MIN_SEPARATION_FLOOR_AU contribute nothing.
    """
    # diff[i, j] = r_j - r_i
    diff = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    distance = np.linalg.norm(diff, axis=2)
    valid = distance > MIN_SEPARATION_FLOOR_AU
    inv_cube = np.zeros_like(distance)
    inv_cube[valid] = 1.0 / distance[valid] ** 3
    weights = G * masses[np.newaxis, :] * inv_cube
    return np.einsum('ij,ijk->ik', weights, diff)


def total_energy(states: Sequence[StateVector], masses: Sequence[float],
                 G: float = GRAVITATIONAL_CONSTANT) -> float:
    """Kinetic plus pairwise potential energy of the system (M_sun AU^2/yr^2)."""
    positions = np.array([s.position for s in states], dtype=float)
    velocities = np.array([s.velocity for s in states], dtype=float)
    masses = np.asarray(masses, dtype=float)

    kinetic = 0.5 * float(np.sum(masses * np.sum(velocities ** 2, axis=1)))
    potential = 0.0
    n = len(masses)
    for i in range(n):
        for j in range(i + 1, n):
            r = float(np.linalg.norm(positions[j] - positions[i]))
            if r > MIN_SEPARATION_FLOOR_AU:
                potential -= G * masses[i] * masses[j] / r
    return kinetic + potential


def integrate_nbody(states: Sequence[StateVector], masses: Sequence[float],
                    dt: float, steps: int,
                    G: float = GRAVITATIONAL_CONSTANT) -> List[StateVector]:
    """
    Advance N bodies by ``steps`` leapfrog steps of ``dt`` years.

    Each step is a half velocity kick, a full position drift and a second
    half kick, which keeps the scheme symplectic and time reversible.

    Args:
        states: Initial state of each body
        masses: Mass of each body in solar masses
        dt: Step size in years
        steps: Number of steps (0 returns copies of the inputs)
        G: Gravitational constant

    Returns:
        Final state of each body, in input order

    Raises:
        ValueError: If inputs are inconsistent (length mismatch, negative mass or steps)
    """
    if len(states) != len(masses):
        raise ValueError(f"Got {len(states)} states but {len(masses)} masses")
    if steps < 0:
        raise ValueError(f"Step count must be non-negative, got {steps}")

    mass_array = np.asarray(masses, dtype=float)
    if np.any(mass_array < 0) or not np.all(np.isfinite(mass_array)):
        raise ValueError("Masses must be finite and non-negative")

    positions = np.array([s.position for s in states], dtype=float).reshape(-1, 3)
    velocities = np.array([s.velocity for s in states], dtype=float).reshape(-1, 3)

    acceleration = pairwise_accelerations(positions, mass_array, G)
    for _ in range(steps):
        velocities += 0.5 * dt * acceleration
        positions += dt * velocities
        acceleration = pairwise_accelerations(positions, mass_array, G)
        velocities += 0.5 * dt * acceleration

    logger.debug(f"Integrated {len(mass_array)} bodies for {steps} steps of {dt} yr")
    return [StateVector(p, v) for p, v in zip(positions, velocities)]
