"""
Monte Carlo propagation of astrometric measurement errors.

The nominal star is resampled with independent Gaussian errors on parallax,
proper motions and radial velocity, every sample is propagated with the
standard kinematic model, and the spread of the ensemble is summarised per
time step by its 16th, 50th and 84th percentiles.

Functions:
    resolve_errors: Supplied or estimated 1-sigma errors for a record
    compute_uncertainty_bands: Percentile bands for RA, Dec and separation
    _calculate_band_statistics: Percentiles of a (samples, steps) array

Dependencies:
    numpy: Random sampling (Generator API) and percentiles
    concurrent.futures: Optional thread-parallel sample propagation
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Any

import numpy as np

from .coordinates import angular_separation
from .kinematics import Trajectory, propagate_kinematic
from ..config import (
    DEFAULT_MC_SAMPLES, MC_RANDOM_SEED, MC_PERCENTILES, DEFAULT_MC_WORKERS,
    FALLBACK_ERROR_MODEL, ARCSEC_PER_DEGREE
)
from ..data.source import StarRecord
from ..data.validators import is_valid_star_record

logger = logging.getLogger(__name__)

# Column order of the perturbation matrix
PERTURBED_FIELDS = ('parallax', 'pmra', 'pmdec', 'radial_velocity')


@dataclass
class ResolvedErrors:
    """1-sigma errors used for sampling; zero means the field is not perturbed."""
    parallax: float = 0.0
    pmra: float = 0.0
    pmdec: float = 0.0
    radial_velocity: float = 0.0
    estimated: List[str] = field(default_factory=list)

    @property
    def has_any_source(self) -> bool:
        return any(sigma > 0 for sigma in self.as_array())

    def as_array(self) -> np.ndarray:
        return np.array([self.parallax, self.pmra, self.pmdec, self.radial_velocity], dtype=float)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'parallaxError': self.parallax,
            'pmraError': self.pmra,
            'pmdecError': self.pmdec,
            'radialVelocityError': self.radial_velocity,
            'estimated': list(self.estimated),
        }


@dataclass
class UncertaintyBand:
    """Percentile spread of the Monte Carlo ensemble at one time step."""
    time: float
    ra_p16: float
    ra_p50: float
    ra_p84: float
    dec_p16: float
    dec_p50: float
    dec_p84: float
    separation_p16_arcsec: float
    separation_p50_arcsec: float
    separation_p84_arcsec: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'time': self.time,
            'raP16': self.ra_p16,
            'raP50': self.ra_p50,
            'raP84': self.ra_p84,
            'decP16': self.dec_p16,
            'decP50': self.dec_p50,
            'decP84': self.dec_p84,
            'separationP16Arcsec': self.separation_p16_arcsec,
            'separationP50Arcsec': self.separation_p50_arcsec,
            'separationP84Arcsec': self.separation_p84_arcsec,
        }


@dataclass
class UncertaintyResult:
    """Bands plus bookkeeping about the ensemble that produced them."""
    bands: List[UncertaintyBand]
    errors: ResolvedErrors
    samples_requested: int
    samples_used: int
    samples_dropped: int
    seed: Optional[int]


def _estimated_error(key: str, value: float) -> float:
    model = FALLBACK_ERROR_MODEL[key]
    return max(model['fraction'] * abs(value), model['floor'])


def resolve_errors(record: StarRecord, estimate_missing: bool = True) -> ResolvedErrors:
    """
    Determine the 1-sigma errors used to perturb a record.

    Supplied errors are used as is. Missing ones are estimated as
    max(fraction * |value|, floor) when ``estimate_missing`` is set. The
    radial velocity error is zero whenever the radial velocity itself is absent.

    Args:
        record: Star record
        estimate_missing: Whether to fill missing errors with heuristics

    Returns:
        ResolvedErrors with the list of estimated fields
    """
    resolved = ResolvedErrors()
    for key in PERTURBED_FIELDS:
        value = getattr(record, key)
        supplied = getattr(record, f'{key}_error')

        if value is None:
            # Only radial velocity is optional on a validated record
            if supplied:
                logger.debug(f"Ignoring {key} error for {record.name}: {key} itself is absent")
            continue

        if supplied is not None:
            setattr(resolved, key, float(supplied))
        elif estimate_missing:
            setattr(resolved, key, _estimated_error(key, value))
            resolved.estimated.append(key)

    if resolved.estimated:
        logger.debug(f"Estimated errors for {record.name}: {resolved.estimated}")
    return resolved


def _calculate_band_statistics(samples: np.ndarray) -> np.ndarray:
    """
    Percentiles of an ensemble, per time step.

    Args:
        samples: Array of shape (n_samples, n_steps)

    Returns:
        Array of shape (3, n_steps) for the 16th, 50th and 84th percentiles
    """
    return np.percentile(samples, MC_PERCENTILES, axis=0)


def _perturbed_record(record: StarRecord, deltas: np.ndarray) -> StarRecord:
    changes = {}
    for key, delta in zip(PERTURBED_FIELDS, deltas):
        if delta != 0.0:
            changes[key] = getattr(record, key) + float(delta)
    return replace(record, **changes) if changes else record


def _propagate_sample(record: StarRecord, times: np.ndarray) -> Optional[Trajectory]:
    """Propagate one perturbed record; None if it is not physical."""
    if not is_valid_star_record(record):
        logger.debug(f"Dropping Monte Carlo sample of {record.name}: failed validation "
                     f"(parallax={record.parallax})")
        return None
    trajectory = propagate_kinematic(record, times)
    if not trajectory.is_finite():
        logger.debug(f"Dropping Monte Carlo sample of {record.name}: non-finite trajectory")
        return None
    return trajectory


def compute_uncertainty_bands(record: StarRecord,
                              times: np.ndarray,
                              n_samples: int = DEFAULT_MC_SAMPLES,
                              seed: Optional[int] = MC_RANDOM_SEED,
                              estimate_missing: bool = True,
                              workers: int = DEFAULT_MC_WORKERS) -> UncertaintyResult:
    """
    Monte Carlo percentile bands of the standard model over ``times``.

    All Gaussian draws are taken up front from a single seeded generator, so
    the bands only depend on the record, the grid, ``n_samples`` and ``seed``,
    not on ``workers``.

    Args:
        record: Validated nominal star record
        times: Time grid in years
        n_samples: Number of Monte Carlo samples
        seed: Seed for numpy's default_rng (None for non-reproducible runs)
        estimate_missing: Whether missing errors are estimated
        workers: Threads used to propagate samples (1 = sequential)

    Returns:
        UncertaintyResult; ``bands`` is empty when no error source exists or
        every sample was dropped
    """
    times = np.asarray(times, dtype=float)
    errors = resolve_errors(record, estimate_missing)

    if not errors.has_any_source or n_samples <= 0:
        logger.info(f"No usable error sources for {record.name}; skipping uncertainty bands")
        return UncertaintyResult(bands=[], errors=errors, samples_requested=n_samples,
                                 samples_used=0, samples_dropped=0, seed=seed)

    rng = np.random.default_rng(seed)
    deltas = rng.standard_normal((n_samples, len(PERTURBED_FIELDS))) * errors.as_array()
    samples = [_perturbed_record(record, row) for row in deltas]

    logger.debug(f"Running Monte Carlo with {n_samples} samples for {record.name} "
                 f"({workers} worker{'s' if workers != 1 else ''})")
    if workers and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            trajectories = list(executor.map(lambda s: _propagate_sample(s, times), samples))
    else:
        trajectories = [_propagate_sample(s, times) for s in samples]

    kept = [t for t in trajectories if t is not None]
    dropped = n_samples - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped}/{n_samples} Monte Carlo samples for {record.name}")
    if not kept:
        logger.warning(f"All Monte Carlo samples for {record.name} were dropped; no bands produced")
        return UncertaintyResult(bands=[], errors=errors, samples_requested=n_samples,
                                 samples_used=0, samples_dropped=dropped, seed=seed)

    nominal = propagate_kinematic(record, times)
    ra_samples = np.array([t.ra for t in kept])
    dec_samples = np.array([t.dec for t in kept])
    separation_samples = angular_separation(ra_samples, dec_samples,
                                            nominal.ra[np.newaxis, :],
                                            nominal.dec[np.newaxis, :]) * ARCSEC_PER_DEGREE

    ra_stats = _calculate_band_statistics(ra_samples)
    dec_stats = _calculate_band_statistics(dec_samples)
    sep_stats = _calculate_band_statistics(separation_samples)

    bands = [
        UncertaintyBand(
            time=float(times[i]),
            ra_p16=float(ra_stats[0, i]), ra_p50=float(ra_stats[1, i]), ra_p84=float(ra_stats[2, i]),
            dec_p16=float(dec_stats[0, i]), dec_p50=float(dec_stats[1, i]), dec_p84=float(dec_stats[2, i]),
            separation_p16_arcsec=float(sep_stats[0, i]),
            separation_p50_arcsec=float(sep_stats[1, i]),
            separation_p84_arcsec=float(sep_stats[2, i]),
        )
        for i in range(len(times))
    ]
    return UncertaintyResult(bands=bands, errors=errors, samples_requested=n_samples,
                             samples_used=len(kept), samples_dropped=dropped, seed=seed)
