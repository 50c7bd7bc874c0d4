"""
Prediction orchestration: validate a star, propagate it, summarise the result.

The orchestrator is stateless apart from its injected catalog, so one
instance can serve concurrent callers. The core ``predict`` call is plain
synchronous computation; the async helpers only schedule it for callers that
run an event loop.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import (
    DEFAULT_TIME_PERIOD_YEARS, DEFAULT_TIME_STEPS, DEFAULT_HIGH_FIDELITY, MIN_TIME_STEPS,
    DEFAULT_MC_SAMPLES, MC_RANDOM_SEED, DEFAULT_MC_WORKERS, DEFAULT_CONCURRENT_PREDICTIONS,
    ARCSEC_PER_DEGREE
)
from ..data.source import CatalogSource, StarRecord
from ..data.validators import validate_star_record
from ..exceptions import ConfigurationError, NumericalInstabilityError, ValidationError
from ..physics.coordinates import angular_separation, au_to_ly, equatorial_to_galactic
from ..physics.dynamics import DynamicalStats, propagate_dynamical
from ..physics.kinematics import Trajectory, propagate_kinematic
from ..physics.uncertainty import UncertaintyResult, ResolvedErrors, compute_uncertainty_bands
from .results import PredictionDiagnostics, PredictionPoint, PredictionResult, PredictionSummary

log = logging.getLogger(__name__)

StarInput = Union[StarRecord, Mapping[str, Any]]


class PredictionPhase(Enum):
    """Stages of a single prediction, in execution order."""
    VALIDATE = "validate"
    PROPAGATE = "propagate"
    SUMMARIZE = "summarize"


class PropagationMode(Enum):
    HIGH_FIDELITY = "high-fidelity"
    STANDARD = "standard"


@dataclass(frozen=True)
class PredictionConfig:
    """
    Options of a prediction run.

    Attributes:
        time_period_years: Length of the forecast window
        time_steps: Number of intervals; the result has time_steps + 1 points
        high_fidelity: Cartesian state-vector model if True, linear model otherwise
        include_uncertainty: Whether to run the Monte Carlo engine
        mc_samples: Monte Carlo ensemble size
        mc_seed: Seed of the Monte Carlo generator
        estimate_missing_errors: Fill missing astrometric errors heuristically
        mc_workers: Threads used for Monte Carlo propagation
    """
    time_period_years: float = DEFAULT_TIME_PERIOD_YEARS
    time_steps: int = DEFAULT_TIME_STEPS
    high_fidelity: bool = DEFAULT_HIGH_FIDELITY
    include_uncertainty: bool = True
    mc_samples: int = DEFAULT_MC_SAMPLES
    mc_seed: Optional[int] = MC_RANDOM_SEED
    estimate_missing_errors: bool = True
    mc_workers: int = DEFAULT_MC_WORKERS

    def validate(self) -> 'PredictionConfig':
        """
        Raises:
            ConfigurationError: If any option is outside its valid range
        """
        _require_integer("time_steps", self.time_steps)
        if self.time_steps < MIN_TIME_STEPS:
            raise ConfigurationError(f"time_steps must be >= {MIN_TIME_STEPS}, got {self.time_steps}")
        try:
            period = float(self.time_period_years)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"time_period_years must be numeric, got {self.time_period_years!r}") from e
        if not math.isfinite(period) or period <= 0:
            raise ConfigurationError(f"time_period_years must be finite and > 0, got {self.time_period_years}")
        if self.include_uncertainty:
            _require_integer("mc_samples", self.mc_samples)
            if self.mc_samples < 1:
                raise ConfigurationError(f"mc_samples must be >= 1, got {self.mc_samples}")
        _require_integer("mc_workers", self.mc_workers)
        if self.mc_workers < 1:
            raise ConfigurationError(f"mc_workers must be >= 1, got {self.mc_workers}")
        return self

    @property
    def mode(self) -> PropagationMode:
        return PropagationMode.HIGH_FIDELITY if self.high_fidelity else PropagationMode.STANDARD


def _require_integer(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def build_time_grid(time_period_years: float, time_steps: int) -> np.ndarray:
    """Uniform grid of time_steps + 1 epochs from 0 to time_period_years inclusive."""
    return np.linspace(0.0, float(time_period_years), int(time_steps) + 1)


def _wrapped_delta_deg(start: float, end: float) -> float:
    """Signed RA difference in degrees, wrapped into [-180, 180)."""
    return (end - start + 180.0) % 360.0 - 180.0


def build_prediction_points(trajectory: Trajectory) -> List[PredictionPoint]:
    """Convert a propagated trajectory into result points."""
    distance_ly = au_to_ly(trajectory.distance_au)
    separation = angular_separation(trajectory.ra[0], trajectory.dec[0],
                                    trajectory.ra, trajectory.dec) * ARCSEC_PER_DEGREE
    galactic_l, galactic_b = equatorial_to_galactic(trajectory.ra, trajectory.dec)
    separation = np.atleast_1d(separation)
    galactic_l = np.atleast_1d(galactic_l)
    galactic_b = np.atleast_1d(galactic_b)

    return [
        PredictionPoint(
            time=float(trajectory.times[i]),
            ra=float(trajectory.ra[i]),
            dec=float(trajectory.dec[i]),
            distance_ly=float(distance_ly[i]),
            tangential_velocity_kms=float(trajectory.tangential_velocity_kms[i]),
            radial_velocity_kms=float(trajectory.radial_velocity_kms[i]),
            total_velocity_kms=float(trajectory.total_velocity_kms[i]),
            angular_separation_arcsec=float(separation[i]),
            galactic_l=float(galactic_l[i]),
            galactic_b=float(galactic_b[i]),
        )
        for i in range(len(trajectory))
    ]


def summarize_predictions(predictions: Sequence[PredictionPoint]) -> PredictionSummary:
    """
    Aggregate statistics of a prediction series.

    Displacements are plain coordinate differences converted to arcsec, with
    the RA difference wrapped so a track crossing 0h is not counted as ~360 deg.
    """
    first = predictions[0]
    last = predictions[-1]

    ra_displacement = _wrapped_delta_deg(first.ra, last.ra) * ARCSEC_PER_DEGREE
    dec_displacement = (last.dec - first.dec) * ARCSEC_PER_DEGREE
    tangential = np.array([p.tangential_velocity_kms for p in predictions])

    return PredictionSummary(
        initial_ra=first.ra,
        initial_dec=first.dec,
        final_ra=last.ra,
        final_dec=last.dec,
        total_displacement_arcsec=float(math.hypot(ra_displacement, dec_displacement)),
        ra_displacement_arcsec=float(ra_displacement),
        dec_displacement_arcsec=float(dec_displacement),
        average_tangential_velocity_kms=float(np.mean(tangential)),
        max_tangential_velocity_kms=float(np.max(tangential)),
        initial_distance_ly=first.distance_ly,
        final_distance_ly=last.distance_ly,
        distance_change_ly=last.distance_ly - first.distance_ly,
    )


class PredictionOrchestrator:
    """
    Runs Validate -> Propagate -> Summarize for star records.

    The optional catalog resolves star names for ``predict_by_name`` and
    ``predict_many``; ``predict`` itself works on records supplied directly.
    """

    def __init__(self, catalog: Optional[CatalogSource] = None):
        """
        Args:
            catalog: Optional name resolver injected by the caller
        """
        self.catalog = catalog

    def predict(self, star: StarInput, config: Optional[PredictionConfig] = None) -> PredictionResult:
        """
        Forecast the motion of one star.

        Args:
            star: StarRecord or a mapping accepted by ``StarRecord.from_dict``
            config: Run options (defaults if None)

        Returns:
            The complete PredictionResult

        Raises:
            ValidationError: If the star record is missing or has invalid fields
            ConfigurationError: If the configuration is invalid
        """
        config = (config or PredictionConfig()).validate()

        # Validate
        if star is None:
            raise ValidationError("No star record supplied")
        record = star if isinstance(star, StarRecord) else StarRecord.from_dict(star)
        log.debug(f"[{PredictionPhase.VALIDATE.value}] {record.name}")
        validate_star_record(record)

        # Propagate
        log.debug(f"[{PredictionPhase.PROPAGATE.value}] {record.name} in {config.mode.value} mode "
                  f"over {config.time_period_years} yr / {config.time_steps} steps")
        times = build_time_grid(config.time_period_years, config.time_steps)
        trajectory, stats = self._propagate(record, times, config)
        uncertainty = self._uncertainty(record, times, config)

        # Summarize
        log.debug(f"[{PredictionPhase.SUMMARIZE.value}] {record.name}")
        predictions = build_prediction_points(trajectory)
        summary = summarize_predictions(predictions)
        diagnostics = self._diagnostics(record, predictions, config, stats, uncertainty)

        summary_text = (f"Orbital prediction for {record.name} over {config.time_period_years:.1f} years "
                        f"with {config.time_steps} time steps")
        log.info(f"{summary_text} ({config.mode.value}, displacement "
                 f"{summary.total_displacement_arcsec:.2f} arcsec)")

        return PredictionResult(
            star=record,
            predictions=predictions,
            summary=summary,
            diagnostics=diagnostics,
            mode=config.mode.value,
            time_period_years=float(config.time_period_years),
            time_steps=int(config.time_steps),
            uncertainty_bands=uncertainty.bands if uncertainty else [],
            summary_text=summary_text,
        )

    @staticmethod
    def _propagate(record: StarRecord, times: np.ndarray,
                   config: PredictionConfig) -> Tuple[Trajectory, DynamicalStats]:
        if config.high_fidelity:
            return propagate_dynamical(record, times)
        return propagate_kinematic(record, times), DynamicalStats()

    @staticmethod
    def _uncertainty(record: StarRecord, times: np.ndarray,
                     config: PredictionConfig) -> Optional[UncertaintyResult]:
        if not config.include_uncertainty:
            return None
        try:
            return compute_uncertainty_bands(
                record, times,
                n_samples=config.mc_samples,
                seed=config.mc_seed,
                estimate_missing=config.estimate_missing_errors,
                workers=config.mc_workers,
            )
        except (NumericalInstabilityError, ArithmeticError, ValueError) as e:
            log.warning(f"Uncertainty propagation failed for {record.name}: {e}")
            return UncertaintyResult(bands=[], errors=ResolvedErrors(), samples_requested=config.mc_samples,
                                     samples_used=0, samples_dropped=config.mc_samples, seed=config.mc_seed)

    @staticmethod
    def _diagnostics(record: StarRecord, predictions: Sequence[PredictionPoint], config: PredictionConfig,
                     stats: DynamicalStats, uncertainty: Optional[UncertaintyResult]) -> PredictionDiagnostics:
        mismatch = angular_separation(record.ra, record.dec,
                                      predictions[0].ra, predictions[0].dec) * ARCSEC_PER_DEGREE
        diagnostics = PredictionDiagnostics(
            mode=config.mode.value,
            epoch_mismatch_arcsec=float(mismatch),
            kepler_steps=stats.kepler_steps,
            drift_steps=stats.drift_steps,
            kepler_fallbacks=stats.kepler_fallbacks,
            binary_steps=stats.binary_steps,
            semi_major_axis_au=stats.semi_major_axis_au,
            eccentricity=stats.eccentricity,
        )
        if uncertainty is not None:
            diagnostics.mc_samples_requested = uncertainty.samples_requested
            diagnostics.mc_samples_used = uncertainty.samples_used
            diagnostics.mc_samples_dropped = uncertainty.samples_dropped
            diagnostics.mc_seed = uncertainty.seed
            diagnostics.resolved_errors = uncertainty.errors
        return diagnostics

    async def predict_by_name(self, name: str, config: Optional[PredictionConfig] = None) -> PredictionResult:
        """
        Resolve ``name`` through the catalog and predict it off the event loop.

        Raises:
            ConfigurationError: If no catalog was injected
            StarNotFoundError: If the catalog cannot resolve the name
            ValidationError: If the resolved record is invalid
        """
        if self.catalog is None:
            raise ConfigurationError("A catalog is required to predict stars by name")
        record = await self.catalog.get_star_record(name)
        return await asyncio.to_thread(self.predict, record, config)

    async def _predict_one(self, star: Union[str, StarInput], config: Optional[PredictionConfig],
                           semaphore: asyncio.Semaphore) -> PredictionResult:
        async with semaphore:
            if isinstance(star, str):
                return await self.predict_by_name(star, config)
            return await asyncio.to_thread(self.predict, star, config)

    async def predict_many(self, stars: Sequence[Union[str, StarInput]],
                           config: Optional[PredictionConfig] = None,
                           max_concurrent: int = DEFAULT_CONCURRENT_PREDICTIONS
                           ) -> Tuple[List[PredictionResult], Dict[str, List[str]]]:
        """
        Predict several stars concurrently.

        Args:
            stars: Star names (resolved through the catalog), records or mappings
            config: Shared run options
            max_concurrent: Maximum predictions in flight

        Returns:
            Tuple of (successful_results, error_summary) where error_summary
            maps exception type names to the affected star identifiers
        """
        semaphore = asyncio.Semaphore(max_concurrent)
        tasks = [self._predict_one(star, config, semaphore) for star in stars]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results = []
        error_summary: Dict[str, List[str]] = {}
        for star, outcome in zip(stars, outcomes):
            if isinstance(outcome, Exception):
                label = _star_label(star)
                error_type = type(outcome).__name__
                error_summary.setdefault(error_type, []).append(label)
                log.error(f"Failed to predict {label}: {error_type}: {outcome}")
            else:
                results.append(outcome)
        return results, error_summary


def _star_label(star: Union[str, StarInput]) -> str:
    if isinstance(star, str):
        return star
    if isinstance(star, StarRecord):
        return star.name
    return str(star.get('name', 'unnamed'))


def predict_star(star: StarInput, **options: Any) -> PredictionResult:
    """Convenience wrapper: ``predict_star(record, time_steps=10, high_fidelity=False)``."""
    return PredictionOrchestrator().predict(star, PredictionConfig(**options))
