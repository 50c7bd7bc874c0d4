"""
Typed result structures of a prediction run.

Every structure offers ``to_dict`` with the camelCase keys used by JSON
consumers of the prediction service.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from ..data.source import StarRecord
from ..physics.uncertainty import UncertaintyBand, ResolvedErrors


@dataclass
class PredictionPoint:
    """Predicted state of the star at one time step."""
    time: float
    ra: float
    dec: float
    distance_ly: float
    tangential_velocity_kms: float
    radial_velocity_kms: float
    total_velocity_kms: float
    angular_separation_arcsec: float
    galactic_l: float
    galactic_b: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'time': self.time,
            'ra': self.ra,
            'dec': self.dec,
            'distanceLy': self.distance_ly,
            'tangentialVelocityKmS': self.tangential_velocity_kms,
            'radialVelocityKmS': self.radial_velocity_kms,
            'totalVelocityKmS': self.total_velocity_kms,
            'angularSeparationArcsec': self.angular_separation_arcsec,
            'galacticL': self.galactic_l,
            'galacticB': self.galactic_b,
        }


@dataclass
class PredictionSummary:
    """Aggregate motion statistics over the whole trajectory."""
    initial_ra: float
    initial_dec: float
    final_ra: float
    final_dec: float
    total_displacement_arcsec: float
    ra_displacement_arcsec: float
    dec_displacement_arcsec: float
    average_tangential_velocity_kms: float
    max_tangential_velocity_kms: float
    initial_distance_ly: float
    final_distance_ly: float
    distance_change_ly: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'initialRa': self.initial_ra,
            'initialDec': self.initial_dec,
            'finalRa': self.final_ra,
            'finalDec': self.final_dec,
            'totalDisplacementArcsec': self.total_displacement_arcsec,
            'raDisplacementArcsec': self.ra_displacement_arcsec,
            'decDisplacementArcsec': self.dec_displacement_arcsec,
            'averageTangentialVelocityKmS': self.average_tangential_velocity_kms,
            'maxTangentialVelocityKmS': self.max_tangential_velocity_kms,
            'initialDistanceLy': self.initial_distance_ly,
            'finalDistanceLy': self.final_distance_ly,
            'distanceChangeLy': self.distance_change_ly,
        }


@dataclass
class PredictionDiagnostics:
    """How the prediction was computed and how well t=0 matches the catalog."""
    mode: str
    epoch_mismatch_arcsec: float
    mc_samples_requested: int = 0
    mc_samples_used: int = 0
    mc_samples_dropped: int = 0
    mc_seed: Optional[int] = None
    kepler_steps: int = 0
    drift_steps: int = 0
    kepler_fallbacks: int = 0
    binary_steps: int = 0
    semi_major_axis_au: Optional[float] = None
    eccentricity: Optional[float] = None
    resolved_errors: Optional[ResolvedErrors] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode,
            'epochMismatchArcsec': self.epoch_mismatch_arcsec,
            'monteCarlo': {
                'samplesRequested': self.mc_samples_requested,
                'samplesUsed': self.mc_samples_used,
                'samplesDropped': self.mc_samples_dropped,
                'seed': self.mc_seed,
                'errors': self.resolved_errors.to_dict() if self.resolved_errors else None,
            },
            'propagation': {
                'keplerSteps': self.kepler_steps,
                'driftSteps': self.drift_steps,
                'keplerFallbacks': self.kepler_fallbacks,
                'binarySteps': self.binary_steps,
            },
            'boundOrbit': {
                'semiMajorAxisAu': self.semi_major_axis_au,
                'eccentricity': self.eccentricity,
            },
        }


@dataclass
class PredictionResult:
    """Complete output of one prediction."""
    star: StarRecord
    predictions: List[PredictionPoint]
    summary: PredictionSummary
    diagnostics: PredictionDiagnostics
    mode: str
    time_period_years: float
    time_steps: int
    uncertainty_bands: List[UncertaintyBand] = field(default_factory=list)
    summary_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summaryText': self.summary_text,
            'starData': self.star.to_dict(),
            'predictions': [p.to_dict() for p in self.predictions],
            'uncertaintyBands': [b.to_dict() for b in self.uncertainty_bands],
            'summary': self.summary.to_dict(),
            'diagnostics': self.diagnostics.to_dict(),
            'mode': self.mode,
            'timePeriodYears': self.time_period_years,
            'timeSteps': self.time_steps,
        }

    def to_rows(self) -> List[Dict[str, Any]]:
        """Flatten predictions (and matching bands) into CSV-ready rows."""
        bands = {band.time: band for band in self.uncertainty_bands}
        rows = []
        for point in self.predictions:
            row = {'name': self.star.name, 'mode': self.mode}
            row.update(point.to_dict())
            band = bands.get(point.time)
            if band is not None:
                band_data = band.to_dict()
                band_data.pop('time')
                row.update(band_data)
            rows.append(row)
        return rows
