# stellarcast/predictor/reporting.py
"""
Console presentation of prediction results.

Independent of the prediction logic; functions here only read result objects
and print them.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..config import CLI_DISPLAY_LINE_WIDTH, CLI_MAX_TABLE_ROWS
from ..utils.io import format_coordinates_astropy
from .results import PredictionPoint, PredictionResult

log = logging.getLogger(__name__)


def format_value_with_band(value: Optional[float], lower: Optional[float], upper: Optional[float],
                           precision: int = 4) -> str:
    """
    Format a value with its asymmetric percentile band.

    Returns:
        "value (+up/-down)" or just "value" without a band, "N/A" for None
    """
    if value is None:
        return "N/A"
    value_str = f"{value:.{precision}f}"
    if lower is None or upper is None:
        return value_str
    return f"{value_str} (+{upper - value:.{precision}f}/-{value - lower:.{precision}f})"


def _select_rows(predictions: Sequence[PredictionPoint], max_rows: int) -> List[PredictionPoint]:
    """Evenly thin the table, always keeping the first and last point."""
    if len(predictions) <= max_rows:
        return list(predictions)
    stride = (len(predictions) - 1) / (max_rows - 1)
    indices = sorted({round(i * stride) for i in range(max_rows)})
    return [predictions[i] for i in indices]


def print_prediction_report(result: PredictionResult, max_rows: int = CLI_MAX_TABLE_ROWS) -> None:
    """Print summary, diagnostics and a thinned trajectory table for one result."""
    summary = result.summary
    diagnostics = result.diagnostics

    print("\n" + "=" * CLI_DISPLAY_LINE_WIDTH)
    print(result.summary_text)
    print("=" * CLI_DISPLAY_LINE_WIDTH)
    print(f"Mode:              {result.mode}")
    print(f"Initial position:  {format_coordinates_astropy(summary.initial_ra, summary.initial_dec)}")
    print(f"Final position:    {format_coordinates_astropy(summary.final_ra, summary.final_dec)}")
    print(f"Displacement:      {summary.total_displacement_arcsec:.3f} arcsec "
          f"(RA {summary.ra_displacement_arcsec:+.3f}, Dec {summary.dec_displacement_arcsec:+.3f})")
    print(f"Tangential vel.:   avg {summary.average_tangential_velocity_kms:.3f} km/s, "
          f"max {summary.max_tangential_velocity_kms:.3f} km/s")
    print(f"Distance:          {summary.initial_distance_ly:.4f} -> {summary.final_distance_ly:.4f} ly "
          f"({summary.distance_change_ly:+.6f} ly)")
    print(f"Epoch mismatch:    {diagnostics.epoch_mismatch_arcsec:.6f} arcsec")
    if diagnostics.semi_major_axis_au is not None:
        print(f"Bound orbit:       a = {diagnostics.semi_major_axis_au:.6g} AU, e = {diagnostics.eccentricity:.6f}")
    if result.uncertainty_bands:
        print(f"Monte Carlo:       {diagnostics.mc_samples_used}/{diagnostics.mc_samples_requested} "
              f"samples used (seed {diagnostics.mc_seed})")
    else:
        print("Monte Carlo:       no uncertainty bands")

    bands = {band.time: band for band in result.uncertainty_bands}
    final_band = result.uncertainty_bands[-1] if result.uncertainty_bands else None
    if final_band is not None:
        print(f"Final RA band:     {format_value_with_band(final_band.ra_p50, final_band.ra_p16, final_band.ra_p84, 6)} deg")
        print(f"Final Dec band:    {format_value_with_band(final_band.dec_p50, final_band.dec_p16, final_band.dec_p84, 6)} deg")

    print("-" * CLI_DISPLAY_LINE_WIDTH)
    header = ('t [yr]', 'RA [deg]', 'Dec [deg]', 'd [ly]', 'sep ["]', 'sep p84')
    print(f"{header[0]:>9} {header[1]:>12} {header[2]:>12} {header[3]:>10} {header[4]:>10} {header[5]:>10}")
    for point in _select_rows(result.predictions, max_rows):
        band = bands.get(point.time)
        sep_p84 = f"{band.separation_p84_arcsec:10.4f}" if band else f"{'N/A':>10}"
        print(f"{point.time:9.2f} {point.ra:12.6f} {point.dec:12.6f} {point.distance_ly:10.4f} "
              f"{point.angular_separation_arcsec:10.4f} {sep_p84}")
    print("-" * CLI_DISPLAY_LINE_WIDTH)


def print_error_summary(total_stars: int, successful_count: int, error_summary: Dict[str, List[str]]) -> None:
    """
    Print a detailed summary of processing results and errors.

    Args:
        total_stars: Total number of stars requested
        successful_count: Number of successful predictions
        error_summary: Dictionary mapping error types to affected star names
    """
    failed_count = sum(len(names) for names in error_summary.values())

    print(f"\nProcessed {total_stars} stars.")
    print(f"Success: {successful_count}")
    print(f"Failures: {failed_count}")

    if error_summary:
        print("\nError breakdown:")
        for error_type, names in error_summary.items():
            print(f"  {error_type}: {len(names)} stars")
            if len(names) <= 5:
                print(f"    {', '.join(names)}")
            else:
                print(f"    {', '.join(names[:3])}, ... and {len(names)-3} more")
