import argparse
import asyncio
import logging
import sys
import time
from typing import Any, Dict, List, Optional, Union

from ..config import (
    DEFAULT_TIME_PERIOD_YEARS, DEFAULT_TIME_STEPS, DEFAULT_MC_SAMPLES, MC_RANDOM_SEED,
    DEFAULT_MC_WORKERS, DEFAULT_CONCURRENT_PREDICTIONS, DEFAULT_LOG_FORMAT, CATALOG_NAME_COLUMN
)
from ..data.local_source import CsvCatalog
from ..data.source import StarRecord
from ..exceptions import ConfigurationError, CatalogError, DataLoadError, DataSaveError, ValidationError
from ..utils.coordinate_parsing import parse_coordinates
from ..utils.io import load_csv_data, save_predictions_to_csv, save_results_to_json
from .engine import PredictionConfig, PredictionOrchestrator
from .reporting import print_prediction_report, print_error_summary

log = logging.getLogger(__name__)

# Columns that mark a CSV row as a full star record rather than a bare name
_ASTROMETRIC_COLUMNS = ('ra', 'dec', 'parallax')


def _create_prediction_config(args: argparse.Namespace) -> PredictionConfig:
    """
    Create the prediction configuration from CLI arguments.

    Raises:
        ConfigurationError: If the resulting configuration is invalid
    """
    return PredictionConfig(
        time_period_years=args.years,
        time_steps=args.steps,
        high_fidelity=not args.standard,
        include_uncertainty=not args.no_uncertainty,
        mc_samples=args.samples,
        mc_seed=args.seed,
        estimate_missing_errors=not args.no_error_estimates,
        mc_workers=args.workers,
    ).validate()


def _star_from_arguments(args: argparse.Namespace) -> StarRecord:
    """Build a star record from the --ra/--dec/... options."""
    missing = [flag for flag, value in (('--parallax', args.parallax), ('--pmra', args.pmra),
                                        ('--pmdec', args.pmdec), ('--dec', args.dec))
               if value is None]
    if missing:
        raise ConfigurationError(f"Direct star input also requires: {', '.join(missing)}")

    ra_deg, dec_deg = parse_coordinates(args.ra, args.dec)
    data: Dict[str, Any] = {
        'name': args.label,
        'ra': ra_deg,
        'dec': dec_deg,
        'parallax': args.parallax,
        'pmra': args.pmra,
        'pmdec': args.pmdec,
        'radial_velocity': args.rv,
        'parallax_error': args.parallax_error,
        'pmra_error': args.pmra_error,
        'pmdec_error': args.pmdec_error,
        'radial_velocity_error': args.rv_error,
    }
    if args.period is not None:
        data.update({
            'has_orbital_motion': True,
            'orbital_period': args.period,
            'eccentricity': args.eccentricity,
            'inclination': args.inclination,
            'argument_of_periastron': args.omega,
            'system_mass': args.mass,
        })
    return StarRecord.from_dict(data)


def _collect_targets(args: argparse.Namespace) -> List[Union[str, StarRecord]]:
    """
    Determine which stars to predict from the parsed arguments.

    Raises:
        ConfigurationError: If no or conflicting target options were given
        DataLoadError: If the input file cannot be read
    """
    if args.ra is not None:
        if args.names or args.input_file:
            raise ConfigurationError("Use either --ra/--dec values, --name or an input file, not several")
        return [_star_from_arguments(args)]

    if args.names:
        if args.catalog is None:
            raise ConfigurationError("--name requires --catalog to resolve star names")
        return list(args.names)

    if args.input_file:
        log.info(f"Loading stars from: {args.input_file}")
        df = load_csv_data(args.input_file, required_column=CATALOG_NAME_COLUMN)
        if all(column in df.columns for column in _ASTROMETRIC_COLUMNS):
            return [StarRecord.from_dict(row) for row in df.to_dict(orient='records')]
        if args.catalog is None:
            raise ConfigurationError(
                f"{args.input_file} has no astrometric columns; pass --catalog to resolve its names")
        return [str(name) for name in df[CATALOG_NAME_COLUMN]]

    raise ConfigurationError("Specify a star with --ra/--dec/..., --name with --catalog, or an input file")


def _save_output(results, filepath: str) -> None:
    if filepath.lower().endswith('.json'):
        payload = results[0].to_dict() if len(results) == 1 else [r.to_dict() for r in results]
        save_results_to_json(payload, filepath)
    else:
        rows = [row for result in results for row in result.to_rows()]
        save_predictions_to_csv(rows, filepath)


def create_argument_parser():
    """Create command line argument parser with proper defaults from config."""
    parser = argparse.ArgumentParser(
        description='StellarCast Star Position Forecaster',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --ra 101.287155 --dec -16.716116 --parallax 379.21 --pmra -546.01 --pmdec -1223.07 --rv -7.6
  %(prog)s --ra 06:45:08.917 --dec=-16:42:58.02 --parallax 379.21 --pmra -546.01 --pmdec -1223.07 --standard
  %(prog)s --name Sirius --name Vega --catalog stars.csv --years 500 --output forecast.json
  %(prog)s stars.csv --steps 100 --output forecast.csv
        """
    )

    # Targets
    parser.add_argument('input_file', nargs='?', default=None,
                        help='CSV star list with a name column (full records, or names with --catalog).')
    parser.add_argument('--name', dest='names', action='append',
                        help='Star name to resolve through --catalog (repeatable).')
    parser.add_argument('--catalog',
                        help='CSV catalog used to resolve star names.')

    star_group = parser.add_argument_group('Direct Star Input')
    star_group.add_argument('--label', default='provided coordinates',
                            help='Name shown for a directly specified star.')
    star_group.add_argument('--ra', help='Right ascension (decimal degrees or sexagesimal hours).')
    star_group.add_argument('--dec', help='Declination (decimal or sexagesimal degrees).')
    star_group.add_argument('--parallax', type=float, help='Parallax in mas.')
    star_group.add_argument('--pmra', type=float, help='Proper motion in RA in mas/yr.')
    star_group.add_argument('--pmdec', type=float, help='Proper motion in Dec in mas/yr.')
    star_group.add_argument('--rv', type=float, help='Radial velocity in km/s.')
    star_group.add_argument('--parallax-error', type=float, help='Parallax 1-sigma error in mas.')
    star_group.add_argument('--pmra-error', type=float, help='pmra 1-sigma error in mas/yr.')
    star_group.add_argument('--pmdec-error', type=float, help='pmdec 1-sigma error in mas/yr.')
    star_group.add_argument('--rv-error', type=float, help='Radial velocity 1-sigma error in km/s.')

    binary_group = parser.add_argument_group('Binary Orbit Options')
    binary_group.add_argument('--period', type=float, help='Orbital period in years (enables orbital motion).')
    binary_group.add_argument('--eccentricity', type=float, help='Orbital eccentricity [0, 1).')
    binary_group.add_argument('--inclination', type=float, help='Orbital inclination in degrees.')
    binary_group.add_argument('--omega', type=float, default=0.0,
                              help='Argument of periastron in degrees (default: 0).')
    binary_group.add_argument('--mass', type=float, help='Total system mass in solar masses (default: 1).')

    # Prediction options
    parser.add_argument('--years', type=float, default=DEFAULT_TIME_PERIOD_YEARS,
                        help=f'Forecast window in years (default: {DEFAULT_TIME_PERIOD_YEARS})')
    parser.add_argument('--steps', type=int, default=DEFAULT_TIME_STEPS,
                        help=f'Number of time steps (default: {DEFAULT_TIME_STEPS})')
    parser.add_argument('--standard', action='store_true',
                        help='Use the linear proper-motion model instead of the high-fidelity model.')

    mc_group = parser.add_argument_group('Uncertainty Options')
    mc_group.add_argument('--no-uncertainty', action='store_true',
                          help='Skip Monte Carlo uncertainty bands.')
    mc_group.add_argument('--no-error-estimates', action='store_true',
                          help='Only use errors supplied with the star; do not estimate missing ones.')
    mc_group.add_argument('--samples', type=int, default=DEFAULT_MC_SAMPLES,
                          help=f'Monte Carlo samples (default: {DEFAULT_MC_SAMPLES})')
    mc_group.add_argument('--seed', type=int, default=MC_RANDOM_SEED,
                          help=f'Monte Carlo random seed (default: {MC_RANDOM_SEED})')
    mc_group.add_argument('--workers', type=int, default=DEFAULT_MC_WORKERS,
                          help=f'Threads for Monte Carlo propagation (default: {DEFAULT_MC_WORKERS})')

    # Output options
    parser.add_argument('--output', '-o',
                        help='Write results to a .json or .csv file.')
    parser.add_argument('--concurrent', type=int, default=DEFAULT_CONCURRENT_PREDICTIONS,
                        help=f'Maximum concurrent predictions (default: {DEFAULT_CONCURRENT_PREDICTIONS})')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging.')

    return parser


async def main_async(args: argparse.Namespace) -> int:
    """
    Main asynchronous function orchestrating a forecasting run.

    This function handles:
    1. Building the prediction configuration and the optional catalog.
    2. Collecting target stars from the arguments or an input file.
    3. Running predictions concurrently.
    4. Printing reports and saving the requested output.

    Returns:
        Process exit code (0 when at least one prediction succeeded)
    """
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO, format=DEFAULT_LOG_FORMAT)

    try:
        config = _create_prediction_config(args)
        catalog = CsvCatalog(args.catalog) if args.catalog else None
        targets = _collect_targets(args)
    except (ConfigurationError, CatalogError, DataLoadError, ValidationError) as e:
        log.error(f"{type(e).__name__}: {e}")
        return 1

    orchestrator = PredictionOrchestrator(catalog)
    log.info(f"Predicting {len(targets)} star(s) with up to {args.concurrent} concurrent tasks...")
    results, error_summary = await orchestrator.predict_many(targets, config, args.concurrent)

    for result in results:
        print_prediction_report(result)
    if len(targets) > 1 or error_summary:
        print_error_summary(len(targets), len(results), error_summary)

    if args.output and results:
        try:
            _save_output(results, args.output)
        except DataSaveError as e:
            log.error(f"Could not save results: {e}")
            return 1

    return 0 if results else 1


def main(args_list: Optional[List[str]] = None) -> int:
    """Main entry point for the forecasting CLI.

    Args:
        args_list: Optional list of command line arguments.
                  If None, will parse from sys.argv
    """
    parser = create_argument_parser()
    args = parser.parse_args(args_list)

    start_time = time.time()
    exit_code = asyncio.run(main_async(args))
    end_time = time.time()
    print(f"\nTotal execution time: {end_time - start_time:.2f} seconds")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
