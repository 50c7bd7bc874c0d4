"""
Configuration constants for StellarCast.

This module centralizes all configuration parameters used throughout the application,
making them easily configurable and maintainable.
"""

import math

# Unit Conversions
# Values follow the reference forecasting pipeline so outputs stay comparable
AU_TO_PC = 4.8481368e-6                      # Astronomical units to parsecs
PC_TO_AU = 1.0 / AU_TO_PC                    # Parsecs to astronomical units
PC_TO_LY = 3.26156                           # Parsecs to light-years
MAS_TO_RAD = math.pi / (180.0 * 3600.0 * 1000.0)  # Milliarcseconds to radians
KM_S_TO_AU_YR = 0.210945                     # km/s to AU/yr
AU_YR_TO_KM_S = 1.0 / KM_S_TO_AU_YR          # AU/yr to km/s
ARCSEC_PER_DEGREE = 3600.0
MAS_PER_ARCSEC = 1000.0

# Gravitational Parameters (AU^3 / (M_sun yr^2))
GRAVITATIONAL_CONSTANT = 4.0 * math.pi ** 2  # G in AU, M_sun, yr units
SOLAR_MU = GRAVITATIONAL_CONSTANT            # mu for a one-solar-mass central body
DEFAULT_SYSTEM_MASS_SOLAR = 1.0              # Binary total mass when catalog gives none

# Universal-Variable Kepler Solver
DEFAULT_KEPLER_TOLERANCE = 1e-12             # Convergence tolerance on |delta chi|
DEFAULT_KEPLER_MAX_ITERATIONS = 50           # Maximum Newton-Raphson iterations
KEPLER_INITIAL_GUESS_FLOOR = 1e-8            # chi_0 when sqrt(mu)*|alpha|*dt is zero
STUMPFF_SERIES_THRESHOLD = 1e-8              # |z| below which the series expansion is used
KEPLER_LOGGING_PRECISION = 6                 # Decimal places for logging

# N-Body Integrator
MIN_SEPARATION_FLOOR_AU = 1e-9               # Pairs closer than this exert no force
MIN_COS_DEC = 1e-9                           # Floor on cos(dec) in the small-angle RA offset

# Propagation Safeguards
MIN_DISTANCE_AU = 1.0                        # Distance clamp when radial motion crosses zero
MIN_POSITION_NORM_AU = 1e-12                 # Below this a state vector is degenerate

# Coordinate Validation
MIN_RA_DEG = 0.0
MAX_RA_DEG = 360.0
MIN_DEC_DEG = -90.0
MAX_DEC_DEG = 90.0
MIN_ECCENTRICITY = 0.0
MAX_ECCENTRICITY = 1.0                       # Exclusive upper bound for bound orbits
MAX_DERIVED_ECCENTRICITY = 0.999999          # Cap on eccentricities derived from state vectors

# Approximate Galactic Frame (J2000 pole and node, display only)
GALACTIC_POLE_RA_DEG = 192.85948
GALACTIC_POLE_DEC_DEG = 27.12825
GALACTIC_NODE_LONGITUDE_DEG = 122.93192

# Prediction Defaults
DEFAULT_TIME_PERIOD_YEARS = 100.0
DEFAULT_TIME_STEPS = 50
DEFAULT_HIGH_FIDELITY = True
MIN_TIME_STEPS = 1

# Monte Carlo Configuration
DEFAULT_MC_SAMPLES = 200                     # Default number of Monte Carlo samples
MC_RANDOM_SEED = 42                          # For reproducible results
MC_PERCENTILES = (16.0, 50.0, 84.0)          # Lower, median and upper band percentiles
DEFAULT_MC_WORKERS = 1                       # Sequential by default

# Fallback Error Estimates for Missing Uncertainties
# Each error is max(fraction * |value|, floor)
FALLBACK_ERROR_MODEL = {
    'parallax': {'fraction': 0.05, 'floor': 0.01},          # mas
    'pmra': {'fraction': 0.05, 'floor': 0.1},               # mas/yr
    'pmdec': {'fraction': 0.05, 'floor': 0.1},              # mas/yr
    'radial_velocity': {'fraction': 0.10, 'floor': 0.5},    # km/s
}

# Logging Configuration
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# I/O Configuration
ENCODING_FALLBACK_ORDER = ['utf-8', 'latin-1']  # Preferred encoding order for star lists
CATALOG_NAME_COLUMN = 'name'
DEFAULT_COORDINATE_PRECISION = 2             # decimal places for coordinate display
ASTROPY_FRAME = 'icrs'                       # Reference frame for coordinate formatting
ASTROPY_FORMAT = 'hmsdms'                    # Format string for coordinate display
DEGREES_PER_HOUR = 15.0
JSON_INDENT = 2

# CLI Configuration
DEFAULT_CONCURRENT_PREDICTIONS = 4
CLI_DISPLAY_LINE_WIDTH = 78
CLI_MAX_TABLE_ROWS = 11                      # Rows of the trajectory table shown on screen
