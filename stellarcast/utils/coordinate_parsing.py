# stellarcast/utils/coordinate_parsing.py
"""
Coordinate parsing utilities for command line arguments.

RA and Dec may be given either as decimal degrees or in sexagesimal notation
("06:45:08.9", "06h45m08.9s", "-16:42:58", "-16d42m58s"). Sexagesimal RA is
read as hours, sexagesimal Dec as degrees.
"""

import logging
import re
from typing import Tuple

from astropy.coordinates import Angle
import astropy.units as u

from ..exceptions import ConfigurationError
from ..config import MIN_RA_DEG, MAX_RA_DEG, MIN_DEC_DEG, MAX_DEC_DEG

log = logging.getLogger(__name__)

_DECIMAL_PATTERN = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')


def _is_decimal(text: str) -> bool:
    return bool(_DECIMAL_PATTERN.match(text))


def parse_ra(value: str) -> float:
    """
    Parse a right ascension string into degrees.

    Args:
        value: Decimal degrees or sexagesimal hours

    Returns:
        RA in degrees within [0, 360)

    Raises:
        ConfigurationError: If the value cannot be parsed or is out of range

    Examples:
        >>> parse_ra("101.287155")
        101.287155
        >>> round(parse_ra("06:45:08.917"), 4)
        101.2872
    """
    if value is None or not str(value).strip():
        raise ConfigurationError("Empty RA value provided")
    text = str(value).strip()

    if _is_decimal(text):
        ra_deg = float(text)
    else:
        try:
            ra_deg = Angle(text, unit=u.hourangle).degree
        except (ValueError, u.UnitsError) as e:
            raise ConfigurationError(f"Could not parse RA '{value}'") from e

    if not (MIN_RA_DEG <= ra_deg <= MAX_RA_DEG):
        raise ConfigurationError(
            f"RA must be between {MIN_RA_DEG:.1f} and {MAX_RA_DEG:.1f} degrees. Got: {ra_deg}"
        )
    return float(ra_deg % 360.0)


def parse_dec(value: str) -> float:
    """
    Parse a declination string into degrees.

    Raises:
        ConfigurationError: If the value cannot be parsed or is out of range
    """
    if value is None or not str(value).strip():
        raise ConfigurationError("Empty Dec value provided")
    text = str(value).strip()

    if _is_decimal(text):
        dec_deg = float(text)
    else:
        try:
            dec_deg = Angle(text, unit=u.deg).degree
        except (ValueError, u.UnitsError) as e:
            raise ConfigurationError(f"Could not parse Dec '{value}'") from e

    if not (MIN_DEC_DEG <= dec_deg <= MAX_DEC_DEG):
        raise ConfigurationError(
            f"Dec must be between {MIN_DEC_DEG:.1f} and +{MAX_DEC_DEG:.1f} degrees. Got: {dec_deg}"
        )
    return float(dec_deg)


def parse_coordinates(ra_value: str, dec_value: str) -> Tuple[float, float]:
    """Parse an RA/Dec pair, returning degrees."""
    ra_deg = parse_ra(ra_value)
    dec_deg = parse_dec(dec_value)
    log.debug(f"Parsed coordinates RA={ra_deg:.6f}, Dec={dec_deg:.6f}")
    return ra_deg, dec_deg
