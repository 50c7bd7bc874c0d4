"""
Validation of star records before any propagation is attempted.

A record that passes ``validate_star_record`` is guaranteed to produce finite
distances and velocities in the propagators.
"""

import logging
import math
from typing import List, Optional

from .source import StarRecord
from ..config import (
    MIN_DEC_DEG, MAX_DEC_DEG, MIN_ECCENTRICITY, MAX_ECCENTRICITY, MAS_TO_RAD, AU_YR_TO_KM_S
)
from ..exceptions import ValidationError

log = logging.getLogger(__name__)


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def collect_validation_errors(record: StarRecord) -> List[str]:
    """
    Collect every validation problem of a record without raising.

    Args:
        record: Star record to check

    Returns:
        List of human-readable problems, empty when the record is valid
    """
    problems = []

    if record.ra is None or record.dec is None:
        problems.append("RA and Dec are required")
    else:
        if not (_is_finite(record.ra) and _is_finite(record.dec)):
            problems.append("RA and Dec must be finite")
        elif not (MIN_DEC_DEG <= record.dec <= MAX_DEC_DEG):
            problems.append(f"Dec {record.dec} outside valid range [{MIN_DEC_DEG}, {MAX_DEC_DEG}]")

    if record.parallax is None or not _is_finite(record.parallax) or record.parallax <= 0:
        problems.append("Valid parallax is required (must be > 0 mas)")

    if record.pmra is None or record.pmdec is None:
        problems.append("Proper motions are required")
    elif not (_is_finite(record.pmra) and _is_finite(record.pmdec)):
        problems.append("Proper motions must be finite")

    if record.radial_velocity is not None and not _is_finite(record.radial_velocity):
        problems.append("Radial velocity must be finite when provided")

    if not problems:
        problems.extend(_derived_value_problems(record))

    for key in ('parallax_error', 'pmra_error', 'pmdec_error', 'radial_velocity_error'):
        value = getattr(record, key)
        if value is not None and (not _is_finite(value) or value < 0):
            problems.append(f"{key} must be a finite non-negative number")

    if record.has_orbital_motion:
        problems.extend(_orbital_element_problems(record))

    return problems


def _derived_value_problems(record: StarRecord) -> List[str]:
    """Distance and space motion implied by otherwise valid astrometry must be finite."""
    distance_au = record.distance_au
    if not math.isfinite(distance_au):
        return [f"Parallax {record.parallax} mas gives a non-finite distance"]
    tangential_kms = record.total_proper_motion * MAS_TO_RAD * distance_au * AU_YR_TO_KM_S
    if not math.isfinite(tangential_kms):
        return ["Proper motion and distance give a non-finite tangential velocity"]
    return []


def _orbital_element_problems(record: StarRecord) -> List[str]:
    problems = []
    if record.orbital_period is None or record.eccentricity is None or record.inclination is None:
        problems.append("Orbital motion requires orbital period, eccentricity and inclination")
        return problems

    if not _is_finite(record.orbital_period) or record.orbital_period <= 0:
        problems.append(f"Orbital period {record.orbital_period} must be > 0 years")
    if not _is_finite(record.eccentricity) or not (MIN_ECCENTRICITY <= record.eccentricity < MAX_ECCENTRICITY):
        problems.append(
            f"Eccentricity {record.eccentricity} outside valid range [{MIN_ECCENTRICITY}, {MAX_ECCENTRICITY})"
        )
    if not _is_finite(record.inclination):
        problems.append("Inclination must be finite")
    if not _is_finite(record.argument_of_periastron):
        problems.append("Argument of periastron must be finite")
    if record.system_mass is not None and (not _is_finite(record.system_mass) or record.system_mass <= 0):
        problems.append(f"System mass {record.system_mass} must be > 0 solar masses")
    return problems


def validate_star_record(record: StarRecord) -> StarRecord:
    """
    Validate a star record, raising on the first call site that needs it.

    Args:
        record: Star record to validate

    Returns:
        The same record, for chaining

    Raises:
        ValidationError: If any required field is missing or invalid
    """
    problems = collect_validation_errors(record)
    if problems:
        log.debug(f"Validation failed for {record.name}: {problems}")
        raise ValidationError(f"Invalid star record '{record.name}': " + "; ".join(problems))
    return record


def is_valid_star_record(record: StarRecord) -> bool:
    return not collect_validation_errors(record)
