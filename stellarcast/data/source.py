from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Dict, Any, Optional, List, Mapping
import math

from ..config import PC_TO_AU, PC_TO_LY, DEFAULT_SYSTEM_MASS_SOLAR
from ..exceptions import ValidationError


# Wire names used by catalog exports and JSON payloads, mapped to field names
FIELD_ALIASES = {
    'radialVelocity': 'radial_velocity',
    'parallaxError': 'parallax_error',
    'pmraError': 'pmra_error',
    'pmdecError': 'pmdec_error',
    'radialVelocityError': 'radial_velocity_error',
    'hasOrbitalMotion': 'has_orbital_motion',
    'orbitalPeriod': 'orbital_period',
    'argumentOfPeriastron': 'argument_of_periastron',
    'systemMass': 'system_mass',
    'gaiaId': 'name',
    'starName': 'name',
}

_NUMERIC_FIELDS = (
    'ra', 'dec', 'parallax', 'pmra', 'pmdec', 'radial_velocity',
    'parallax_error', 'pmra_error', 'pmdec_error', 'radial_velocity_error',
    'orbital_period', 'eccentricity', 'inclination',
    'argument_of_periastron', 'system_mass'
)


def _to_float(key: str, value: Any) -> Optional[float]:
    """Convert a raw catalog value to float, mapping blanks and NaN to None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    if isinstance(value, bool):
        raise ValidationError(f"Field '{key}' must be numeric, got boolean {value}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Field '{key}' must be numeric, got {value!r}") from e
    if math.isnan(number):
        return None
    return number


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y')
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


@dataclass(frozen=True)
class StarRecord:
    """Astrometric parameters of a single star at the reference epoch.

    Positions are in degrees, parallax in mas, proper motions in mas/yr and
    radial velocity in km/s. Binary elements are only meaningful when
    ``has_orbital_motion`` is set: period in years, inclination and argument of
    periastron in degrees, system mass in solar masses.
    """
    name: str
    ra: Optional[float]
    dec: Optional[float]
    parallax: Optional[float]
    pmra: Optional[float]
    pmdec: Optional[float]
    radial_velocity: Optional[float] = None
    parallax_error: Optional[float] = None
    pmra_error: Optional[float] = None
    pmdec_error: Optional[float] = None
    radial_velocity_error: Optional[float] = None
    has_orbital_motion: bool = False
    orbital_period: Optional[float] = None
    eccentricity: Optional[float] = None
    inclination: Optional[float] = None
    argument_of_periastron: float = 0.0
    system_mass: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], name: Optional[str] = None) -> 'StarRecord':
        """
        Build a record from a plain mapping such as a CSV row or JSON payload.

        Both snake_case field names and the camelCase wire names are accepted.
        Blank strings and NaN become missing values.

        Args:
            data: Mapping with astrometric fields
            name: Optional name overriding any name found in ``data``

        Returns:
            A new StarRecord (not yet validated)

        Raises:
            ValidationError: If a numeric field holds a non-numeric value
        """
        known = {f.name for f in fields(cls)}
        normalized: Dict[str, Any] = {}
        for key, value in data.items():
            field_name = FIELD_ALIASES.get(key, key)
            if field_name in known and field_name not in normalized:
                normalized[field_name] = value

        kwargs: Dict[str, Any] = {}
        for key in _NUMERIC_FIELDS:
            if key in normalized:
                kwargs[key] = _to_float(key, normalized[key])
        if kwargs.get('argument_of_periastron') is None:
            kwargs['argument_of_periastron'] = 0.0

        kwargs['has_orbital_motion'] = _to_bool(normalized.get('has_orbital_motion'))
        record_name = name if name is not None else normalized.get('name')
        kwargs['name'] = str(record_name) if record_name is not None else 'unnamed'

        for required in ('ra', 'dec', 'parallax', 'pmra', 'pmdec'):
            kwargs.setdefault(required, None)
        return cls(**kwargs)

    @property
    def distance_pc(self) -> float:
        return 1000.0 / self.parallax

    @property
    def distance_au(self) -> float:
        return self.distance_pc * PC_TO_AU

    @property
    def distance_ly(self) -> float:
        return self.distance_pc * PC_TO_LY

    @property
    def total_proper_motion(self) -> float:
        """Total proper motion in mas/yr."""
        return math.hypot(self.pmra, self.pmdec)

    @property
    def radial_velocity_or_zero(self) -> float:
        return self.radial_velocity if self.radial_velocity is not None else 0.0

    @property
    def has_binary_elements(self) -> bool:
        """True when the record carries a usable set of orbital elements."""
        return (self.has_orbital_motion
                and self.orbital_period is not None
                and self.eccentricity is not None
                and self.inclination is not None)

    @property
    def binary_system_mass(self) -> float:
        return self.system_mass if self.system_mass is not None else DEFAULT_SYSTEM_MASS_SOLAR

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase wire names; absent values stay None."""
        data = {
            'name': self.name,
            'ra': self.ra,
            'dec': self.dec,
            'parallax': self.parallax,
            'pmra': self.pmra,
            'pmdec': self.pmdec,
            'radialVelocity': self.radial_velocity,
            'parallaxError': self.parallax_error,
            'pmraError': self.pmra_error,
            'pmdecError': self.pmdec_error,
            'radialVelocityError': self.radial_velocity_error,
            'hasOrbitalMotion': self.has_orbital_motion,
        }
        if self.has_orbital_motion:
            data.update({
                'orbitalPeriod': self.orbital_period,
                'eccentricity': self.eccentricity,
                'inclination': self.inclination,
                'argumentOfPeriastron': self.argument_of_periastron,
                'systemMass': self.system_mass,
            })
        return data


class CatalogSource(ABC):
    """
    Abstract name-to-StarRecord lookup.

    Implementations may wrap a remote service, a database or a static table.
    The prediction engine only depends on this interface.
    """

    @abstractmethod
    async def get_star_record(self, name: str) -> StarRecord:
        """
        Resolve a star name to its astrometric record.

        Args:
            name: Star name or alias (case-insensitive for shipped catalogs)

        Returns:
            The populated StarRecord

        Raises:
            StarNotFoundError: If the name cannot be resolved
        """
        pass

    @abstractmethod
    def list_names(self) -> List[str]:
        """Return the canonical names known to this catalog."""
        pass
