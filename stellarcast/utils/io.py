import json
import logging
from typing import List, Dict, Any, Optional

import numpy as np
import pandas as pd
from astropy.coordinates import SkyCoord
import astropy.units as u

from ..config import (
    ENCODING_FALLBACK_ORDER, CATALOG_NAME_COLUMN, DEFAULT_COORDINATE_PRECISION,
    ASTROPY_FRAME, ASTROPY_FORMAT, MIN_DEC_DEG, MAX_DEC_DEG, JSON_INDENT
)
from ..exceptions import DataLoadError, DataSaveError

log = logging.getLogger(__name__)


def load_csv_data(filepath: str, required_column: str = CATALOG_NAME_COLUMN) -> pd.DataFrame:
    """Loads a star list from a CSV file with comma or semicolon delimiters.

    Args:
        filepath: Path to the CSV file.
        required_column: Column that must be present (star name by default).

    Returns:
        Loaded star data.

    Raises:
        DataLoadError: If the file cannot be loaded, parsed, or lacks the required column.
    """
    for encoding in ENCODING_FALLBACK_ORDER:
        try:
            log.info(f"Attempting to read CSV with encoding: {encoding}")
            try:
                df = pd.read_csv(filepath, encoding=encoding)
            except pd.errors.ParserError:
                log.debug("CSV parsing failed with comma delimiter, trying semicolon...")
                df = pd.read_csv(filepath, encoding=encoding, sep=';')

            if required_column not in df.columns:
                log.debug(f"{required_column} column not found with comma delimiter, trying semicolon...")
                df = pd.read_csv(filepath, encoding=encoding, sep=';')
                if required_column not in df.columns:
                    raise DataLoadError(f"Required '{required_column}' column not found in {filepath}")

            log.info(f"CSV loaded successfully. Rows: {len(df)}, Encoding: {encoding}")
            return df

        except UnicodeDecodeError:
            log.debug(f"Encoding {encoding} failed, trying next...")
            continue
        except FileNotFoundError as e:
            log.error(f"File not found: {e}")
            raise DataLoadError(f"File not found: {filepath}") from e
        except PermissionError as e:
            log.error(f"Permission denied: {e}")
            raise DataLoadError(f"Permission denied accessing file: {filepath}") from e
        except pd.errors.EmptyDataError as e:
            log.error(f"Empty data file: {e}")
            raise DataLoadError(f"File contains no data: {filepath}") from e
        except pd.errors.ParserError as e:
            log.error(f"Data parsing error: failed to parse CSV format with both delimiters")
            raise DataLoadError(f"Could not parse CSV format in file: {filepath}") from e

    log.error(f"Could not decode file with any supported encoding: {filepath}")
    raise DataLoadError(f"Could not decode file '{filepath}' with any supported encoding")


def save_predictions_to_csv(rows: List[Dict[str, Any]], filepath: str) -> None:
    """Saves flattened prediction rows to a CSV file.

    Args:
        rows: One dictionary per prediction point (see ``PredictionResult.to_rows``).
        filepath: Output path for the CSV file (will be created/overwritten).

    Raises:
        DataSaveError: If file writing fails.
    """
    if not rows:
        log.warning("No predictions to save.")
        return

    try:
        df = pd.DataFrame(rows)
        df.to_csv(filepath, index=False, encoding='utf-8')
        log.info(f"Predictions successfully saved to {filepath} ({len(df)} rows)")
    except FileNotFoundError as e:
        log.error(f"Directory not found when saving to {filepath}: {e}")
        raise DataSaveError(f"Directory not found: {filepath}") from e
    except PermissionError as e:
        log.error(f"Permission denied when saving to {filepath}: {e}")
        raise DataSaveError(f"Permission denied: {filepath}") from e
    except OSError as e:
        log.error(f"OS error when saving to {filepath}: {e}")
        raise DataSaveError(f"OS error (disk space, path length, etc.): {e}") from e


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def save_results_to_json(payload: Any, filepath: str) -> None:
    """Saves one result dictionary (or a list of them) as JSON.

    Raises:
        DataSaveError: If file writing or serialization fails.
    """
    try:
        with open(filepath, 'w', encoding='utf-8') as handle:
            json.dump(payload, handle, indent=JSON_INDENT, default=_json_default)
        log.info(f"Results successfully saved to {filepath}")
    except TypeError as e:
        log.error(f"Result is not JSON serializable: {e}")
        raise DataSaveError(f"Invalid result structure: {e}") from e
    except OSError as e:
        log.error(f"OS error when saving to {filepath}: {e}")
        raise DataSaveError(f"Could not write {filepath}: {e}") from e


def format_coordinates_astropy(ra_deg: Optional[float], dec_deg: Optional[float],
                               precision: Optional[int] = None) -> str:
    """Formats equatorial coordinates in HMS/DMS using astropy.

    Args:
        ra_deg: Right ascension in degrees (any value, wrapped into [0, 360)).
        dec_deg: Declination in degrees (-90 to +90).
        precision: Decimal places for seconds (uses DEFAULT_COORDINATE_PRECISION if None).

    Returns:
        Formatted coordinate string, "N/A" for None inputs or "Invalid Coords"
        when the values cannot be represented.
    """
    if ra_deg is None or dec_deg is None:
        return "N/A"

    if precision is None:
        precision = DEFAULT_COORDINATE_PRECISION

    try:
        ra_deg = float(ra_deg) % 360.0
        dec_deg = float(dec_deg)
    except (TypeError, ValueError):
        log.error(f"Coordinates must be numeric (RA: {ra_deg}, Dec: {dec_deg})")
        return "Invalid Coords"

    if not (MIN_DEC_DEG <= dec_deg <= MAX_DEC_DEG):
        log.error(f"Dec degrees {dec_deg} outside valid range [{MIN_DEC_DEG}, {MAX_DEC_DEG}]")
        return "Invalid Coords"

    try:
        coords = SkyCoord(ra=ra_deg * u.deg, dec=dec_deg * u.deg, frame=ASTROPY_FRAME)
        return coords.to_string(ASTROPY_FORMAT, sep=' ', precision=precision, pad=True)
    except (ValueError, TypeError) as e:
        log.error(f"Astropy coordinate formatting failed: {e}")
        return "Invalid Coords"
