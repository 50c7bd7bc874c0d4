"""
Local catalog implementations backed by in-memory tables or CSV star lists.

Neither catalog owns any built-in star data: the caller injects the records,
either directly or through a CSV file with one star per row.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .source import CatalogSource, StarRecord
from ..config import CATALOG_NAME_COLUMN
from ..exceptions import StarNotFoundError, CatalogLoadError, ValidationError, DataLoadError
from ..utils.io import load_csv_data

log = logging.getLogger(__name__)

ALIAS_COLUMN = 'aliases'
ALIAS_SEPARATOR = '|'


def _normalize_name(name: str) -> str:
    return " ".join(str(name).split()).lower()


class InMemoryCatalog(CatalogSource):
    """
    Catalog over records supplied by the caller.

    Lookups are case-insensitive and ignore repeated whitespace. Aliases map
    alternative names onto canonical record names.
    """

    def __init__(self, records: Iterable[StarRecord],
                 aliases: Optional[Mapping[str, str]] = None):
        """
        Args:
            records: Star records keyed by their ``name``
            aliases: Optional mapping alias -> canonical record name

        Raises:
            CatalogLoadError: If two records share a name or an alias points nowhere
        """
        self._records: Dict[str, StarRecord] = {}
        self._aliases: Dict[str, str] = {}

        for record in records:
            key = _normalize_name(record.name)
            if key in self._records:
                raise CatalogLoadError(f"Duplicate star name in catalog: {record.name}")
            self._records[key] = record

        for alias, canonical in (aliases or {}).items():
            self.add_alias(alias, canonical)

        log.info(f"Initialized in-memory catalog with {len(self._records)} stars "
                 f"and {len(self._aliases)} aliases")

    def add_alias(self, alias: str, canonical: str) -> None:
        canonical_key = _normalize_name(canonical)
        if canonical_key not in self._records:
            raise CatalogLoadError(f"Alias '{alias}' refers to unknown star '{canonical}'")
        self._aliases[_normalize_name(alias)] = canonical_key

    def lookup(self, name: str) -> StarRecord:
        """Synchronous lookup used by the async interface and by batch loaders."""
        key = _normalize_name(name)
        key = self._aliases.get(key, key)
        try:
            return self._records[key]
        except KeyError:
            raise StarNotFoundError(f"Star '{name}' not found in catalog") from None

    async def get_star_record(self, name: str) -> StarRecord:
        return self.lookup(name)

    def list_names(self) -> List[str]:
        return [record.name for record in self._records.values()]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: str) -> bool:
        key = _normalize_name(name)
        return self._aliases.get(key, key) in self._records


class CsvCatalog(InMemoryCatalog):
    """
    Catalog loaded from a CSV star list.

    The file needs a ``name`` column plus the astrometric columns accepted by
    ``StarRecord.from_dict``. An optional ``aliases`` column holds
    ``|``-separated alternative names.
    """

    def __init__(self, filepath: str):
        """
        Args:
            filepath: Path to the CSV star list

        Raises:
            CatalogLoadError: If the file cannot be read or a row is malformed
        """
        self.filepath = filepath
        try:
            df = load_csv_data(filepath, required_column=CATALOG_NAME_COLUMN)
        except DataLoadError as e:
            raise CatalogLoadError(f"Could not load catalog {filepath}: {e}") from e

        records, aliases = self._records_from_frame(df)
        super().__init__(records, aliases)
        log.info(f"Loaded CSV catalog {filepath} ({len(records)} stars)")

    @staticmethod
    def _records_from_frame(df: pd.DataFrame):
        records = []
        aliases = {}
        for index, row in df.iterrows():
            row_data = row.to_dict()
            try:
                record = StarRecord.from_dict(row_data)
            except ValidationError as e:
                raise CatalogLoadError(f"Malformed catalog row {index}: {e}") from e
            records.append(record)

            raw_aliases = row_data.get(ALIAS_COLUMN)
            if isinstance(raw_aliases, str):
                for alias in raw_aliases.split(ALIAS_SEPARATOR):
                    if alias.strip():
                        aliases[alias.strip()] = record.name
        return records, aliases
