"""
Search the station catalog and pick a target station.

Each search uses exactly one mode:

- combined identifier (``id_by_wban_wmo="14735-72518"``)
- station name substring (``search_station_name``)
- one of ``search_init``, ``search_wban`` or ``search_wmo``
- province/state and/or country (``search_region``, ``search_country``)
- bounding box (``lower_lat``, ``upper_lat``, ``lower_lon``, ``upper_lon``)
- elevation range (``lower_elev`` and/or ``upper_elev``)

Mixing keywords of different modes is rejected rather than guessed at.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

import pandas as pd

from raobt.errors import InvalidArgument, NoCatalogLoaded
from raobt.models import STATION_FIELDS, StationRecord
from raobt.stations import StationCatalog

logger = logging.getLogger(__name__)

MAX_LISTED_MATCHES = 100

SEARCH_KEYWORDS = ('id_by_wban_wmo', 'search_station_name', 'search_init', 'search_wban', 'search_wmo',
                   'search_region', 'search_country', 'lower_lat', 'upper_lat', 'lower_lon', 'upper_lon',
                   'lower_elev', 'upper_elev')

_COMBINED_ID = re.compile(r'[0-9]+-[0-9]+')
_NAME_PUNCTUATION = r'[()/\\]'


@dataclass(frozen=True)
class ByCombinedId:
    wban: str
    wmo: str

    @classmethod
    def parse(cls, combined_id: str) -> 'ByCombinedId':
        combined_id = str(combined_id)
        if not _COMBINED_ID.fullmatch(combined_id):
            raise InvalidArgument("Use a string in the form of 'XXXXX-YYYYY' in the order of WBAN and WMO, "
                                  f"got {combined_id!r}")
        wban, wmo = combined_id.split('-')
        return cls(wban=wban, wmo=wmo)

    def mask(self, df: pd.DataFrame) -> pd.Series:
        return (df['wban'] == self.wban) & (df['wmo'] == self.wmo)


@dataclass(frozen=True)
class ByName:
    text: str

    def mask(self, df: pd.DataFrame) -> pd.Series:
        names = df['name'].astype(str).str.lower().str.replace(_NAME_PUNCTUATION, ' ', regex=True)
        return names.str.contains(self.text.lower(), regex=False)


@dataclass(frozen=True)
class BySingleField:
    field: str
    value: str

    def mask(self, df: pd.DataFrame) -> pd.Series:
        return df[self.field] == self.value


@dataclass(frozen=True)
class ByRegionCountry:
    region: Optional[str] = None
    country: Optional[str] = None

    def mask(self, df: pd.DataFrame) -> pd.Series:
        mask = pd.Series(True, index=df.index)
        if self.region is not None:
            mask &= df['region'] == self.region
        if self.country is not None:
            mask &= df['country'] == self.country
        return mask


@dataclass(frozen=True)
class ByBoundingBox:
    lower_lat: float
    upper_lat: float
    lower_lon: float
    upper_lon: float

    def mask(self, df: pd.DataFrame) -> pd.Series:
        latitude = df['latitude'].astype(float)
        longitude = df['longitude'].astype(float)
        return (latitude.between(self.lower_lat, self.upper_lat) &
                longitude.between(self.lower_lon, self.upper_lon))


@dataclass(frozen=True)
class ByElevation:
    lower_elev: Optional[float] = None
    upper_elev: Optional[float] = None

    def mask(self, df: pd.DataFrame) -> pd.Series:
        elevation = df['elevation'].astype(float)
        mask = pd.Series(True, index=df.index)
        if self.lower_elev is not None:
            mask &= elevation >= self.lower_elev
        if self.upper_elev is not None:
            mask &= elevation <= self.upper_elev
        return mask


SearchMode = Union[ByCombinedId, ByName, BySingleField, ByRegionCountry, ByBoundingBox, ByElevation]


@dataclass(frozen=True)
class NoMatch:
    message: str = "No stations were identified from this search"


@dataclass(frozen=True)
class SingleMatch:
    station: StationRecord

    @property
    def confirmation(self) -> Dict[str, str]:
        return self.station.confirmation()

    @property
    def message(self) -> str:
        return ("The target station is now available with the following identifiers: "
                f"wmo {self.station.wmo}, wban {self.station.wban} ({self.station.name})")


@dataclass(frozen=True)
class CandidateList:
    stations: Tuple[StationRecord, ...]

    @property
    def count(self) -> int:
        return len(self.stations)

    @property
    def message(self) -> str:
        return f"A total of {self.count} stations were identified from this search"

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([station.to_dict() for station in self.stations], columns=list(STATION_FIELDS))


@dataclass(frozen=True)
class MatchCount:
    count: int

    @property
    def message(self) -> str:
        return f"A total of {self.count} stations were identified from this search"


SelectionResult = Union[NoMatch, SingleMatch, CandidateList, MatchCount]


def _as_float(name: str, value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"'{name}' must be a number, got {value!r}") from None


def search_mode_from_criteria(id_by_wban_wmo: Optional[str] = None,
                              search_station_name: Optional[str] = None,
                              search_init: Optional[str] = None,
                              search_wban: Optional[Union[str, int]] = None,
                              search_wmo: Optional[Union[str, int]] = None,
                              search_region: Optional[str] = None,
                              search_country: Optional[str] = None,
                              lower_lat: Optional[float] = None,
                              upper_lat: Optional[float] = None,
                              lower_lon: Optional[float] = None,
                              upper_lon: Optional[float] = None,
                              lower_elev: Optional[float] = None,
                              upper_elev: Optional[float] = None) -> SearchMode:
    """Validate search keywords and turn them into a single search mode.

    Raises
    ------
    InvalidArgument
        If no keyword is given, keywords of more than one mode are given, more
        than one of ``search_init``/``search_wban``/``search_wmo`` is given, a
        bounding box is incomplete, or the combined identifier is malformed.
    """
    groups = {
        'combined identifier': {'id_by_wban_wmo': id_by_wban_wmo},
        'station name': {'search_station_name': search_station_name},
        'single field': {'search_init': search_init, 'search_wban': search_wban, 'search_wmo': search_wmo},
        'province/state and country': {'search_region': search_region, 'search_country': search_country},
        'bounding box': {'lower_lat': lower_lat, 'upper_lat': upper_lat,
                         'lower_lon': lower_lon, 'upper_lon': upper_lon},
        'elevation': {'lower_elev': lower_elev, 'upper_elev': upper_elev},
    }
    given = {mode: {key: value for key, value in keywords.items() if value is not None}
             for mode, keywords in groups.items()}
    given = {mode: keywords for mode, keywords in given.items() if keywords}

    if not given:
        raise InvalidArgument("No search criteria were supplied")
    if len(given) > 1:
        supplied = sorted(key for keywords in given.values() for key in keywords)
        raise InvalidArgument(f"Search criteria of different kinds cannot be combined: {supplied}")

    mode, keywords = next(iter(given.items()))

    if mode == 'combined identifier':
        return ByCombinedId.parse(id_by_wban_wmo)

    if mode == 'station name':
        return ByName(str(search_station_name))

    if mode == 'single field':
        if len(keywords) > 1:
            raise InvalidArgument("Only use one of 'search_init', 'search_wban', or 'search_wmo' search parameters")
        key, value = next(iter(keywords.items()))
        return BySingleField(field=key[len('search_'):], value=str(value))

    if mode == 'province/state and country':
        return ByRegionCountry(region=search_region, country=search_country)

    if mode == 'bounding box':
        if len(keywords) < 4:
            missing = sorted(set(groups[mode]) - set(keywords))
            raise InvalidArgument(f"A bounding box search needs all four bounds, missing {missing}")
        return ByBoundingBox(lower_lat=_as_float('lower_lat', lower_lat),
                             upper_lat=_as_float('upper_lat', upper_lat),
                             lower_lon=_as_float('lower_lon', lower_lon),
                             upper_lon=_as_float('upper_lon', upper_lon))

    return ByElevation(lower_elev=None if lower_elev is None else _as_float('lower_elev', lower_elev),
                       upper_elev=None if upper_elev is None else _as_float('upper_elev', upper_elev))


def classify_matches(stations: Tuple[StationRecord, ...]) -> SelectionResult:
    """Apply the result-count policy to a set of matching stations."""
    if len(stations) == 0:
        return NoMatch()
    if len(stations) == 1:
        return SingleMatch(stations[0])
    if len(stations) <= MAX_LISTED_MATCHES:
        return CandidateList(stations)
    return MatchCount(len(stations))


class StationSelector:
    """Searches a station catalog and remembers the last uniquely matched station.

    ``target_station`` is None until a search matches exactly one station and
    is replaced by every later search that does.

    Examples
    --------
    >>> selector = StationSelector(get_sounding_stations())
    >>> result = selector.select(search_station_name="albany")
    >>> print(result.message)
    >>> selector.target_station
    """

    def __init__(self, catalog: Optional[StationCatalog] = None):
        self.catalog = catalog
        self.target_station: Optional[StationRecord] = None

    def search(self, mode: SearchMode) -> SelectionResult:
        if self.catalog is None:
            raise NoCatalogLoaded("Sounding station information is not available. "
                                  "Load a station catalog with 'get_sounding_stations' first")

        df = self.catalog.to_dataframe()
        mask = mode.mask(df).to_numpy(dtype=bool)
        matches = tuple(self.catalog[i] for i in df.index[mask])
        result = classify_matches(matches)
        logger.debug(f"{mode} matched {len(matches)} stations")

        if isinstance(result, SingleMatch):
            self.target_station = result.station
        return result

    def select(self, **criteria) -> SelectionResult:
        """Search with keyword criteria; see :func:`search_mode_from_criteria`."""
        if self.catalog is None:
            raise NoCatalogLoaded("Sounding station information is not available. "
                                  "Load a station catalog with 'get_sounding_stations' first")
        unknown = sorted(set(criteria) - set(SEARCH_KEYWORDS))
        if unknown:
            raise InvalidArgument(f"Unknown search criteria: {unknown}")
        return self.search(search_mode_from_criteria(**criteria))


def select_sounding_station(catalog: Optional[StationCatalog], **criteria) -> SelectionResult:
    """Run one search against ``catalog``.

    A :class:`SingleMatch` result carries the selected station; keep it and
    pass it on to the sounding download.

    Examples
    --------
    >>> result = select_sounding_station(catalog, search_country="CA")
    >>> if isinstance(result, CandidateList):
    ...     print(result.to_dataframe())
    """
    return StationSelector(catalog).select(**criteria)
