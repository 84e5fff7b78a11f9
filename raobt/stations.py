"""
Station listing of the NOAA/ESRL RAOB archive.

The archive publishes its stations as the options of a multi-select box on the
query page. Each option line carries, in order, the station initials, WBAN and
WMO numbers, latitude, longitude, elevation, name, province/state and country:

    ALB  14735 72518 42.75 -73.80 00093  ALBANY NY US
"""

import logging
import re
from collections import Counter
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol, Sequence, Tuple, Union

import pandas as pd
import requests

import raobt.raobtmetadata as metadata
from raobt.errors import ServiceUnavailable, StationParseError
from raobt.models import STATION_FIELDS, StationRecord

logger = logging.getLogger(__name__)

_SELECT_BLOCK = re.compile(r'<SELECT[^>]*MULTIPLE[^>]*>(.*?)</SELECT>', re.IGNORECASE | re.DOTALL)
_OPTION_TAG = re.compile(r'^\s*<OPTION[^>]*>\s?', re.IGNORECASE)

_STATION_LINE = re.compile(
    r'^(?P<init>[0-9A-Z]*)\s+'
    r'(?P<wban>\d*)\s'
    r'(?P<wmo>\d{5})\s+'
    r'(?P<lat>\S+)\s+'
    r'(?P<lon>\S+)\s+'
    r'(?P<elev>\S+)\s+'
    r'(?P<name>.+?)\s+'
    r'(?P<region>[0-9A-Z]{2})\s(?P<country>[0-9A-Z]{2})\s*$'
)

_STRING_COLUMNS = {'init': str, 'wban': str, 'wmo': str, 'name': str, 'region': str, 'country': str}


class StationCatalog:
    """Ordered, read-only collection of stations in listing order.

    Duplicate ``(wban, wmo)`` pairs coming from the source are kept and
    reported through :meth:`duplicate_keys`.
    """

    def __init__(self, stations: Sequence[StationRecord] = ()):
        self._stations: Tuple[StationRecord, ...] = tuple(stations)
        self._frame: Optional[pd.DataFrame] = None

        duplicates = self.duplicate_keys()
        if duplicates:
            logger.warning(f"Station listing contains {len(duplicates)} duplicated WBAN-WMO pairs: "
                           f"{['-'.join(key) for key in duplicates]}")

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self) -> Iterator[StationRecord]:
        return iter(self._stations)

    def __getitem__(self, index: int) -> StationRecord:
        return self._stations[index]

    def __repr__(self) -> str:
        return f"StationCatalog({len(self)} stations)"

    @property
    def stations(self) -> Tuple[StationRecord, ...]:
        return self._stations

    def duplicate_keys(self) -> List[Tuple[str, str]]:
        counts = Counter(station.key for station in self._stations)
        return [key for key, count in counts.items() if count > 1]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the catalog as a DataFrame with one column per station field.

        The row index is the position of the station in the catalog.
        """
        if self._frame is None:
            self._frame = pd.DataFrame([station.to_dict() for station in self._stations],
                                       columns=list(STATION_FIELDS))
        return self._frame.copy()

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> 'StationCatalog':
        missing = [column for column in STATION_FIELDS if column not in df.columns]
        if missing:
            raise StationParseError(f"missing columns {missing}")
        stations = []
        for row in df[list(STATION_FIELDS)].itertuples(index=False):
            stations.append(StationRecord(init=str(row.init),
                                          wban=str(row.wban),
                                          wmo=str(row.wmo),
                                          latitude=float(row.latitude),
                                          longitude=float(row.longitude),
                                          elevation=float(row.elevation),
                                          name=str(row.name),
                                          region=str(row.region),
                                          country=str(row.country)))
        return cls(stations)


class StationListProvider(Protocol):
    """Anything that can produce the station listing."""

    def list_stations(self) -> Sequence[StationRecord]:
        ...


def check_archive_status(response: requests.Response) -> None:
    """Raise ServiceUnavailable for an HTTP error status from the archive."""
    if response.status_code == 503:
        raise ServiceUnavailable("The NOAA RAOB server is reporting that it's temporarily unavailable.")
    try:
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        raise ServiceUnavailable(f"The NOAA RAOB server returned HTTP {response.status_code}") from e


def check_archive_text(text: str) -> None:
    """Raise ServiceUnavailable when the archive answered with its maintenance page."""
    if metadata.SERVICE_UNAVAILABLE_MARKER in text:
        raise ServiceUnavailable("The NOAA RAOB server is reporting that it's temporarily unavailable.")


def fetch_station_listing(url: str = metadata.RAOB_CGI_URL,
                          params: Optional[Dict[str, str]] = None,
                          timeout: float = metadata.REQUEST_TIMEOUT) -> str:
    """Download the RAOB query page that carries the station listing.

    Parameters
    ----------
    url : str, optional
        Query page of the archive, by default ``RAOB_CGI_URL``.
    params : Optional[Dict[str, str]]
        Query string, by default ``RAOB_STATION_LIST_PARAMS``.
    timeout : float, optional
        Request timeout in seconds.

    Returns
    -------
    str
        The page source.

    Raises
    ------
    ServiceUnavailable
        If the archive cannot be reached or reports that it is unavailable.
    """
    if params is None:
        params = metadata.RAOB_STATION_LIST_PARAMS

    logger.debug(f"Requesting station listing from {url}")
    try:
        response = requests.get(url, params=params, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise ServiceUnavailable(f"Could not reach the NOAA RAOB server at {url}: {e}") from e

    check_archive_status(response)
    check_archive_text(response.text)
    return response.text


def extract_listing_lines(html: str) -> List[str]:
    """Return the text of every <OPTION> of the station picker.

    Leading whitespace after the tag is significant (it stands for empty
    initials) so only the tag and the single space following it are removed.
    """
    block = _SELECT_BLOCK.search(html)
    if block is None:
        raise StationParseError("no station selection block found in page")

    lines = []
    for raw in block.group(1).splitlines():
        if not raw.strip():
            continue
        lines.append(_OPTION_TAG.sub('', raw).rstrip())
    return lines


def _to_float(line: str, field: str, text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise StationParseError(f"{field} {text!r} is not a number", line=line) from None


def parse_station_line(line: str) -> StationRecord:
    """Parse one line of the station listing.

    Parameters
    ----------
    line : str
        Option text, e.g. ``"ALB  14735 72518 42.75 -73.80 00093  ALBANY NY US"``.

    Returns
    -------
    StationRecord

    Raises
    ------
    StationParseError
        If the line does not have the listing layout or a coordinate is not numeric.

    Examples
    --------
    >>> station = parse_station_line("ALB  14735 72518 42.75 -73.80 00093  ALBANY NY US")
    >>> station.combined_id, station.name
    ('14735-72518', 'ALBANY')
    """
    match = _STATION_LINE.match(line)
    if match is None:
        raise StationParseError("line does not match the station listing layout", line=line)

    return StationRecord(init=match.group('init'),
                         wban=match.group('wban'),
                         wmo=match.group('wmo'),
                         latitude=_to_float(line, 'latitude', match.group('lat')),
                         longitude=_to_float(line, 'longitude', match.group('lon')),
                         elevation=_to_float(line, 'elevation', match.group('elev')),
                         name=match.group('name').strip(),
                         region=match.group('region'),
                         country=match.group('country'))


def parse_station_listing(html: str, strict: bool = False) -> StationCatalog:
    """Parse the station listing page into a catalog.

    Unparseable lines are logged and skipped unless ``strict`` is set, in
    which case the first failure is raised.
    """
    check_archive_text(html)

    stations = []
    skipped = 0
    for line in extract_listing_lines(html):
        try:
            stations.append(parse_station_line(line))
        except StationParseError as e:
            if strict:
                raise
            skipped += 1
            logger.warning(f"Skipping station line: {e.reason}: {line!r}")

    logger.info(f"Parsed {len(stations)} stations ({skipped} lines skipped)")
    return StationCatalog(stations)


def get_sounding_stations(url: str = metadata.RAOB_CGI_URL,
                          params: Optional[Dict[str, str]] = None,
                          timeout: float = metadata.REQUEST_TIMEOUT,
                          strict: bool = False) -> StationCatalog:
    """Download and parse the current listing of RAOB sounding stations.

    Returns
    -------
    StationCatalog
        Stations in listing order.

    Examples
    --------
    >>> catalog = get_sounding_stations()
    >>> print(f"{len(catalog)} stations available")
    >>> catalog.to_dataframe().head()
    """
    html = fetch_station_listing(url=url, params=params, timeout=timeout)
    return parse_station_listing(html, strict=strict)


class RaobStationListProvider:
    """Station listing provider backed by the RAOB archive."""

    def __init__(self, url: str = metadata.RAOB_CGI_URL, timeout: float = metadata.REQUEST_TIMEOUT,
                 strict: bool = False):
        self.url = url
        self.timeout = timeout
        self.strict = strict

    def list_stations(self) -> Sequence[StationRecord]:
        return get_sounding_stations(url=self.url, timeout=self.timeout, strict=self.strict).stations


def build_station_catalog(provider: StationListProvider) -> StationCatalog:
    """Populate a catalog from any station listing provider."""
    return StationCatalog(provider.list_stations())


def save_station_catalog(catalog: StationCatalog, path: Union[str, Path]) -> Path:
    """Save a catalog to a csv file so it can be reused without the archive."""
    path = Path(path)
    catalog.to_dataframe().to_csv(path, index=False)
    logger.info(f"Saved station list to {path}")
    return path


def load_station_catalog(path: Union[str, Path]) -> StationCatalog:
    """Load a catalog written by :func:`save_station_catalog`.

    Identifier and code columns are read as text, so leading zeros and codes
    such as ``NA`` survive the round trip.
    """
    df = pd.read_csv(path, dtype=_STRING_COLUMNS, keep_default_na=False)
    return StationCatalog.from_dataframe(df)
