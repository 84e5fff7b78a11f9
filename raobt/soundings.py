"""
Sounding data in the NOAA FSL ASCII format.

Every sounding starts with four identification lines followed by one line per level::

        254      0      1      JAN    2013
          1  14735  72518  42.75 73.80W    93  99999
          2    900    480   2010     68  99999      3
          3           ALB                99999     ms
          9  10060     93    -11    -34    250     26
          4  10000    138    -37    -59    255     31

Line type 254 carries hour, day, month and year, type 2 the number of lines of
the sounding, type 3 the wind speed units. Level lines (types 4 to 9) carry
pressure (tenths of hPa), height (m), temperature and dewpoint (tenths of
degC), wind direction (deg) and wind speed (tenths of m/s, or knots). 99999
marks a missing value.
"""

import io
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union

import requests
from tqdm import tqdm

import raobt.raobtmetadata as metadata
from raobt.errors import InvalidArgument, ServiceUnavailable, SoundingParseError
from raobt.models import LevelRecord, SoundingProfile, StationRecord
from raobt.stations import check_archive_status, check_archive_text

logger = logging.getLogger(__name__)

MISSING = 99999
KNOTS_TO_MS = 0.514444

_MONTHS = ('JAN', 'FEB', 'MAR', 'APR', 'MAY', 'JUN', 'JUL', 'AUG', 'SEP', 'OCT', 'NOV', 'DEC')
_MARKUP = re.compile(r'<[^>]+>')


class SoundingProvider(Protocol):
    """Anything that can supply the soundings of a station for a time range."""

    def fetch_sounding_profiles(self, station: StationRecord, start: datetime,
                                end: datetime) -> Sequence[SoundingProfile]:
        ...


def _int_fields(fields: List[str], number: int) -> List[int]:
    try:
        return [int(value) for value in fields]
    except ValueError:
        raise SoundingParseError(f"line {number}: expected integer fields, got {' '.join(fields)!r}") from None


def _parse_time(fields: List[str], number: int) -> datetime:
    if len(fields) < 5:
        raise SoundingParseError(f"line {number}: incomplete sounding header")
    hour, day = _int_fields(fields[1:3], number)
    month = fields[3].upper()
    if month in _MONTHS:
        month = _MONTHS.index(month) + 1
    else:
        month = _int_fields([month], number)[0]
    year = _int_fields([fields[4]], number)[0]
    try:
        return datetime(year, month, day, hour)
    except ValueError as e:
        raise SoundingParseError(f"line {number}: invalid sounding time: {e}") from None


def _scaled(raw: int, scale: float) -> Optional[float]:
    if raw == MISSING:
        return None
    return raw * scale


def _parse_level(fields: List[str], number: int, wind_units: str) -> Optional[LevelRecord]:
    if len(fields) < 7:
        raise SoundingParseError(f"line {number}: level line needs 7 fields, got {len(fields)}")
    _, pressure, height, temperature, _, direction, speed = _int_fields(fields[:7], number)

    if pressure == MISSING or height == MISSING:
        logger.debug(f"line {number}: dropping level without pressure or height")
        return None

    speed_scale = KNOTS_TO_MS if wind_units == 'kt' else 0.1
    return LevelRecord.from_raw(pressure=pressure / 10.0,
                                height=float(height),
                                temperature=_scaled(temperature, 0.1),
                                wind_direction=_scaled(direction, 1.0),
                                wind_speed=_scaled(speed, speed_scale))


def parse_fsl_soundings(text: str) -> List[SoundingProfile]:
    """Parse FSL format text into soundings ordered by time.

    Parameters
    ----------
    text : str
        Contents of an FSL sounding file or archive response.

    Returns
    -------
    List[SoundingProfile]
        One profile per sounding, sorted by launch time. Levels keep the order
        of the file.

    Raises
    ------
    SoundingParseError
        If a line has an unknown type or malformed fields.
    """
    profiles = []
    current: Optional[Dict] = None

    def finish():
        profiles.append(SoundingProfile(timestamp=current['timestamp'],
                                        level_count=current['level_count'],
                                        levels=tuple(current['levels'])))

    for number, line in enumerate(text.splitlines(), start=1):
        fields = line.split()
        if not fields:
            continue
        line_type = _int_fields(fields[:1], number)[0]

        if line_type == 254:
            if current is not None:
                finish()
            current = {'timestamp': _parse_time(fields, number), 'level_count': 0,
                       'levels': [], 'wind_units': 'ms'}
            continue

        if current is None:
            raise SoundingParseError(f"line {number}: data found before the first sounding header")

        if line_type == 1:
            continue
        elif line_type == 2:
            if len(fields) < 5:
                raise SoundingParseError(f"line {number}: incomplete sounding check line")
            current['level_count'] = _int_fields(fields[4:5], number)[0]
        elif line_type == 3:
            if fields[-1].lower() in ('kt', 'ms'):
                current['wind_units'] = fields[-1].lower()
        elif 4 <= line_type <= 9:
            level = _parse_level(fields, number, current['wind_units'])
            if level is not None:
                current['levels'].append(level)
        else:
            raise SoundingParseError(f"line {number}: unknown line type {line_type}")

    if current is not None:
        finish()

    profiles.sort(key=lambda profile: profile.timestamp)
    logger.info(f"Parsed {len(profiles)} soundings")
    return profiles


def read_fsl_file(path: Union[str, Path]) -> List[SoundingProfile]:
    """Read soundings from a local FSL format file."""
    with open(path, 'r') as f:
        return parse_fsl_soundings(f.read())


def fetch_sounding_profiles(station: Union[StationRecord, str],
                            start: datetime,
                            end: datetime,
                            url: str = metadata.RAOB_CGI_URL,
                            timeout: float = metadata.REQUEST_TIMEOUT) -> List[SoundingProfile]:
    """Download the soundings of one station between two times.

    Parameters
    ----------
    station : Union[StationRecord, str]
        Station record or its WMO number.
    start, end : datetime
        First and last launch time to request (whole hours, inclusive).
    url : str, optional
        Query page of the archive.
    timeout : float, optional
        Request timeout in seconds.

    Returns
    -------
    List[SoundingProfile]
        Soundings sorted by launch time.

    Raises
    ------
    ServiceUnavailable
        If the archive cannot be reached or reports that it is unavailable.

    Examples
    --------
    >>> result = select_sounding_station(catalog, id_by_wban_wmo="14735-72518")
    >>> profiles = fetch_sounding_profiles(result.station,
    ...                                    datetime(2013, 1, 1, 0), datetime(2013, 1, 31, 12))
    """
    if end < start:
        raise InvalidArgument(f"End time {end} is before start time {start}")

    wmo = station.wmo if isinstance(station, StationRecord) else str(station)
    params = dict(metadata.RAOB_SOUNDING_PARAMS)
    params.update({'bdate': start.strftime('%Y%m%d%H'),
                   'edate': end.strftime('%Y%m%d%H'),
                   'StationIDs': wmo})

    logger.debug(f"Requesting soundings for {wmo} from {url} ({params['bdate']} to {params['edate']})")
    try:
        with requests.get(url, params=params, stream=True, timeout=timeout) as response:
            check_archive_status(response)

            total_size = int(response.headers.get('content-length', 0))
            buffer = io.BytesIO()
            with tqdm(total=total_size, unit='iB', unit_scale=True, desc=f"Downloading {wmo}") as pbar:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        buffer.write(chunk)
                        pbar.update(len(chunk))
    except requests.exceptions.RequestException as e:
        raise ServiceUnavailable(f"Could not download soundings for station {wmo}: {e}") from e

    text = buffer.getvalue().decode('utf-8', errors='replace')
    check_archive_text(text)
    return parse_fsl_soundings(_MARKUP.sub('', text))


class RaobSoundingProvider:
    """Sounding provider backed by the RAOB archive."""

    def __init__(self, url: str = metadata.RAOB_CGI_URL, timeout: float = metadata.REQUEST_TIMEOUT):
        self.url = url
        self.timeout = timeout

    def fetch_sounding_profiles(self, station: StationRecord, start: datetime,
                                end: datetime) -> List[SoundingProfile]:
        return fetch_sounding_profiles(station, start, end, url=self.url, timeout=self.timeout)


class FslFileProvider:
    """Sounding provider reading a local FSL file, limited to the requested time range."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def fetch_sounding_profiles(self, station: Optional[StationRecord], start: datetime,
                                end: datetime) -> List[SoundingProfile]:
        return [profile for profile in read_fsl_file(self.path) if start <= profile.timestamp <= end]
