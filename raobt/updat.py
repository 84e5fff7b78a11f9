"""
CALMET UP.DAT export of sounding data.

An UP.DAT file has six header lines followed by one block per sounding: a
sounding header line and one comma separated line per level. Field widths are
fixed by the CALMET reader, so every line is built with explicit widths.
"""

import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from raobt.availability import covers_window
from raobt.errors import InvalidArgument, RangeUnavailable
from raobt.models import LevelRecord, SoundingProfile

logger = logging.getLogger(__name__)

HEADER_TITLE = "UP.DAT          2.0             Header structure with coordinate parameters"
HEADER_COMMENT_LINES = "1"
HEADER_NO_MAP = "NONE"
HEADER_FLAGS = "F    F    F    F"
DEFAULT_PRODUCER = "raobt"

# Data format code and site identifier that start every sounding header line
SITE_PREFIX = "   6201     94240   "

# UP.DAT subtracts the identification lines from the declared line count
LEVEL_COUNT_OFFSET = 3

KELVIN_OFFSET = 273
MISSING_TEMPERATURE = "999.9"
MISSING_WIND_DIRECTION = "999"
MISSING_WIND_SPEED = "999.9"

DateLike = Union[str, date, datetime]


def window_time(day: DateLike, hour: int) -> datetime:
    """Combine a date (``"YYYY-MM-DD"`` or date object) and an hour into a datetime.

    Raises
    ------
    InvalidArgument
        If the date is malformed or the hour is not in 0-23.
    """
    if isinstance(day, datetime):
        day = day.date()
    elif isinstance(day, str):
        try:
            day = datetime.strptime(day, "%Y-%m-%d").date()
        except ValueError:
            raise InvalidArgument(f"Dates must be given as 'YYYY-MM-DD', got {day!r}") from None
    elif not isinstance(day, date):
        raise InvalidArgument(f"Expected a date or 'YYYY-MM-DD' string, got {type(day).__name__}")

    if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
        raise InvalidArgument(f"Hours must be integers from 0 to 23, got {hour!r}")

    return datetime(day.year, day.month, day.day) + timedelta(hours=hour)


def check_coverage(profiles: Sequence[SoundingProfile], start: datetime, end: datetime) -> None:
    """Ensure the soundings span the whole requested window.

    Raises
    ------
    InvalidArgument
        If ``end`` precedes ``start``.
    RangeUnavailable
        If there are no soundings, ``start`` is before the first sounding or
        ``end`` is after the last one.
    """
    if end < start:
        raise InvalidArgument(f"The end of the export window ({end}) is before its start ({start})")
    if len(profiles) == 0:
        raise RangeUnavailable("No sounding data was supplied for the export")

    if not covers_window(profiles, start, end):
        first = profiles[0].timestamp
        last = profiles[-1].timestamp
        raise RangeUnavailable(f"Requested time frame {start:%Y-%m-%d %H}h to {end:%Y-%m-%d %H}h is not "
                               f"entirely available in the sounding data ({first:%Y-%m-%d %H}h to "
                               f"{last:%Y-%m-%d %H}h)")


def trim_profiles(profiles: Sequence[SoundingProfile], start: datetime, end: datetime) -> List[SoundingProfile]:
    """Drop the soundings before ``start`` and after ``end``.

    Both bounds are inclusive. The soundings must be in time order, as
    supplied by the sounding providers.

    Examples
    --------
    >>> trimmed = trim_profiles(profiles, datetime(2013, 1, 1, 0), datetime(2013, 1, 3, 0))
    """
    profiles = list(profiles)
    first = 0
    while first < len(profiles) and profiles[first].timestamp < start:
        first += 1
    last = len(profiles)
    while last > first and profiles[last - 1].timestamp > end:
        last -= 1
    return profiles[first:last]


def _julian_day(moment: datetime) -> int:
    return moment.timetuple().tm_yday


def format_header(start: datetime, end: datetime, top_pressure_level: float,
                  producer: str = DEFAULT_PRODUCER) -> List[str]:
    """Return the six UP.DAT header lines."""
    periods = "%6d%5d%5d%5d%5d%5d%4d.%5d%5d" % (start.year, _julian_day(start), 1,
                                               end.year, _julian_day(end), 1,
                                               int(top_pressure_level), 2, 2)
    return [HEADER_TITLE,
            HEADER_COMMENT_LINES,
            f"Produced using {producer}",
            HEADER_NO_MAP,
            periods,
            HEADER_FLAGS]


def format_level(level: LevelRecord) -> List[str]:
    """Return the fixed-width fields of one level, missing values as sentinels."""
    if level.temperature is None:
        temperature = MISSING_TEMPERATURE
    else:
        temperature = "%5.1f" % (level.temperature + KELVIN_OFFSET)

    if level.wind_direction is None:
        direction = MISSING_WIND_DIRECTION
    else:
        direction = "%3.0f" % level.wind_direction

    if level.wind_speed is None:
        speed = MISSING_WIND_SPEED
    else:
        speed = "%5.1f" % level.wind_speed

    return ["%9.1f" % level.pressure, "%6.0f" % level.height, temperature, direction, speed]


def format_profile(profile: SoundingProfile) -> List[str]:
    """Return the sounding header line followed by one line per valid level.

    Levels with a negative height are left out.
    """
    count = profile.level_count - LEVEL_COUNT_OFFSET
    lines = [SITE_PREFIX +
             "%4d%02d%02d%02d" % (profile.year, profile.month, profile.day, profile.hour) +
             "%7d" % count +
             "%33d" % count]

    levels = [level for level in profile.levels if level.height >= 0]
    for i, level in enumerate(levels):
        line = ",".join(format_level(level))
        if i < len(levels) - 1:
            line += ","
        lines.append(line)
    return lines


def format_updat(profiles: Sequence[SoundingProfile], start: datetime, end: datetime,
                 top_pressure_level: float, producer: str = DEFAULT_PRODUCER) -> str:
    """Render an UP.DAT file for the soundings between ``start`` and ``end``.

    Raises
    ------
    RangeUnavailable
        If the soundings do not cover the window.
    """
    profiles = list(profiles)
    check_coverage(profiles, start, end)

    lines = format_header(start, end, top_pressure_level, producer)
    for profile in trim_profiles(profiles, start, end):
        lines.extend(format_profile(profile))
    return "\n".join(lines) + "\n"


def _format_number(value: float) -> str:
    return f"{value:g}"


def updat_file_path(output_file_name: Union[str, Path], start: datetime, end: datetime,
                    top_pressure_level: float, details_in_file_name: bool = True) -> Path:
    """Return the output path, optionally decorated with the export window and top level.

    Examples
    --------
    >>> updat_file_path("up.txt", datetime(2013, 1, 1, 0), datetime(2013, 12, 31, 0), 500)
    PosixPath('up__2013-01-01-0-2013-12-31-0-500.txt')
    """
    path = Path(output_file_name)
    if not details_in_file_name:
        return path

    stem = path.name[:-len(".txt")] if path.name.endswith(".txt") else path.name
    details = "-".join([f"{start:%Y-%m-%d}", str(start.hour),
                        f"{end:%Y-%m-%d}", str(end.hour),
                        _format_number(top_pressure_level)])
    return path.with_name(f"{stem}__{details}.txt")


def export_window(profiles: Sequence[SoundingProfile],
                  start_date: Optional[DateLike] = None,
                  start_hour: Optional[int] = None,
                  end_date: Optional[DateLike] = None,
                  end_hour: Optional[int] = None,
                  export_all_times: bool = False) -> Tuple[datetime, datetime]:
    """Resolve the export window from explicit bounds or from the soundings themselves."""
    if export_all_times:
        if len(profiles) == 0:
            raise RangeUnavailable("No sounding data was supplied for the export")
        return profiles[0].timestamp, profiles[-1].timestamp

    missing = [name for name, value in (('start_date', start_date), ('start_hour', start_hour),
                                        ('end_date', end_date), ('end_hour', end_hour)) if value is None]
    if missing:
        raise InvalidArgument(f"Values for {missing} must be supplied unless 'export_all_times' is set")
    return window_time(start_date, start_hour), window_time(end_date, end_hour)


def export_data_to_calmet(profiles: Iterable[SoundingProfile],
                          start_date: Optional[DateLike] = None,
                          start_hour: Optional[int] = None,
                          end_date: Optional[DateLike] = None,
                          end_hour: Optional[int] = None,
                          top_pressure_level: Optional[float] = None,
                          output_file_name: Union[str, Path] = "up.txt",
                          details_in_file_name: bool = True,
                          export_all_times: bool = False,
                          producer: str = DEFAULT_PRODUCER) -> Path:
    """Write a CALMET UP.DAT file from a time-ordered sequence of soundings.

    Parameters
    ----------
    profiles : Iterable[SoundingProfile]
        Soundings of a single station sorted by time.
    start_date, end_date : Union[str, date, datetime], optional
        First and last day of the export, as ``"YYYY-MM-DD"`` strings or date
        objects. Required unless ``export_all_times`` is set.
    start_hour, end_hour : int, optional
        Hour accompanying ``start_date`` and ``end_date``.
    top_pressure_level : float
        Top pressure level in whole hPa written to the header and file name.
    output_file_name : Union[str, Path], optional
        Output file, by default ``"up.txt"``.
    details_in_file_name : bool, optional
        Append the export window and top pressure level to the file name, by
        default True. Existing files are overwritten.
    export_all_times : bool, optional
        Export from the first to the last supplied sounding instead of an
        explicit window, by default False.
    producer : str, optional
        Name written to the producer header line.

    Returns
    -------
    Path
        Path of the written file.

    Raises
    ------
    InvalidArgument
        If the window or the top pressure level is missing or malformed.
    RangeUnavailable
        If the soundings do not cover the requested window. No file is written.

    Examples
    --------
    >>> # UP.DAT for 2013 constrained to the 500 hPa level
    >>> export_data_to_calmet(profiles,
    ...                       start_date="2013-01-01", start_hour=0,
    ...                       end_date="2013-12-31", end_hour=0,
    ...                       top_pressure_level=500)
    PosixPath('up__2013-01-01-0-2013-12-31-0-500.txt')
    """
    if top_pressure_level is None:
        raise InvalidArgument("A value for 'top_pressure_level' must be supplied")
    try:
        top_pressure_level = float(top_pressure_level)
    except (TypeError, ValueError):
        raise InvalidArgument(f"'top_pressure_level' must be a number, got {top_pressure_level!r}") from None
    if top_pressure_level <= 0:
        raise InvalidArgument(f"'top_pressure_level' must be positive, got {top_pressure_level}")
    # The header field holds whole hPa
    if not top_pressure_level.is_integer():
        raise InvalidArgument(f"'top_pressure_level' must be a whole number of hPa, got {top_pressure_level}")

    profiles = list(profiles)
    start, end = export_window(profiles, start_date, start_hour, end_date, end_hour, export_all_times)
    content = format_updat(profiles, start, end, top_pressure_level, producer)

    path = updat_file_path(output_file_name, start, end, top_pressure_level, details_in_file_name)
    with open(path, 'w', newline='\n') as f:
        f.write(content)

    logger.info(f"An UP.DAT file was generated at {path}")
    return path
