"""
RAOB (NOAA/ESRL Radiosonde Database) Toolkit

This library provides tools for working with RAOB sounding data, including:
- Reading and parsing the sounding station listing
- Searching for a sounding station by identifier, name, region or location
- Reading soundings in the FSL format
- Exporting soundings to CALMET UP.DAT files
"""

__version__ = "0.1.0"

from raobt.errors import (
    InvalidArgument,
    NoCatalogLoaded,
    RaobtError,
    RangeUnavailable,
    ServiceUnavailable,
    SoundingParseError,
    StationParseError,
)
from raobt.models import LevelRecord, SoundingProfile, StationRecord
from raobt.stations import (
    StationCatalog,
    get_sounding_stations,
    load_station_catalog,
    parse_station_listing,
    save_station_catalog,
)
from raobt.selection import (
    CandidateList,
    MatchCount,
    NoMatch,
    SingleMatch,
    StationSelector,
    select_sounding_station,
)
from raobt.soundings import fetch_sounding_profiles, parse_fsl_soundings, read_fsl_file
from raobt.updat import export_data_to_calmet, trim_profiles
from raobt.availability import summarize_availability
