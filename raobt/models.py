"""
Value types shared by the station, sounding and export modules.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Optional, Tuple

import raobt.raobtmetadata as metadata

STATION_FIELDS = ('init', 'wban', 'wmo', 'latitude', 'longitude', 'elevation',
                  'name', 'region', 'country')


@dataclass(frozen=True)
class StationRecord:
    """One radiosonde station of the RAOB station listing.

    A station is identified by its ``(wban, wmo)`` pair. ``init`` holds the
    station initials (e.g. ``ALB``) and may be empty, as may ``wban``.
    ``region`` is the two-character province/state code and ``country`` the
    two-character country code.
    """
    init: str
    wban: str
    wmo: str
    latitude: float
    longitude: float
    elevation: float
    name: str
    region: str
    country: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.wban, self.wmo)

    @property
    def combined_id(self) -> str:
        """Identifier in the ``WBAN-WMO`` form accepted by station selection."""
        return f"{self.wban}-{self.wmo}"

    def confirmation(self) -> Dict[str, str]:
        return {'wmo': self.wmo, 'wban': self.wban, 'name': self.name}

    def to_dict(self) -> Dict:
        return asdict(self)


def _present(value: Optional[float]) -> Optional[float]:
    """Return None for absent values and for raw missing-data codes."""
    if value is None:
        return None
    value = float(value)
    if abs(value) > metadata.MISSING_VALUE_THRESHOLD:
        return None
    return value


@dataclass(frozen=True)
class LevelRecord:
    """A single level of a sounding.

    Pressure is in hPa, height in metres, temperature in degrees Celsius,
    wind direction in degrees. Temperature and wind values are None when the
    source reported them as missing; raw missing-data codes are mapped to None
    on construction.
    """
    pressure: float
    height: float
    temperature: Optional[float] = None
    wind_direction: Optional[float] = None
    wind_speed: Optional[float] = None

    def __post_init__(self):
        for name in ('temperature', 'wind_direction', 'wind_speed'):
            object.__setattr__(self, name, _present(getattr(self, name)))

    @classmethod
    def from_raw(cls, pressure: float, height: float, temperature: Optional[float],
                 wind_direction: Optional[float], wind_speed: Optional[float]) -> 'LevelRecord':
        """Build a level from provider values of any numeric type.

        Examples
        --------
        >>> LevelRecord.from_raw(850, 1500, 9999.9, 270, 9999.9).temperature is None
        True
        """
        return cls(pressure=float(pressure),
                   height=float(height),
                   temperature=temperature,
                   wind_direction=wind_direction,
                   wind_speed=wind_speed)


@dataclass(frozen=True)
class SoundingProfile:
    """One radiosonde launch: its nominal time and its levels from the surface up.

    ``level_count`` is the line count declared by the data source for the
    sounding, which is not necessarily ``len(levels)``.
    """
    timestamp: datetime
    level_count: int
    levels: Tuple[LevelRecord, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.levels, tuple):
            object.__setattr__(self, 'levels', tuple(self.levels))

    @property
    def year(self) -> int:
        return self.timestamp.year

    @property
    def month(self) -> int:
        return self.timestamp.month

    @property
    def day(self) -> int:
        return self.timestamp.day

    @property
    def hour(self) -> int:
        return self.timestamp.hour
